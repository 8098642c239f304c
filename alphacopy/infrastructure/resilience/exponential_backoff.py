"""Exponential backoff for Solana RPC, Jupiter and activity source reconnects.

- RPC nodes and the aggregator rate-limit and drop connections routinely
- without retry a copy trade can fail on a transient error
- exponential backoff prevents hammering a struggling endpoint
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any, Awaitable, Callable, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryableError(Exception):
    """Base exception для transient errors які можна retry.

    Example:
        >>> raise RetryableError("RPC returned 429, retry later")
    """

    pass


@dataclass
class BackoffSchedule:
    """Capped exponential delay: base * factor**(n-1), at most `max_delay`.

    Tracks consecutive failures so a caller can tell when it crossed a
    degradation threshold.

    Example:
        >>> schedule = BackoffSchedule(base_delay=5, max_delay=60)
        >>> [schedule.next_delay() for _ in range(5)]
        [5.0, 10.0, 20.0, 40.0, 60.0]
        >>> schedule.reset()
    """

    base_delay: float = 5.0
    max_delay: float = 60.0
    factor: float = 2.0
    failures: int = 0

    def next_delay(self) -> float:
        """Register one more failure and return how long to wait."""
        self.failures += 1
        return self.delay_for(self.failures)

    def delay_for(self, failures: int) -> float:
        if failures <= 0:
            return 0.0
        return float(min(self.base_delay * self.factor ** (failures - 1), self.max_delay))

    def reset(self) -> None:
        self.failures = 0


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    retryable_exceptions: tuple[Type[Exception], ...] = (RetryableError,),
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator для retry async функцій з exponential backoff.

    Args:
        max_retries: Максимальна кількість повторних спроб (default: 3).
        base_delay: Базова затримка в секундах (default: 1.0).
        max_delay: Максимальна затримка в секундах (default: 60.0).
        exponential_base: База для exponential backoff (default: 2.0).
        retryable_exceptions: Exceptions які можна retry. Все інше
            пробрасується одразу.

    Returns:
        Decorated async function з retry logic.

    Example:
        >>> @retry_with_backoff(max_retries=3, base_delay=0.5)
        ... async def get_signatures(address):
        ...     return await rpc.call("getSignaturesForAddress", [address])

        >>> # fail → wait 0.5s → fail → wait 1s → fail → wait 2s → fail → raise
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"retry_with_backoff requires an async function, got {func!r}")

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(max_retries + 1):
                try:
                    result = await func(*args, **kwargs)
                    if attempt > 0:
                        logger.info(
                            "retry.success",
                            extra={
                                "function": func.__name__,
                                "attempt": attempt + 1,
                                "total_attempts": max_retries + 1,
                            },
                        )
                    return result

                except retryable_exceptions as e:
                    if attempt >= max_retries:
                        logger.error(
                            "retry.exhausted",
                            extra={
                                "function": func.__name__,
                                "total_attempts": max_retries + 1,
                                "error": str(e),
                            },
                        )
                        raise

                    delay = min(base_delay * (exponential_base**attempt), max_delay)
                    logger.warning(
                        "retry.attempt",
                        extra={
                            "function": func.__name__,
                            "attempt": attempt + 1,
                            "max_retries": max_retries,
                            "delay_seconds": delay,
                            "error": str(e),
                        },
                    )
                    await asyncio.sleep(delay)

            raise RuntimeError("Retry logic error: loop exited without result")

        return wrapper

    return decorator
