"""Circuit Breaker для Jupiter та RPC node.

Коли upstream down, кожен copy trade інакше чекав би свій timeout.
Після `failure_threshold` послідовних failures circuit OPEN і calls
fail fast до `timeout_seconds`; потім HALF_OPEN пропускає пробні calls.

    CLOSED → OPEN → HALF_OPEN → CLOSED | OPEN
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitBreakerOpenError(Exception):
    """Upstream marked unavailable; the call was not attempted."""

    def __init__(self, name: str, retry_in: float) -> None:
        super().__init__(f"Circuit {name} is open, retry in {retry_in:.0f}s")
        self.name = name
        self.retry_in = retry_in


class CircuitBreaker:
    """Async circuit breaker around one upstream.

    Args:
        name: Upstream name used in logs ("jupiter", "rpc").
        failure_threshold: Consecutive failures before the circuit opens.
        timeout_seconds: How long the circuit stays open.
        success_threshold: Probe successes in HALF_OPEN needed to close.
        excluded_exceptions: Errors that prove the upstream is alive
            (e.g. "no route" from the aggregator, JSON-RPC error objects)
            and therefore count as success.
        clock: Monotonic seconds source; overridable in tests.

    Example:
        >>> breaker = CircuitBreaker("jupiter", failure_threshold=5)
        >>> quote = await breaker.call(client.fetch_quote, params)
    """

    def __init__(
        self,
        name: str = "default",
        failure_threshold: int = 5,
        timeout_seconds: float = 60,
        success_threshold: int = 2,
        excluded_exceptions: tuple[type[BaseException], ...] = (),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.failure_threshold = failure_threshold
        self.timeout_seconds = timeout_seconds
        self.success_threshold = success_threshold
        self.excluded_exceptions = excluded_exceptions
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failures = 0
        self._probe_successes = 0
        self._opened_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    async def call(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Run `func` through the breaker.

        Raises:
            CircuitBreakerOpenError: Circuit is open and the cool-down has
                not elapsed.
            Exception: Whatever `func` raises.
        """
        async with self._lock:
            self._admit()

        try:
            result = await func(*args, **kwargs)
        except self.excluded_exceptions:
            await self._record(ok=True)
            raise
        except Exception:
            await self._record(ok=False)
            raise
        await self._record(ok=True)
        return result

    def reset(self) -> None:
        """Force the circuit closed (tests/admin)."""
        self._transition(CircuitState.CLOSED, "circuit_breaker.manual_reset")

    def _admit(self) -> None:
        if self._state != CircuitState.OPEN:
            return
        elapsed = self._clock() - (self._opened_at or 0.0)
        if elapsed < self.timeout_seconds:
            logger.warning(
                "circuit_breaker.rejected",
                extra={"circuit": self.name, "failures": self._failures},
            )
            raise CircuitBreakerOpenError(self.name, self.timeout_seconds - elapsed)
        self._transition(CircuitState.HALF_OPEN, "circuit_breaker.half_open")

    async def _record(self, ok: bool) -> None:
        async with self._lock:
            if ok:
                self._failures = 0
                if self._state == CircuitState.HALF_OPEN:
                    self._probe_successes += 1
                    if self._probe_successes >= self.success_threshold:
                        self._transition(CircuitState.CLOSED, "circuit_breaker.closed")
                return

            self._failures += 1
            if self._state == CircuitState.HALF_OPEN or (
                self._state == CircuitState.CLOSED and self._failures >= self.failure_threshold
            ):
                self._transition(CircuitState.OPEN, "circuit_breaker.opened")

    def _transition(self, state: CircuitState, event: str) -> None:
        previous = self._state
        self._state = state
        self._probe_successes = 0
        if state == CircuitState.OPEN:
            self._opened_at = self._clock()
        elif state == CircuitState.CLOSED:
            self._failures = 0
            self._opened_at = None
        log = logger.error if state == CircuitState.OPEN else logger.info
        log(
            event,
            extra={"circuit": self.name, "from": previous.value, "failures": self._failures},
        )
