"""ChainActivitySource - stream of raw transactions touching tracked wallets.

One abstract interface, two strategies (push subscription and polling),
selected by configuration. Shared behaviour lives here:

- at-least-once delivery into a bounded buffer, drop-oldest on overflow
- reconnect loop with capped exponential backoff that never gives up
- SourceDegradedEvent once per episode after N consecutive failures,
  SourceRecoveredEvent when a connection succeeds again
"""

import asyncio
import contextlib
import logging
from abc import ABC, abstractmethod
from collections import OrderedDict, deque
from typing import AsyncIterator, Iterable

from alphacopy.domain.shared import DomainEvent
from alphacopy.domain.signals.events import (
    SourceDegradedEvent,
    SourceOverflowEvent,
    SourceRecoveredEvent,
)
from alphacopy.domain.signals.value_objects import RawTransaction
from alphacopy.infrastructure.messaging import EventBus
from alphacopy.infrastructure.resilience import BackoffSchedule

logger = logging.getLogger(__name__)

_RECENT_CAPACITY = 5000


class ChainActivitySource(ABC):
    """Base class for activity sources.

    Subclasses implement `_run()`: connect, call `_mark_connected()` once
    the feed is live, then feed transactions through `_emit()` until the
    connection fails (raise) or the source stops.

    Example:
        >>> source = PollingActivitySource(rpc, interval_seconds=30)
        >>> await source.start({"Alpha111..."})
        >>> async for raw in source.stream():
        ...     event = parser.parse(raw)
    """

    name = "source"

    def __init__(
        self,
        *,
        buffer_size: int = 1000,
        backoff: BackoffSchedule | None = None,
        max_consecutive_failures: int = 5,
        event_bus: EventBus | None = None,
    ) -> None:
        if buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")
        self.buffer_size = buffer_size
        self.max_consecutive_failures = max_consecutive_failures
        self._backoff = backoff or BackoffSchedule()
        self._event_bus = event_bus

        self._addresses: set[str] = set()
        self._buffer: deque[RawTransaction] = deque()
        self._available = asyncio.Event()
        self._recent: OrderedDict[tuple[str, str], None] = OrderedDict()

        self._running = False
        self._connected = False
        self._degraded = False
        self._task: asyncio.Task | None = None
        self.dropped_total = 0

    # ==================== State ====================

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def degraded(self) -> bool:
        return self._degraded

    @property
    def running(self) -> bool:
        return self._running

    @property
    def addresses(self) -> frozenset[str]:
        return frozenset(self._addresses)

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    # ==================== Lifecycle ====================

    async def start(self, addresses: Iterable[str]) -> None:
        """Start watching `addresses`. No-op if already running."""
        if self._running:
            return
        self._addresses = set(addresses)
        self._running = True
        self._task = asyncio.create_task(self._run_forever(), name=f"{self.name}-source")
        logger.info(
            "activity_source.started",
            extra={"source": self.name, "addresses": len(self._addresses)},
        )

    async def stop(self) -> None:
        """Stop the feed. Buffered transactions are discarded."""
        if not self._running:
            return
        self._running = False
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        await self._on_stopped()
        self._connected = False
        self._buffer.clear()
        self._available.set()
        logger.info(
            "activity_source.stopped",
            extra={"source": self.name, "dropped_total": self.dropped_total},
        )

    async def add_wallet(self, address: str) -> None:
        """Start watching an address without restarting."""
        if address in self._addresses:
            return
        self._addresses.add(address)
        if self._running:
            await self._on_wallet_added(address)
        logger.info("activity_source.wallet_added", extra={"source": self.name, "address": address})

    async def remove_wallet(self, address: str) -> None:
        """Stop watching an address without restarting."""
        if address not in self._addresses:
            return
        self._addresses.discard(address)
        if self._running:
            await self._on_wallet_removed(address)
        logger.info("activity_source.wallet_removed", extra={"source": self.name, "address": address})

    async def stream(self) -> AsyncIterator[RawTransaction]:
        """Yield buffered transactions until the source stops."""
        while self._running:
            if self._buffer:
                yield self._buffer.popleft()
                continue
            self._available.clear()
            await self._available.wait()

    # ==================== Subclass hooks ====================

    @abstractmethod
    async def _run(self) -> None:
        """Connect and feed transactions until failure or stop."""

    async def _on_wallet_added(self, address: str) -> None:
        return None

    async def _on_wallet_removed(self, address: str) -> None:
        return None

    async def _on_stopped(self) -> None:
        return None

    # ==================== Internals ====================

    async def _run_forever(self) -> None:
        while self._running:
            try:
                await self._run()
                if self._running:
                    raise ConnectionError(f"{self.name} feed ended unexpectedly")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._connected = False
                delay = self._backoff.next_delay()
                failures = self._backoff.failures
                logger.warning(
                    "activity_source.connection_failed",
                    extra={
                        "source": self.name,
                        "consecutive_failures": failures,
                        "retry_in_seconds": delay,
                        "error_type": type(e).__name__,
                        "error": str(e),
                    },
                )
                if failures >= self.max_consecutive_failures and not self._degraded:
                    self._degraded = True
                    logger.error(
                        "activity_source.degraded",
                        extra={"source": self.name, "consecutive_failures": failures},
                    )
                    await self._publish(
                        SourceDegradedEvent(
                            source=self.name,
                            consecutive_failures=failures,
                            retry_interval_seconds=self._backoff.max_delay,
                            last_error=str(e) or type(e).__name__,
                        )
                    )
                await asyncio.sleep(delay)

    async def _mark_connected(self) -> None:
        """Called by subclasses once the feed is live."""
        self._connected = True
        failures = self._backoff.failures
        if failures == 0:
            return
        self._backoff.reset()
        logger.info(
            "activity_source.reconnected",
            extra={"source": self.name, "failed_attempts": failures},
        )
        if self._degraded:
            self._degraded = False
            await self._publish(SourceRecoveredEvent(source=self.name, failed_attempts=failures))

    async def _emit(self, raw: RawTransaction) -> bool:
        """Buffer a transaction, dropping the oldest one when full.

        Returns:
            False if (signature, wallet) was emitted recently.
        """
        key = (raw.signature, raw.source_wallet)
        if key in self._recent:
            return False
        self._recent[key] = None
        if len(self._recent) > _RECENT_CAPACITY:
            self._recent.popitem(last=False)

        if len(self._buffer) >= self.buffer_size:
            dropped = self._buffer.popleft()
            self.dropped_total += 1
            logger.warning(
                "activity_source.overflow",
                extra={
                    "source": self.name,
                    "dropped_signature": dropped.signature,
                    "dropped_total": self.dropped_total,
                },
            )
            await self._publish(
                SourceOverflowEvent(
                    source=self.name,
                    dropped_signature=dropped.signature,
                    dropped_total=self.dropped_total,
                    capacity=self.buffer_size,
                )
            )

        self._buffer.append(raw)
        self._available.set()
        return True

    async def _publish(self, event: DomainEvent) -> None:
        if self._event_bus is not None:
            await self._event_bus.publish(event)
