"""ExecutionQueue - bounded-concurrency executor of copy trade attempts.

Responsibilities:
- one attempt per (user, signal signature), ever (deterministic ids)
- enqueue-time eligibility pre-check, denials are silent
- execution-time re-check: no-wallet and insufficient-balance fail the
  attempt, other denials skip it silently
- at most `max_concurrent_trades` attempts executing at once
- per-user lock so check-and-increment of counters is one critical section
- exactly one ledger row and one domain event per terminal attempt

Counters (token caps, hourly log, cooldown) live here and nowhere else.
They are in-memory and rebuilt from the ledger on startup.
"""

import asyncio
import logging
from collections import OrderedDict, defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_DOWN, Decimal
from typing import Awaitable, Callable, Iterable, TypeVar

from alphacopy.config.logging import bind_trade_context, clear_trade_context
from alphacopy.domain.shared import DomainException
from alphacopy.domain.signals.value_objects import NATIVE_SOL_DECIMALS, WRAPPED_SOL_MINT, SwapEvent
from alphacopy.domain.trading.entities import CopyTradeAttempt, TradeRecord, User, attempt_id_for
from alphacopy.domain.trading.exceptions import ExecutionTimeoutError
from alphacopy.domain.trading.ports import AggregatorPort, CustodyPort
from alphacopy.domain.trading.repositories import TradeLedger, UserRepository
from alphacopy.domain.trading.services import EligibilityFilter
from alphacopy.domain.trading.value_objects import Deny, DenyReason, PerUserCounters
from alphacopy.infrastructure.messaging import EventBus

logger = logging.getLogger(__name__)

T = TypeVar("T")

# denials the user has to act on; other execution-time denials are silent skips
_FAILING_DENIALS = frozenset({DenyReason.NO_WALLET, DenyReason.INSUFFICIENT_BALANCE})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _AttemptAborted(Exception):
    """Execution stopped before a swap was submitted."""

    def __init__(
        self,
        reason: str,
        input_asset: str | None = None,
        output_asset: str | None = None,
        amount_in: int = 0,
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.input_asset = input_asset
        self.output_asset = output_asset
        self.amount_in = amount_in


class _AttemptSkipped(Exception):
    """Policy denial at execution time: no ledger row, no event."""

    def __init__(self, decision: Deny) -> None:
        super().__init__(decision.reason.value)
        self.decision = decision


@dataclass
class _QueuedAttempt:
    attempt: CopyTradeAttempt
    delay_ms: int


class ExecutionQueue:
    """FIFO of CopyTradeAttempts drained by N worker tasks.

    Example:
        >>> queue = ExecutionQueue(users=..., ledger=..., aggregator=..., custody=...,
        ...                        event_bus=bus, eligibility=EligibilityFilter())
        >>> await queue.start()
        >>> await queue.submit(user_id=7, signal=swap_event)
        True
        >>> await queue.submit(user_id=7, signal=swap_event)  # same signature
        False
        >>> await queue.stop()
    """

    def __init__(
        self,
        *,
        users: UserRepository,
        ledger: TradeLedger,
        aggregator: AggregatorPort,
        custody: CustodyPort,
        event_bus: EventBus,
        eligibility: EligibilityFilter,
        max_concurrent_trades: int = 3,
        balance_timeout: float = 10.0,
        quote_timeout: float = 15.0,
        swap_timeout: float = 60.0,
        seen_cache_size: int = 10_000,
        native_asset: str = WRAPPED_SOL_MINT,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if max_concurrent_trades < 1:
            raise ValueError("max_concurrent_trades must be >= 1")
        self._users = users
        self._ledger = ledger
        self._aggregator = aggregator
        self._custody = custody
        self._event_bus = event_bus
        self._eligibility = eligibility
        self.max_concurrent_trades = max_concurrent_trades
        self.balance_timeout = balance_timeout
        self.quote_timeout = quote_timeout
        self.swap_timeout = swap_timeout
        self.native_asset = native_asset
        self._clock = clock

        self._queue: asyncio.Queue[_QueuedAttempt] = asyncio.Queue()
        self._workers: list[asyncio.Task] = []
        self._running = False
        self._active = 0

        # ids queued or executing
        self._reserved: set[str] = set()
        # ids that reached a terminal state
        self._seen: OrderedDict[str, None] = OrderedDict()
        self._seen_cache_size = seen_cache_size

        self._counters: dict[int, PerUserCounters] = {}
        self._locks: dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._last_denials: dict[int, Deny] = {}
        self._stats: dict[str, int] = defaultdict(int)

    # ==================== Lifecycle ====================

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Spawn workers. No-op if already running."""
        if self._running:
            return
        self._running = True
        self._workers = [
            asyncio.create_task(self._worker(n), name=f"execution-worker-{n}")
            for n in range(self.max_concurrent_trades)
        ]
        logger.info("execution_queue.started", extra={"workers": self.max_concurrent_trades})

    async def stop(self) -> None:
        """Drop queued attempts, let executing ones finish, stop workers.

        Dropped attempts never executed, so they are neither persisted nor
        notified.
        """
        if not self._running:
            return
        self._running = False

        dropped = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._reserved.discard(item.attempt.id)
            self._queue.task_done()
            dropped += 1

        # in-flight attempts are bounded by their own timeouts
        await self._queue.join()

        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info("execution_queue.stopped", extra={"dropped_attempts": dropped})

    # ==================== Submission ====================

    async def submit(self, user_id: int, signal: SwapEvent) -> bool:
        """Enqueue a copy of `signal` for `user_id`.

        Returns:
            True if a new attempt was queued. False for duplicates, unknown
            users, denials (recorded as the user's last denial) and when
            the queue is stopped.
        """
        if not self._running:
            logger.debug("execution_queue.not_running", extra={"user_id": user_id})
            return False

        attempt_id = attempt_id_for(user_id, signal.tx_signature)
        if attempt_id in self._reserved or attempt_id in self._seen:
            self._stats["duplicates"] += 1
            return False

        # reserve before the first await so concurrent submits of the same
        # (user, signature) cannot both pass
        self._reserved.add(attempt_id)
        queued = False
        try:
            if await self._ledger.has_attempt(attempt_id):
                self._remember(attempt_id)
                self._stats["duplicates"] += 1
                return False

            user = await self._users.get(user_id)
            if user is None:
                logger.warning("execution_queue.unknown_user", extra={"user_id": user_id})
                return False

            now = self._clock()
            decision = self._eligibility.evaluate(
                user, user.settings, self.counters_for(user_id), signal, now
            )
            if isinstance(decision, Deny):
                self._last_denials[user_id] = decision
                self._stats["denied"] += 1
                logger.debug(
                    "execution_queue.denied",
                    extra={
                        "user_id": user_id,
                        "signature": signal.tx_signature,
                        "reason": decision.reason.value,
                        "detail": decision.detail,
                    },
                )
                return False

            attempt = CopyTradeAttempt.create(user_id=user_id, signal=signal, now=now)
            self._queue.put_nowait(_QueuedAttempt(attempt, user.settings.delay_ms))
            queued = True
            self._stats["queued"] += 1
            logger.info(
                "execution_queue.queued",
                extra={
                    "attempt_id": attempt_id,
                    "user_id": user_id,
                    "signature": signal.tx_signature,
                    "direction": signal.direction.value,
                    "traded_asset": signal.traded_asset,
                    "depth": self._queue.qsize(),
                },
            )
            return True
        finally:
            if not queued:
                self._reserved.discard(attempt_id)

    # ==================== Counters API ====================

    def counters_for(self, user_id: int) -> PerUserCounters:
        counters = self._counters.get(user_id)
        if counters is None:
            return PerUserCounters()
        rolled = counters.rolled_forward(self._clock())
        if rolled is not counters:
            self._counters[user_id] = rolled
        return rolled

    def reset_token_counter(self, user_id: int, asset: str) -> None:
        """Explicit user action: allow trading `asset` again."""
        counters = self._counters.get(user_id)
        if counters is not None:
            self._counters[user_id] = counters.without_token(asset)
        logger.info("execution_queue.token_counter_reset", extra={"user_id": user_id, "asset": asset})

    def rebuild_counters(self, records: Iterable[TradeRecord], now: datetime | None = None) -> None:
        """Rebuild all counters from succeeded ledger records."""
        now = now or self._clock()
        history: dict[int, list[tuple[str, datetime]]] = defaultdict(list)
        for record in records:
            if record.succeeded:
                history[record.user_id].append((record.traded_asset, record.created_at))
        self._counters = {
            user_id: PerUserCounters.from_history(trades, now)
            for user_id, trades in history.items()
        }
        logger.info(
            "execution_queue.counters_rebuilt",
            extra={"users": len(self._counters), "trades": sum(len(t) for t in history.values())},
        )

    def last_denial(self, user_id: int) -> Deny | None:
        return self._last_denials.get(user_id)

    @property
    def depth(self) -> int:
        """Attempts waiting for a worker."""
        return self._queue.qsize()

    @property
    def active_count(self) -> int:
        """Attempts currently executing."""
        return self._active

    @property
    def stats(self) -> dict[str, int]:
        return dict(self._stats)

    # ==================== Workers ====================

    async def _worker(self, number: int) -> None:
        while True:
            item = await self._queue.get()
            try:
                await self._process(item)
            except Exception:
                logger.exception(
                    "execution_queue.worker_error",
                    extra={"worker": number, "attempt_id": item.attempt.id},
                )
            finally:
                self._queue.task_done()

    async def _process(self, item: _QueuedAttempt) -> None:
        attempt = item.attempt
        self._active += 1
        bind_trade_context(attempt.user_id, attempt.id)
        try:
            attempt.start_execution(self._clock())
            if item.delay_ms:
                await asyncio.sleep(item.delay_ms / 1000)

            async with self._locks[attempt.user_id]:
                record = await self._execute(attempt)

            if record is not None:
                await self._finish(attempt, record)
        finally:
            self._reserved.discard(attempt.id)
            self._remember(attempt.id)
            self._active -= 1
            clear_trade_context()

    async def _execute(self, attempt: CopyTradeAttempt) -> TradeRecord | None:
        """Run one attempt under the user's lock.

        Returns:
            The terminal record, or None when a policy denial skipped the
            attempt.
        """
        try:
            return await self._execute_swap(attempt)
        except _AttemptSkipped as e:
            self._stats["skipped"] += 1
            logger.info(
                "execution_queue.attempt_skipped",
                extra={
                    "attempt_id": attempt.id,
                    "user_id": attempt.user_id,
                    "reason": e.decision.reason.value,
                    "detail": e.decision.detail,
                },
            )
            return None
        except _AttemptAborted as e:
            return attempt.mark_failed(
                e.reason,
                input_asset=e.input_asset,
                output_asset=e.output_asset,
                amount_in=e.amount_in,
                now=self._clock(),
            )
        except DomainException as e:
            return attempt.mark_failed(e.message, now=self._clock())
        except Exception as e:
            logger.exception(
                "execution_queue.unexpected_error",
                extra={"attempt_id": attempt.id, "user_id": attempt.user_id},
            )
            return attempt.mark_failed(f"Unexpected error: {type(e).__name__}", now=self._clock())

    async def _execute_swap(self, attempt: CopyTradeAttempt) -> TradeRecord:
        signal = attempt.signal
        user = await self._users.get(attempt.user_id)
        if user is None:
            raise _AttemptAborted("User no longer exists")

        balance = None
        if user.has_wallet:
            balance = await self._bounded(
                self._custody.get_balance(user.wallet_public_key),
                self.balance_timeout,
                "Balance query",
            )

        decision = self._eligibility.evaluate(
            user, user.settings, self.counters_for(user.id), signal, self._clock(), balance
        )
        if isinstance(decision, Deny):
            self._last_denials[user.id] = decision
            if decision.reason not in _FAILING_DENIALS:
                raise _AttemptSkipped(decision)
            reason = decision.reason.value
            raise _AttemptAborted(f"{reason}: {decision.detail}" if decision.detail else reason)

        input_mint, output_mint, amount = await self._plan(user, signal, decision.amount)

        signer = self._custody.signer_for(user.wallet_public_key, user.encrypted_secret)
        quote = await self._bounded(
            self._aggregator.get_quote(input_mint, output_mint, amount, user.settings.slippage_bps),
            self.quote_timeout,
            "Quote",
        )
        try:
            result = await self._bounded(
                self._aggregator.execute_swap(quote, signer),
                self.swap_timeout,
                "Swap",
            )
        except ExecutionTimeoutError:
            # the transaction may still land; the attempt stays failed
            logger.warning(
                "execution_queue.swap_outcome_unknown",
                extra={"attempt_id": attempt.id, "user_id": user.id},
            )
            raise

        finished_at = self._clock()
        self._counters[user.id] = self.counters_for(user.id).with_trade(signal.traded_asset, finished_at)
        return attempt.mark_succeeded(
            input_asset=input_mint,
            output_asset=output_mint,
            result=result,
            now=finished_at,
        )

    async def _plan(self, user: User, signal: SwapEvent, size: Decimal) -> tuple[str, str, int]:
        """Pick (input_mint, output_mint, amount in base units) for the copy.

        Buys (and ambiguous swaps) spend `size` SOL on the traded asset.
        Sells dump the user's whole holding of the traded asset into SOL.
        """
        asset = signal.traded_asset
        if asset == self.native_asset:
            raise _AttemptAborted("Cannot copy a swap into the native asset")

        if signal.direction.is_sell():
            holding = await self._bounded(
                self._custody.get_token_balance(user.wallet_public_key, asset),
                self.balance_timeout,
                "Token balance query",
            )
            if holding.is_empty:
                raise _AttemptAborted("no-token-balance", asset, self.native_asset)
            return asset, self.native_asset, holding.amount

        lamports = int((size.scaleb(NATIVE_SOL_DECIMALS)).to_integral_value(rounding=ROUND_DOWN))
        if lamports <= 0:
            raise _AttemptAborted("Trade amount too small", self.native_asset, asset)
        return self.native_asset, asset, lamports

    async def _bounded(self, awaitable: Awaitable[T], timeout: float, step: str) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout)
        except asyncio.TimeoutError as e:
            raise ExecutionTimeoutError(step, timeout) from e

    async def _finish(self, attempt: CopyTradeAttempt, record: TradeRecord) -> None:
        self._stats[record.status.value] += 1
        log = logger.info if record.succeeded else logger.warning
        log(
            "execution_queue.attempt_succeeded" if record.succeeded else "execution_queue.attempt_failed",
            extra={
                "attempt_id": attempt.id,
                "user_id": attempt.user_id,
                "signature_in": record.tx_signature_in,
                "signature_out": record.tx_signature_out,
                "error": record.error,
            },
        )

        try:
            await self._ledger.record(record)
        except Exception:
            # outcome is still notified; the seen cache keeps the id from re-executing
            logger.exception("execution_queue.ledger_failed", extra={"attempt_id": attempt.id})

        await self._event_bus.publish_all(attempt.get_domain_events())
        attempt.clear_domain_events()

    def _remember(self, attempt_id: str) -> None:
        self._seen[attempt_id] = None
        self._seen.move_to_end(attempt_id)
        while len(self._seen) > self._seen_cache_size:
            self._seen.popitem(last=False)
