"""CopyTradingService - application facade of the copy trading core.

Pipeline (one task):
    ChainActivitySource.stream() → SwapParser.parse() → AssetPolicy
    → WalletRegistry.subscribers_of() → ExecutionQueue.submit() per user

Each transaction is processed in isolation: a failure while handling one
transaction (or one subscriber of it) is logged and the stream continues.

User-facing operations (tracked wallets, subscriptions, settings, status)
go through this class so persistence and in-memory state stay in step.
"""

import asyncio
import contextlib
import logging
from datetime import datetime, timezone
from typing import Any, Callable

from alphacopy.config import Settings
from alphacopy.domain.signals.ports import TokenMetadataPort
from alphacopy.domain.signals.services import AssetPolicy
from alphacopy.domain.signals.value_objects import RawTransaction
from alphacopy.domain.trading.entities import User
from alphacopy.domain.trading.exceptions import UserNotFoundError
from alphacopy.domain.trading.ports import CustodyPort
from alphacopy.domain.trading.repositories import TradeLedger, UserRepository
from alphacopy.domain.trading.value_objects import UserSettings
from alphacopy.domain.wallets.entities import TrackedWallet
from alphacopy.domain.wallets.repositories import WalletRepository
from alphacopy.domain.wallets.services import WalletRegistry
from alphacopy.infrastructure.chain import ChainActivitySource
from alphacopy.infrastructure.chain.parsing import SwapParser

from .execution_queue import ExecutionQueue

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class CopyTradingService:
    """Copy trading use cases.

    Example:
        >>> service = container.copy_trading_service
        >>> await service.start()
        >>> await service.register_tracked_wallet("Alpha111...", label="whale #1")
        >>> await service.subscribe(user_id=7, address="Alpha111...")
        >>> await service.update_user_settings(7, auto_trading_enabled=True)
        >>> await service.stop()
    """

    def __init__(
        self,
        *,
        settings: Settings,
        source: ChainActivitySource,
        parser: SwapParser,
        asset_policy: AssetPolicy,
        registry: WalletRegistry,
        wallets: WalletRepository,
        users: UserRepository,
        ledger: TradeLedger,
        queue: ExecutionQueue,
        custody: CustodyPort,
        metadata: TokenMetadataPort | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._settings = settings
        self._source = source
        self._parser = parser
        self._asset_policy = asset_policy
        self._metadata = metadata
        self._registry = registry
        self._wallets = wallets
        self._users = users
        self._ledger = ledger
        self._queue = queue
        self._custody = custody
        self._clock = clock

        self._running = False
        self._lifecycle_lock = asyncio.Lock()
        self._pipeline_task: asyncio.Task | None = None
        self._started_at: datetime | None = None
        self._last_signal_at: datetime | None = None
        self._stats = {
            "transactions": 0,
            "swaps": 0,
            "assets_rejected": 0,
            "attempts_queued": 0,
            "errors": 0,
        }

    @property
    def running(self) -> bool:
        return self._running

    # ==================== Lifecycle ====================

    async def start(self) -> None:
        """Validate config, load state, start queue, source and pipeline.

        Idempotent.

        Raises:
            ConfigurationError: Before anything subscribes to chain activity.
        """
        async with self._lifecycle_lock:
            if self._running:
                return
            self._settings.validate_for_startup()

            self._registry.load(
                await self._wallets.list_wallets(),
                await self._wallets.list_subscriptions(),
            )
            now = self._clock()
            self._queue.rebuild_counters(await self._ledger.list_succeeded(), now)

            await self._queue.start()
            await self._source.start(self._registry.active_addresses())
            self._pipeline_task = asyncio.create_task(self._run_pipeline(), name="copy-trading-pipeline")
            self._started_at = now
            self._running = True

        logger.info(
            "copy_trading.started",
            extra={
                "source": self._source.name,
                "tracked_wallets": self._registry.tracked_wallet_count,
                "max_concurrent_trades": self._queue.max_concurrent_trades,
            },
        )

    async def stop(self) -> None:
        """Stop the source, drop queued attempts, finish executing ones. Idempotent."""
        async with self._lifecycle_lock:
            if not self._running:
                return
            self._running = False

            await self._source.stop()
            if self._pipeline_task is not None:
                self._pipeline_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._pipeline_task
                self._pipeline_task = None
            await self._queue.stop()

        logger.info("copy_trading.stopped", extra={"stats": dict(self._stats)})

    # ==================== Pipeline ====================

    async def _run_pipeline(self) -> None:
        async for raw in self._source.stream():
            try:
                await self.handle_transaction(raw)
            except Exception:
                self._stats["errors"] += 1
                logger.exception(
                    "copy_trading.transaction_failed",
                    extra={"signature": raw.signature, "wallet": raw.source_wallet},
                )

    async def handle_transaction(self, raw: RawTransaction) -> int:
        """Run one raw transaction through parse → policy → fan-out.

        Returns:
            Number of attempts queued.
        """
        self._stats["transactions"] += 1
        event = self._parser.parse(raw)
        if event is None:
            return 0
        if not self._registry.is_active(event.source_wallet):
            return 0

        self._stats["swaps"] += 1
        self._last_signal_at = event.observed_at
        logger.info(
            "copy_trading.swap_detected",
            extra={
                "wallet": event.source_wallet,
                "signature": event.tx_signature,
                "protocol": event.protocol,
                "direction": event.direction.value,
                "input_asset": event.input_asset,
                "output_asset": event.output_asset,
            },
        )

        if not await self._asset_eligible(event.traded_asset):
            self._stats["assets_rejected"] += 1
            logger.info(
                "copy_trading.asset_rejected",
                extra={"signature": event.tx_signature, "asset": event.traded_asset},
            )
            return 0

        queued = 0
        for user_id in sorted(self._registry.subscribers_of(event.source_wallet)):
            try:
                if await self._queue.submit(user_id, event):
                    queued += 1
            except Exception:
                self._stats["errors"] += 1
                logger.exception(
                    "copy_trading.submit_failed",
                    extra={"user_id": user_id, "signature": event.tx_signature},
                )
        self._stats["attempts_queued"] += queued
        return queued

    async def _asset_eligible(self, asset: str) -> bool:
        metadata = None
        if self._asset_policy.needs_metadata and self._metadata is not None:
            metadata = await self._metadata.get_metadata(asset)
        return self._asset_policy.is_eligible(asset, metadata)

    # ==================== Tracked wallets ====================

    async def register_tracked_wallet(self, address: str, label: str = "") -> TrackedWallet:
        """Track a new alpha wallet (or reactivate one) without restarting."""
        wallet = await self._registry.register(address, label, now=self._clock())
        await self._wallets.save_wallet(wallet)
        if self._running:
            await self._source.add_wallet(address)
        return wallet

    async def deregister_tracked_wallet(self, address: str) -> TrackedWallet:
        """Deactivate a tracked wallet. Its subscriptions stop receiving signals."""
        wallet = await self._registry.deactivate(address)
        await self._wallets.save_wallet(wallet)
        if self._running:
            await self._source.remove_wallet(address)
        return wallet

    async def subscribe(self, user_id: int, address: str) -> bool:
        """Subscribe a user to an active tracked wallet.

        Raises:
            UserNotFoundError: Unknown user.
            WalletNotTrackedError: Wallet unknown or inactive.
        """
        await self._require_user(user_id)
        created = await self._registry.subscribe(user_id, address)
        if created:
            await self._wallets.add_subscription(user_id, address)
        return created

    async def unsubscribe(self, user_id: int, address: str) -> bool:
        removed = await self._registry.unsubscribe(user_id, address)
        if removed:
            await self._wallets.remove_subscription(user_id, address)
        return removed

    # ==================== Users ====================

    async def register_user(self, user_id: int) -> User:
        """Get or create a user with the configured default settings."""
        user = await self._users.get(user_id)
        if user is not None:
            return user
        user = User(id=user_id, settings=self._default_settings(), created_at=self._clock())
        await self._users.save(user)
        logger.info("copy_trading.user_registered", extra={"user_id": user_id})
        return user

    async def link_wallet(self, user_id: int, secret: str) -> str:
        """Link a custody wallet from its secret key.

        Returns:
            Wallet public key.

        Raises:
            SigningError: Secret is not a valid keypair.
        """
        user = await self._require_user(user_id)
        public_key, encrypted_secret = self._custody.import_wallet(secret)
        user.link_wallet(public_key, encrypted_secret)
        await self._users.save(user)
        logger.info("copy_trading.wallet_linked", extra={"user_id": user_id, "public_key": public_key})
        return public_key

    async def update_user_settings(self, user_id: int, **partial: Any) -> UserSettings:
        """Apply a partial settings update.

        Raises:
            UserNotFoundError: Unknown user.
            InvalidSettingsError: Update violates a settings rule.
        """
        user = await self._require_user(user_id)
        settings = user.update_settings(**partial)
        await self._users.save(user)
        logger.info(
            "copy_trading.settings_updated",
            extra={"user_id": user_id, "fields": sorted(partial)},
        )
        return settings

    async def reset_token_counter(self, user_id: int, asset: str) -> None:
        await self._require_user(user_id)
        self._queue.reset_token_counter(user_id, asset)

    # ==================== Status ====================

    async def get_system_status(self) -> dict[str, Any]:
        uptime = 0.0
        if self._running and self._started_at is not None:
            uptime = (self._clock() - self._started_at).total_seconds()
        return {
            "running": self._running,
            "started_at": _iso(self._started_at),
            "uptime_seconds": uptime,
            "last_signal_at": _iso(self._last_signal_at),
            "source": {
                "type": self._source.name,
                "connected": self._source.connected,
                "degraded": self._source.degraded,
                "buffered": self._source.buffered,
                "dropped_total": self._source.dropped_total,
            },
            "tracked_wallets": self._registry.tracked_wallet_count,
            "queue": {
                "depth": self._queue.depth,
                "active": self._queue.active_count,
                "max_concurrent_trades": self._queue.max_concurrent_trades,
                **self._queue.stats,
            },
            "pipeline": dict(self._stats),
        }

    async def get_user_status(self, user_id: int) -> dict[str, Any]:
        """Settings, subscriptions, counters, last denial and recent trades.

        Raises:
            UserNotFoundError: Unknown user.
        """
        user = await self._require_user(user_id)
        counters = self._queue.counters_for(user_id)
        denial = self._queue.last_denial(user_id)
        recent = await self._ledger.list_for_user(user_id, limit=10)
        return {
            "user_id": user_id,
            "wallet_public_key": user.wallet_public_key,
            "has_wallet": user.has_wallet,
            "settings": user.settings.to_dict(),
            "subscriptions": sorted(self._registry.wallets_of(user_id)),
            "counters": {
                "trades_this_hour": counters.trades_this_hour,
                "max_trades_per_hour": user.settings.max_trades_per_hour,
                "hour_window_reset_at": _iso(counters.hour_window_reset_at),
                "last_trade_at": _iso(counters.last_trade_at),
                "token_trade_counts": dict(counters.token_trade_counts),
            },
            "last_denial": (
                {"reason": denial.reason.value, "detail": denial.detail} if denial else None
            ),
            "recent_trades": [
                {
                    "id": record.id,
                    "status": record.status.value,
                    "direction": record.direction.value,
                    "input_asset": record.input_asset,
                    "output_asset": record.output_asset,
                    "amount_in": str(record.amount_in),
                    "amount_out": str(record.amount_out),
                    "tx_signature_in": record.tx_signature_in,
                    "tx_signature_out": record.tx_signature_out,
                    "error": record.error,
                    "created_at": _iso(record.created_at),
                }
                for record in recent
            ],
        }

    # ==================== Helpers ====================

    async def _require_user(self, user_id: int) -> User:
        user = await self._users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def _default_settings(self) -> UserSettings:
        s = self._settings
        return UserSettings(
            trade_amount=s.default_trade_amount,
            slippage_bps=s.default_slippage_bps,
            delay_ms=s.default_delay_ms,
            max_trades_per_token=s.default_max_trades_per_token,
            max_trades_per_hour=s.default_max_trades_per_hour,
        )
