"""Composition root - builds the object graph from Settings.

Example:
    >>> container = await build_container(get_settings())
    >>> await container.service.start()
    >>> ...
    >>> await container.aclose()
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from alphacopy.application.notifications import NotificationDispatcher
from alphacopy.application.trading import CopyTradingService, ExecutionQueue
from alphacopy.config import Settings
from alphacopy.domain.signals.services import AllowAllAssets, AssetPolicy, MemecoinHeuristic
from alphacopy.domain.trading.exceptions import QuoteUnavailableError
from alphacopy.domain.trading.ports import NotificationSink
from alphacopy.domain.trading.services import EligibilityFilter
from alphacopy.domain.wallets.services import WalletRegistry
from alphacopy.infrastructure.aggregator import JupiterClient
from alphacopy.infrastructure.chain import (
    ChainActivitySource,
    PollingActivitySource,
    RpcError,
    RpcTokenMetadataProvider,
    SolanaRpcClient,
    WebsocketActivitySource,
)
from alphacopy.infrastructure.chain.parsing import SwapParser
from alphacopy.infrastructure.custody import EncryptionManager, SolanaCustodyProvider
from alphacopy.infrastructure.messaging import EventBus
from alphacopy.infrastructure.notifications import LoggingNotificationSink, TelegramNotificationSink
from alphacopy.infrastructure.persistence.sqlalchemy import (
    SQLAlchemyTradeLedger,
    SQLAlchemyUserRepository,
    SQLAlchemyWalletRepository,
    create_engine,
    create_session_factory,
    init_db,
)
from alphacopy.infrastructure.resilience import BackoffSchedule, CircuitBreaker

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """Wired application components."""

    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    event_bus: EventBus
    rpc: SolanaRpcClient
    aggregator: JupiterClient
    source: ChainActivitySource
    sink: NotificationSink
    queue: ExecutionQueue
    service: CopyTradingService

    async def aclose(self) -> None:
        """Stop the service and release network and database resources."""
        await self.service.stop()
        await self.aggregator.close()
        await self.rpc.close()
        if isinstance(self.sink, TelegramNotificationSink):
            await self.sink.close()
        await self.engine.dispose()
        logger.info("container.closed")


def build_asset_policy(settings: Settings) -> AssetPolicy:
    if settings.asset_policy == "allow_all":
        return AllowAllAssets()
    return MemecoinHeuristic.from_lists(
        max_symbol_length=settings.asset_max_symbol_length,
        excluded_symbols=settings.asset_excluded_symbols,
        min_supply=settings.asset_min_supply,
        excluded_mints=[settings.base_asset_mint, *settings.stable_asset_mints],
    )


def build_activity_source(
    settings: Settings, rpc: SolanaRpcClient, event_bus: EventBus
) -> ChainActivitySource:
    common = dict(
        buffer_size=settings.source_buffer_size,
        backoff=BackoffSchedule(
            base_delay=settings.source_backoff_base_seconds,
            max_delay=settings.source_backoff_max_seconds,
        ),
        max_consecutive_failures=settings.source_max_consecutive_failures,
        event_bus=event_bus,
    )
    if settings.activity_source == "polling":
        return PollingActivitySource(
            rpc,
            interval_seconds=settings.polling_interval_seconds,
            signature_limit=settings.polling_signature_limit,
            max_pages=settings.polling_max_pages,
            max_fetch_attempts=settings.polling_max_fetch_attempts,
            **common,
        )
    return WebsocketActivitySource(
        settings.solana_ws_url,
        rpc,
        commitment=settings.rpc_commitment,
        **common,
    )


def build_notification_sink(settings: Settings) -> NotificationSink:
    if settings.telegram_bot_token:
        return TelegramNotificationSink.from_token(settings.telegram_bot_token)
    logger.warning("container.telegram_disabled")
    return LoggingNotificationSink()


async def build_container(settings: Settings) -> Container:
    """Build every component. Tables are created if missing.

    Raises:
        ConfigurationError: Invalid configuration (nothing is started).
    """
    settings.validate_for_startup()

    engine = create_engine(settings)
    await init_db(engine)
    session_factory = create_session_factory(engine)

    event_bus = EventBus()
    rpc = SolanaRpcClient(
        settings.solana_rpc_url,
        timeout_seconds=settings.rpc_timeout_seconds,
        max_retries=settings.rpc_max_retries,
        retry_base_delay=settings.rpc_retry_base_delay,
        commitment=settings.rpc_commitment,
        circuit_breaker=CircuitBreaker(
            "rpc",
            failure_threshold=settings.circuit_breaker_failure_threshold,
            timeout_seconds=settings.circuit_breaker_recovery_timeout,
            excluded_exceptions=(RpcError,),
        ),
    )
    aggregator = JupiterClient(
        rpc,
        api_url=settings.jupiter_api_url,
        timeout_seconds=settings.aggregator_timeout_seconds,
        max_retries=settings.aggregator_max_retries,
        retry_base_delay=settings.aggregator_retry_base_delay,
        circuit_breaker=CircuitBreaker(
            "jupiter",
            failure_threshold=settings.circuit_breaker_failure_threshold,
            timeout_seconds=settings.circuit_breaker_recovery_timeout,
            excluded_exceptions=(QuoteUnavailableError,),
        ),
    )
    custody = SolanaCustodyProvider(rpc, EncryptionManager(settings.encryption_key))

    users = SQLAlchemyUserRepository(session_factory)
    wallets = SQLAlchemyWalletRepository(session_factory)
    ledger = SQLAlchemyTradeLedger(session_factory)

    sink = build_notification_sink(settings)
    NotificationDispatcher(sink).register(event_bus)

    queue = ExecutionQueue(
        users=users,
        ledger=ledger,
        aggregator=aggregator,
        custody=custody,
        event_bus=event_bus,
        eligibility=EligibilityFilter(
            min_trade_interval=timedelta(seconds=settings.min_trade_interval_seconds),
            fee_buffer=settings.fee_buffer_sol,
            scaling_factor=settings.copy_scaling_factor,
            native_asset=settings.base_asset_mint,
        ),
        max_concurrent_trades=settings.max_concurrent_trades,
        balance_timeout=settings.balance_timeout_seconds,
        quote_timeout=settings.quote_timeout_seconds,
        swap_timeout=settings.swap_timeout_seconds,
        seen_cache_size=settings.seen_attempts_cache_size,
        native_asset=settings.base_asset_mint,
    )

    source = build_activity_source(settings, rpc, event_bus)
    service = CopyTradingService(
        settings=settings,
        source=source,
        parser=SwapParser(
            allowed_program_ids=settings.swap_program_ids,
            base_asset=settings.base_asset_mint,
            stable_assets=settings.stable_asset_mints,
        ),
        asset_policy=build_asset_policy(settings),
        metadata=RpcTokenMetadataProvider(rpc, cache_size=settings.token_metadata_cache_size),
        registry=WalletRegistry(),
        wallets=wallets,
        users=users,
        ledger=ledger,
        queue=queue,
        custody=custody,
    )

    logger.info(
        "container.built",
        extra={"activity_source": settings.activity_source, "asset_policy": settings.asset_policy},
    )
    return Container(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        event_bus=event_bus,
        rpc=rpc,
        aggregator=aggregator,
        source=source,
        sink=sink,
        queue=queue,
        service=service,
    )
