"""Application layer fixtures: in-memory repositories and mocked adapters."""

from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from alphacopy.domain.trading.entities import TradeRecord, User
from alphacopy.domain.trading.events import CopyTradeFailedEvent, CopyTradeSucceededEvent
from alphacopy.domain.trading.ports import AggregatorPort, CustodyPort
from alphacopy.domain.trading.repositories import TradeLedger, UserRepository
from alphacopy.domain.trading.value_objects import Quote, SwapResult, TokenBalance
from alphacopy.infrastructure.messaging import EventBus


class InMemoryUserRepository(UserRepository):
    def __init__(self, users: list[User] | None = None) -> None:
        self.users = {user.id: user for user in users or []}

    async def get(self, user_id: int) -> User | None:
        return self.users.get(user_id)

    async def save(self, user: User) -> None:
        self.users[user.id] = user

    async def list_all(self) -> list[User]:
        return list(self.users.values())


class InMemoryTradeLedger(TradeLedger):
    def __init__(self) -> None:
        self.records: dict[str, TradeRecord] = {}

    async def record(self, record: TradeRecord) -> bool:
        if record.id in self.records:
            return False
        self.records[record.id] = record
        return True

    async def has_attempt(self, attempt_id: str) -> bool:
        return attempt_id in self.records

    async def list_succeeded(
        self, since: datetime | None = None, user_id: int | None = None
    ) -> list[TradeRecord]:
        records = [
            r
            for r in self.records.values()
            if r.succeeded
            and (since is None or r.created_at >= since)
            and (user_id is None or r.user_id == user_id)
        ]
        return sorted(records, key=lambda r: r.created_at)

    async def list_for_user(self, user_id: int, limit: int = 20) -> list[TradeRecord]:
        records = [r for r in self.records.values() if r.user_id == user_id]
        return sorted(records, key=lambda r: r.created_at, reverse=True)[:limit]


@pytest.fixture
def users():
    return InMemoryUserRepository()


@pytest.fixture
def ledger():
    return InMemoryTradeLedger()


@pytest.fixture
def published():
    """Domain events published on the event bus, in order."""
    return []


@pytest.fixture
def event_bus(published):
    bus = EventBus()

    async def capture(event):
        published.append(event)

    bus.subscribe(CopyTradeSucceededEvent, capture)
    bus.subscribe(CopyTradeFailedEvent, capture)
    return bus


@pytest.fixture
def mock_aggregator():
    """AggregatorPort that quotes 1:1000 and fills every swap."""
    aggregator = AsyncMock(spec=AggregatorPort)

    async def quote(input_mint, output_mint, amount, slippage_bps):
        return Quote(
            input_mint=input_mint,
            output_mint=output_mint,
            in_amount=amount,
            out_amount=amount * 1000,
            slippage_bps=slippage_bps,
            route={"inAmount": str(amount)},
        )

    async def swap(quote, signer):
        return SwapResult(
            signature=f"out-{quote.input_mint[:4]}-{quote.in_amount}",
            in_amount=quote.in_amount,
            out_amount=quote.out_amount,
        )

    aggregator.get_quote.side_effect = quote
    aggregator.execute_swap.side_effect = swap
    return aggregator


@pytest.fixture
def mock_custody(token_mint):
    """CustodyPort with 5 SOL and no token holdings."""
    custody = AsyncMock(spec=CustodyPort)
    custody.get_balance.return_value = Decimal("5")
    custody.get_token_balance.return_value = TokenBalance(mint=token_mint, amount=0, decimals=6)
    custody.signer_for.return_value = MagicMock(public_key="4Nd1mBQtrMJVYVfKf2PJy9NZUZdTAsp7D4xWLs4gDB4T")
    return custody


@pytest.fixture
def eligibility():
    """EligibilityFilter without cooldown so tests can trade back to back, 0.1 scaling."""
    from alphacopy.domain.trading.services import EligibilityFilter

    return EligibilityFilter(min_trade_interval=timedelta(0), scaling_factor=Decimal("0.1"))
