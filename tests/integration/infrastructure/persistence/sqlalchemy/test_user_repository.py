"""Integration tests for SQLAlchemyUserRepository."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from alphacopy.domain.trading.entities import User
from alphacopy.domain.trading.value_objects import UserSettings
from alphacopy.infrastructure.persistence.sqlalchemy import SQLAlchemyUserRepository


@pytest.fixture
def repository(session_factory):
    return SQLAlchemyUserRepository(session_factory)


class TestUserRepository:
    """Tests для save / get / list_all."""

    @pytest.mark.asyncio
    async def test_save_and_get(self, repository):
        # Arrange
        user = User(
            id=123456789,
            settings=UserSettings(trade_amount=Decimal("0.25"), buy_only=True),
            created_at=datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc),
        )

        # Act
        await repository.save(user)
        stored = await repository.get(123456789)

        # Assert
        assert stored is not None
        assert stored.id == 123456789
        assert stored.settings == user.settings
        assert stored.settings.trade_amount == Decimal("0.25")
        assert stored.has_wallet is False
        assert stored.created_at == user.created_at

    @pytest.mark.asyncio
    async def test_update_settings_and_wallet(self, repository):
        user = User(id=7)
        await repository.save(user)

        user.update_settings(auto_trading_enabled=True, slippage_bps=150)
        user.link_wallet("4Nd1mBQtrMJVYVfKf2PJy9NZUZdTAsp7D4xWLs4gDB4T", "gAAAAAB-encrypted")
        await repository.save(user)

        stored = await repository.get(7)
        assert stored.settings.auto_trading_enabled is True
        assert stored.settings.slippage_bps == 150
        assert stored.wallet_public_key == "4Nd1mBQtrMJVYVfKf2PJy9NZUZdTAsp7D4xWLs4gDB4T"
        assert stored.has_wallet is True

    @pytest.mark.asyncio
    async def test_unknown_user(self, repository):
        assert await repository.get(404) is None

    @pytest.mark.asyncio
    async def test_list_all(self, repository):
        await repository.save(User(id=9))
        await repository.save(User(id=3))

        users = await repository.list_all()

        assert [u.id for u in users] == [3, 9]
