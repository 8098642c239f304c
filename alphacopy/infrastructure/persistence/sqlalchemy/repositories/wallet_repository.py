"""SQLAlchemy implementation of WalletRepository."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from alphacopy.domain.wallets.entities import TrackedWallet
from alphacopy.domain.wallets.repositories import WalletRepository
from alphacopy.infrastructure.persistence.sqlalchemy.mappers import TrackedWalletMapper
from alphacopy.infrastructure.persistence.sqlalchemy.models import (
    SubscriptionModel,
    TrackedWalletModel,
)


class SQLAlchemyWalletRepository(WalletRepository):
    """Tracked wallets + subscriptions store."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._mapper = TrackedWalletMapper()

    async def save_wallet(self, wallet: TrackedWallet) -> None:
        async with self._session_factory() as session, session.begin():
            existing = await session.get(TrackedWalletModel, wallet.address)
            if existing is None:
                session.add(self._mapper.to_model(wallet))
            else:
                self._mapper.update_model_from_entity(existing, wallet)

    async def list_wallets(self) -> list[TrackedWallet]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TrackedWalletModel).order_by(TrackedWalletModel.added_at)
            )
            return [self._mapper.to_entity(model) for model in result.scalars().all()]

    async def add_subscription(self, user_id: int, address: str) -> None:
        async with self._session_factory() as session, session.begin():
            stmt = select(SubscriptionModel.id).where(
                SubscriptionModel.user_id == user_id,
                SubscriptionModel.address == address,
            )
            if (await session.execute(stmt)).first() is None:
                session.add(SubscriptionModel(user_id=user_id, address=address))

    async def remove_subscription(self, user_id: int, address: str) -> None:
        async with self._session_factory() as session, session.begin():
            await session.execute(
                delete(SubscriptionModel).where(
                    SubscriptionModel.user_id == user_id,
                    SubscriptionModel.address == address,
                )
            )

    async def list_subscriptions(self) -> list[tuple[int, str]]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(SubscriptionModel.user_id, SubscriptionModel.address).order_by(
                    SubscriptionModel.id
                )
            )
            return [(row.user_id, row.address) for row in result.all()]
