"""SQLAlchemy implementation of UserRepository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from alphacopy.domain.trading.entities import User
from alphacopy.domain.trading.repositories import UserRepository
from alphacopy.infrastructure.persistence.sqlalchemy.mappers import UserMapper
from alphacopy.infrastructure.persistence.sqlalchemy.models import UserModel


class SQLAlchemyUserRepository(UserRepository):
    """SQLAlchemy implementation of UserRepository port.

    Opens one short session per call: execution workers read users
    concurrently and must not share a session.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._mapper = UserMapper()

    async def get(self, user_id: int) -> User | None:
        async with self._session_factory() as session:
            model = await session.get(UserModel, user_id)
            return self._mapper.to_entity(model) if model else None

    async def save(self, user: User) -> None:
        async with self._session_factory() as session, session.begin():
            existing = await session.get(UserModel, user.id)
            if existing is None:
                session.add(self._mapper.to_model(user))
            else:
                self._mapper.update_model_from_entity(existing, user)

    async def list_all(self) -> list[User]:
        async with self._session_factory() as session:
            result = await session.execute(select(UserModel).order_by(UserModel.id))
            return [self._mapper.to_entity(model) for model in result.scalars().all()]
