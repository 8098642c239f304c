"""SQLAlchemy implementation of TradeLedger."""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from alphacopy.domain.trading.entities import TradeRecord
from alphacopy.domain.trading.repositories import TradeLedger
from alphacopy.domain.trading.value_objects import AttemptState
from alphacopy.infrastructure.persistence.sqlalchemy.mappers import TradeRecordMapper
from alphacopy.infrastructure.persistence.sqlalchemy.models import TradeRecordModel

logger = logging.getLogger(__name__)


class SQLAlchemyTradeLedger(TradeLedger):
    """Append-only trade ledger.

    Example:
        >>> ledger = SQLAlchemyTradeLedger(session_factory)
        >>> await ledger.record(attempt.record)
        True
        >>> await ledger.record(attempt.record)  # same attempt id
        False
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._mapper = TradeRecordMapper()

    async def record(self, record: TradeRecord) -> bool:
        try:
            async with self._session_factory() as session, session.begin():
                if await session.get(TradeRecordModel, record.id) is not None:
                    logger.debug("trade_ledger.duplicate", extra={"attempt_id": record.id})
                    return False
                session.add(self._mapper.to_model(record))
        except IntegrityError:
            # concurrent insert of the same attempt id
            logger.debug("trade_ledger.duplicate", extra={"attempt_id": record.id})
            return False
        return True

    async def has_attempt(self, attempt_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TradeRecordModel.id).where(TradeRecordModel.id == attempt_id)
            )
            return result.first() is not None

    async def list_succeeded(
        self,
        since: datetime | None = None,
        user_id: int | None = None,
    ) -> list[TradeRecord]:
        stmt = select(TradeRecordModel).where(
            TradeRecordModel.status == AttemptState.SUCCEEDED.value
        )
        if since is not None:
            stmt = stmt.where(TradeRecordModel.created_at >= since)
        if user_id is not None:
            stmt = stmt.where(TradeRecordModel.user_id == user_id)
        stmt = stmt.order_by(TradeRecordModel.created_at.asc())

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [self._mapper.to_entity(model) for model in result.scalars().all()]

    async def list_for_user(self, user_id: int, limit: int = 20) -> list[TradeRecord]:
        stmt = (
            select(TradeRecordModel)
            .where(TradeRecordModel.user_id == user_id)
            .order_by(TradeRecordModel.created_at.desc())
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [self._mapper.to_entity(model) for model in result.scalars().all()]
