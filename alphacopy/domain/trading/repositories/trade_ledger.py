"""TradeLedger - persistence port for copy trade outcomes."""

from abc import ABC, abstractmethod
from datetime import datetime

from ..entities import TradeRecord


class TradeLedger(ABC):
    """Append-only record of terminal copy trade attempts.

    Implementations: SQLAlchemyTradeLedger (infrastructure).
    """

    @abstractmethod
    async def record(self, record: TradeRecord) -> bool:
        """Persist a terminal attempt.

        Idempotent on `record.id`: a second write of the same attempt is
        ignored.

        Returns:
            True if inserted, False if the attempt was already recorded.
        """

    @abstractmethod
    async def has_attempt(self, attempt_id: str) -> bool:
        """Check whether an attempt id was already recorded."""

    @abstractmethod
    async def list_succeeded(
        self,
        since: datetime | None = None,
        user_id: int | None = None,
    ) -> list[TradeRecord]:
        """Succeeded records, oldest first (used to rebuild counters)."""

    @abstractmethod
    async def list_for_user(self, user_id: int, limit: int = 20) -> list[TradeRecord]:
        """Latest records of a user, newest first."""
