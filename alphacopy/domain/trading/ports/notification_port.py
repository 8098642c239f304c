"""NotificationSink - front-end receiving copy trade outcomes."""

from abc import ABC, abstractmethod

from ..entities import TradeRecord


class NotificationSink(ABC):
    """Receives exactly one notification per terminal attempt."""

    @abstractmethod
    async def trade_succeeded(self, user_id: int, record: TradeRecord) -> None:
        """Copy trade went through."""

    @abstractmethod
    async def trade_failed(self, user_id: int, reason: str) -> None:
        """Copy trade failed with `reason`."""
