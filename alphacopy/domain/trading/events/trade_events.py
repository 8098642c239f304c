"""Copy trade domain events.

Exactly one of these is published per terminal CopyTradeAttempt; the
notification dispatcher turns it into one user notification.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from alphacopy.domain.shared import DomainEvent

if TYPE_CHECKING:
    from ..entities.trade_record import TradeRecord


@dataclass(frozen=True)
class CopyTradeSucceededEvent(DomainEvent):
    """Copy trade swap submitted successfully."""

    attempt_id: str
    user_id: int
    record: "TradeRecord"


@dataclass(frozen=True)
class CopyTradeFailedEvent(DomainEvent):
    """Copy trade attempt failed (terminal, not retried)."""

    attempt_id: str
    user_id: int
    reason: str
    record: "TradeRecord"
