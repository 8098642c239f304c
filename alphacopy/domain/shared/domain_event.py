"""Base DomainEvent class for event-driven architecture.

DomainEvent - щось важливе що сталось в domain (copy trade succeeded,
activity source degraded), про що треба повідомити інші частини системи.
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent(ABC):
    """Base class for all domain events.

    Events іменуються в минулому часі (CopyTradeSucceeded, SourceDegraded),
    immutable, і несуть всі дані потрібні handlers.

    Example:
        >>> @dataclass(frozen=True)
        ... class CopyTradeFailedEvent(DomainEvent):
        ...     user_id: int
        ...     reason: str

        >>> event_bus.subscribe(CopyTradeFailedEvent, notify_user)
    """

    event_id: UUID = field(default_factory=uuid4, init=False)
    """Унікальний ID події (auto-generated)."""

    occurred_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc), init=False
    )
    """Час коли подія сталась (auto-generated, UTC)."""

    @property
    def event_name(self) -> str:
        """Event class name (e.g., "CopyTradeSucceededEvent")."""
        return self.__class__.__name__

    def __repr__(self) -> str:
        return f"{self.event_name}(event_id={self.event_id}, occurred_at={self.occurred_at})"
