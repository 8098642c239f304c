"""Base AggregateRoot class for domain model.

AggregateRoot - головний Entity в aggregate: контролює свої інваріанти
і накопичує domain events, які infrastructure публікує після збереження.
"""

from typing import List

from .domain_event import DomainEvent
from .entity import Entity, EntityId


class AggregateRoot(Entity):
    """Base class for aggregate roots.

    Events додаються в aggregate але не публікуються одразу: caller
    забирає їх через get_domain_events() після запису в TradeLedger.

    Example:
        >>> attempt = CopyTradeAttempt.create(user_id=7, signal=swap)
        >>> attempt.start_execution()
        >>> attempt.mark_succeeded(input_asset=WSOL, output_asset=mint, result=result)
        >>> attempt.get_domain_events()  # [CopyTradeSucceededEvent(...)]
    """

    def __init__(self, id: EntityId | None = None) -> None:
        super().__init__(id)
        self._domain_events: List[DomainEvent] = []

    def add_domain_event(self, event: DomainEvent) -> None:
        """Add domain event to pending events list.

        Args:
            event: Domain event to add.
        """
        self._domain_events.append(event)

    def get_domain_events(self) -> List[DomainEvent]:
        """Get all pending domain events.

        Returns:
            Copy of the pending events list.
        """
        return self._domain_events.copy()

    def clear_domain_events(self) -> None:
        """Clear pending events after they were published."""
        self._domain_events.clear()

    @property
    def has_domain_events(self) -> bool:
        """Check if aggregate has pending domain events."""
        return len(self._domain_events) > 0
