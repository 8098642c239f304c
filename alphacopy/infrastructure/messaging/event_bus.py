"""Event Bus - domain events infrastructure.

- CopyTradeAttempt emits CopyTradeSucceeded / CopyTradeFailed
- Activity sources emit SourceDegraded / SourceRecovered / SourceOverflow
- Subscribers (notification dispatcher, status tracking) react
- Decoupling: domain не знає про subscribers
"""

import logging
from collections import defaultdict
from typing import Awaitable, Callable, Iterable, Type

from alphacopy.domain.shared import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], Awaitable[None]]


def _handler_name(handler: EventHandler) -> str:
    return getattr(handler, "__qualname__", None) or getattr(handler, "__name__", repr(handler))


class EventBus:
    """Event Bus для domain events.

    Handler failures are logged and isolated: one broken subscriber never
    prevents the others from running, and never propagates to the publisher.

    Example:
        >>> bus = EventBus()
        >>> bus.subscribe(CopyTradeSucceededEvent, dispatcher.on_trade_succeeded)
        >>> await bus.publish_all(attempt.get_domain_events())
        >>> attempt.clear_domain_events()
    """

    def __init__(self) -> None:
        self._subscribers: dict[Type[DomainEvent], list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        """Subscribe handler to event type."""
        self._subscribers[event_type].append(handler)
        logger.debug(
            "event_bus.subscription_added",
            extra={"event_type": event_type.__name__, "handler": _handler_name(handler)},
        )

    def unsubscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        """Unsubscribe handler from event type."""
        if handler in self._subscribers[event_type]:
            self._subscribers[event_type].remove(handler)
            logger.debug(
                "event_bus.subscription_removed",
                extra={"event_type": event_type.__name__, "handler": _handler_name(handler)},
            )

    async def publish(self, event: DomainEvent) -> None:
        """Publish single domain event to all handlers of its type."""
        event_type = type(event)
        handlers = list(self._subscribers.get(event_type, []))

        if not handlers:
            logger.debug(
                "event_bus.no_subscribers",
                extra={"event_type": event_type.__name__},
            )
            return

        for handler in handlers:
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    "event_bus.handler_failed",
                    extra={
                        "event_type": event_type.__name__,
                        "handler": _handler_name(handler),
                        "event_id": str(event.event_id),
                        "error": str(e),
                    },
                    exc_info=True,
                )

    async def publish_all(self, events: Iterable[DomainEvent]) -> None:
        """Publish multiple domain events in order."""
        for event in events:
            await self.publish(event)

    def clear_subscribers(self) -> None:
        """Clear all subscribers (useful for testing)."""
        self._subscribers.clear()

    def get_subscribers_count(self, event_type: Type[DomainEvent]) -> int:
        return len(self._subscribers.get(event_type, []))
