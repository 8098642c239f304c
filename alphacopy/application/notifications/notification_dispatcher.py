"""NotificationDispatcher - forwards terminal copy trade events to the sink."""

import logging

from alphacopy.domain.trading.events import CopyTradeFailedEvent, CopyTradeSucceededEvent
from alphacopy.domain.trading.ports import NotificationSink
from alphacopy.infrastructure.messaging import EventBus

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """EventBus subscriber: one notification per terminal attempt.

    Denials never produce events, so they never notify.

    Example:
        >>> dispatcher = NotificationDispatcher(sink)
        >>> dispatcher.register(event_bus)
    """

    def __init__(self, sink: NotificationSink) -> None:
        self._sink = sink

    def register(self, event_bus: EventBus) -> None:
        event_bus.subscribe(CopyTradeSucceededEvent, self.on_trade_succeeded)
        event_bus.subscribe(CopyTradeFailedEvent, self.on_trade_failed)

    def unregister(self, event_bus: EventBus) -> None:
        event_bus.unsubscribe(CopyTradeSucceededEvent, self.on_trade_succeeded)
        event_bus.unsubscribe(CopyTradeFailedEvent, self.on_trade_failed)

    async def on_trade_succeeded(self, event: CopyTradeSucceededEvent) -> None:
        logger.debug(
            "notification.trade_succeeded",
            extra={"user_id": event.user_id, "attempt_id": event.attempt_id},
        )
        await self._sink.trade_succeeded(event.user_id, event.record)

    async def on_trade_failed(self, event: CopyTradeFailedEvent) -> None:
        logger.debug(
            "notification.trade_failed",
            extra={"user_id": event.user_id, "attempt_id": event.attempt_id},
        )
        await self._sink.trade_failed(event.user_id, event.reason)
