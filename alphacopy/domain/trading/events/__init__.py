"""Trading domain events."""

from .trade_events import CopyTradeFailedEvent, CopyTradeSucceededEvent

__all__ = ["CopyTradeSucceededEvent", "CopyTradeFailedEvent"]
