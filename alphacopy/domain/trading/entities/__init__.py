"""Trading entities."""

from .copy_trade_attempt import CopyTradeAttempt, attempt_id_for
from .trade_record import TradeRecord
from .user import User

__all__ = ["CopyTradeAttempt", "attempt_id_for", "TradeRecord", "User"]
