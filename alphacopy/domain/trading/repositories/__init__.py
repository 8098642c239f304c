"""Trading repository ports."""

from .trade_ledger import TradeLedger
from .user_repository import UserRepository

__all__ = ["TradeLedger", "UserRepository"]
