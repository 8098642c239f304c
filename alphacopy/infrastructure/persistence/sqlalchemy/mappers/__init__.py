"""Domain ↔ ORM mappers."""

from .trade_record_mapper import TradeRecordMapper
from .user_mapper import UserMapper
from .wallet_mapper import TrackedWalletMapper

__all__ = ["TradeRecordMapper", "TrackedWalletMapper", "UserMapper"]
