"""SQLAlchemy ORM models."""

from .base import Base
from .trade_record_model import TradeRecordModel
from .user_model import UserModel
from .wallet_model import SubscriptionModel, TrackedWalletModel

__all__ = [
    "Base",
    "UserModel",
    "TrackedWalletModel",
    "SubscriptionModel",
    "TradeRecordModel",
]
