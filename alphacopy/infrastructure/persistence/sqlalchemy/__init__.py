"""SQLAlchemy persistence layer."""

from .database import create_engine, create_session_factory, init_db
from .models import Base, SubscriptionModel, TrackedWalletModel, TradeRecordModel, UserModel
from .repositories import (
    SQLAlchemyTradeLedger,
    SQLAlchemyUserRepository,
    SQLAlchemyWalletRepository,
)

__all__ = [
    # ORM Models
    "Base",
    "UserModel",
    "TrackedWalletModel",
    "SubscriptionModel",
    "TradeRecordModel",
    # Repositories
    "SQLAlchemyTradeLedger",
    "SQLAlchemyUserRepository",
    "SQLAlchemyWalletRepository",
    # Database
    "create_engine",
    "create_session_factory",
    "init_db",
]
