"""SQLAlchemy repositories."""

from .trade_ledger import SQLAlchemyTradeLedger
from .user_repository import SQLAlchemyUserRepository
from .wallet_repository import SQLAlchemyWalletRepository

__all__ = [
    "SQLAlchemyTradeLedger",
    "SQLAlchemyUserRepository",
    "SQLAlchemyWalletRepository",
]
