"""Tracked wallet + subscription ORM models."""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class TrackedWalletModel(Base):
    """ORM model для TrackedWallet (address is the natural key)."""

    __tablename__ = "tracked_wallets"

    address: Mapped[str] = mapped_column(String(44), primary_key=True)
    label: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class SubscriptionModel(Base):
    """User ↔ tracked wallet subscription."""

    __tablename__ = "subscriptions"
    __table_args__ = (UniqueConstraint("user_id", "address", name="uq_subscription_user_wallet"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    address: Mapped[str] = mapped_column(
        String(44), ForeignKey("tracked_wallets.address"), nullable=False, index=True
    )
