"""TradeRecord ORM Model - copy trade ledger."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class TradeRecordModel(Base):
    """ORM model для TradeRecord.

    Це ТІЛЬКИ для персистенції - БЕЗ business logic!
    `id` is the deterministic attempt id, which makes inserts idempotent.
    """

    __tablename__ = "trade_records"
    __table_args__ = (
        Index("ix_trade_records_user_status_created", "user_id", "status", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    source_wallet: Mapped[str] = mapped_column(String(44), nullable=False, index=True)

    tx_signature_in: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    tx_signature_out: Mapped[str | None] = mapped_column(String(100), nullable=True)

    input_asset: Mapped[str] = mapped_column(String(44), nullable=False)
    output_asset: Mapped[str] = mapped_column(String(44), nullable=False)
    # base units (lamports / token atoms)
    amount_in: Mapped[Decimal] = mapped_column(Numeric(precision=40, scale=0), nullable=False)
    amount_out: Mapped[Decimal] = mapped_column(Numeric(precision=40, scale=0), nullable=False)

    direction: Mapped[str] = mapped_column(String(10), nullable=False)  # buy / sell / ambiguous
    status: Mapped[str] = mapped_column(String(20), nullable=False)  # succeeded / failed
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
