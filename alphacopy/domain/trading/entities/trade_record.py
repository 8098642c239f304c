"""TradeRecord - persisted outcome of a terminal CopyTradeAttempt."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from alphacopy.domain.signals.value_objects import SwapDirection

from ..value_objects import AttemptState


@dataclass(frozen=True)
class TradeRecord:
    """Ledger row for one copy trade.

    `id` is the deterministic attempt id, so writing the same attempt twice
    is idempotent. Amounts are base units (lamports / token atoms) of
    `input_asset` / `output_asset`.

    Attributes:
        tx_signature_in: Alpha wallet's swap signature (the signal).
        tx_signature_out: Our swap signature, None for failed attempts.
        direction: Direction of the copied signal.
        status: SUCCEEDED or FAILED.
    """

    id: str
    user_id: int
    source_wallet: str
    tx_signature_in: str
    tx_signature_out: str | None
    input_asset: str
    output_asset: str
    amount_in: Decimal
    amount_out: Decimal
    direction: SwapDirection
    status: AttemptState
    error: str | None
    created_at: datetime

    @property
    def succeeded(self) -> bool:
        return self.status == AttemptState.SUCCEEDED

    @property
    def traded_asset(self) -> str:
        """Asset the per-token cap counts (bought token, or sold token)."""
        if self.direction == SwapDirection.SELL:
            return self.input_asset
        return self.output_asset
