"""SwapEvent - normalized description of a swap made by an alpha wallet."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from alphacopy.domain.shared import ValueObject, validate_value_object

from .swap_direction import SwapDirection


@dataclass(frozen=True)
class SwapEvent(ValueObject):
    """Immutable swap signal.

    `tx_signature` is the idempotency key downstream: the same signature
    never produces two executions for the same user.

    Amounts are UI amounts (already divided by mint decimals).

    Example:
        >>> event = SwapEvent(
        ...     source_wallet="Alpha111...",
        ...     tx_signature="5h3k...",
        ...     protocol="jupiter",
        ...     input_asset=WRAPPED_SOL_MINT,
        ...     output_asset="TokenX...",
        ...     input_amount=Decimal("2.5"),
        ...     output_amount=Decimal("1200000"),
        ...     observed_at=now,
        ...     direction=SwapDirection.BUY,
        ... )
        >>> event.traded_asset  # "TokenX..."
        >>> event.base_amount   # Decimal("2.5")
    """

    source_wallet: str
    tx_signature: str
    protocol: str
    input_asset: str
    output_asset: str
    input_amount: Decimal
    output_amount: Decimal
    observed_at: datetime
    direction: SwapDirection

    def __post_init__(self) -> None:
        validate_value_object(bool(self.tx_signature), "tx_signature is required")
        validate_value_object(
            self.input_asset != self.output_asset,
            "input and output asset must differ",
        )
        validate_value_object(
            self.input_amount >= 0 and self.output_amount >= 0,
            "swap amounts must be non-negative",
        )

    @property
    def traded_asset(self) -> str:
        """The non-base side of the swap (what is being bought or sold)."""
        if self.direction == SwapDirection.SELL:
            return self.input_asset
        return self.output_asset

    @property
    def base_asset(self) -> str | None:
        """The base/stable side, None for ambiguous swaps."""
        if self.direction == SwapDirection.BUY:
            return self.input_asset
        if self.direction == SwapDirection.SELL:
            return self.output_asset
        return None

    @property
    def base_amount(self) -> Decimal | None:
        """Amount of the base/stable side, None for ambiguous swaps."""
        if self.direction == SwapDirection.BUY:
            return self.input_amount
        if self.direction == SwapDirection.SELL:
            return self.output_amount
        return None
