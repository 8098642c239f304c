"""Aggregator / custody value objects."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping

from alphacopy.domain.shared import ValueObject, validate_value_object


@dataclass(frozen=True)
class Quote(ValueObject):
    """Swap route returned by the aggregator.

    Amounts are in base units (lamports / token atoms). `route` is the
    provider's raw quote payload, passed back unchanged when building the
    swap transaction.
    """

    input_mint: str
    output_mint: str
    in_amount: int
    out_amount: int
    slippage_bps: int
    route: Mapping[str, Any] = field(default_factory=dict, compare=False)
    price_impact_pct: Decimal | None = None

    def __post_init__(self) -> None:
        validate_value_object(self.in_amount > 0, "Quote in_amount must be positive")
        validate_value_object(self.out_amount >= 0, "Quote out_amount must be non-negative")

    @property
    def expected_out(self) -> int:
        return self.out_amount


@dataclass(frozen=True)
class SwapResult(ValueObject):
    """Submitted swap transaction."""

    signature: str
    in_amount: int
    out_amount: int


@dataclass(frozen=True)
class TokenBalance(ValueObject):
    """SPL token holding of a wallet."""

    mint: str
    amount: int
    decimals: int

    @property
    def ui_amount(self) -> Decimal:
        return Decimal(self.amount).scaleb(-self.decimals)

    @property
    def is_empty(self) -> bool:
        return self.amount <= 0
