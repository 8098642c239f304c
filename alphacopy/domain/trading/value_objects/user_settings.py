"""UserSettings - per-user copy trading configuration."""

from dataclasses import asdict, dataclass, fields, replace
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar

from alphacopy.domain.shared import ValueObject
from alphacopy.domain.signals.value_objects import SwapDirection

from ..exceptions import InvalidSettingsError


@dataclass(frozen=True)
class UserSettings(ValueObject):
    """Immutable per-user settings.

    Mutated only by explicit user action, through `with_updates()` which
    returns a new instance. `buy_only` and `sell_only` are mutually
    exclusive: turning one on turns the other off.

    Example:
        >>> settings = UserSettings(sell_only=True)
        >>> settings.with_updates(buy_only=True).sell_only
        False
    """

    trade_amount: Decimal = Decimal("0.01")
    slippage_bps: int = 300
    auto_trading_enabled: bool = False
    buy_only: bool = False
    sell_only: bool = False
    delay_ms: int = 1000
    max_trades_per_token: int = 3
    max_trades_per_hour: int = 10

    MIN_TRADE_AMOUNT: ClassVar[Decimal] = Decimal("0.001")
    MAX_TRADE_AMOUNT: ClassVar[Decimal] = Decimal("10")
    MAX_SLIPPAGE_BPS: ClassVar[int] = 5000
    MAX_DELAY_MS: ClassVar[int] = 60_000

    def __post_init__(self) -> None:
        try:
            amount = Decimal(str(self.trade_amount))
        except InvalidOperation as e:
            raise InvalidSettingsError(
                "trade_amount must be a number", trade_amount=self.trade_amount
            ) from e
        object.__setattr__(self, "trade_amount", amount)

        if not self.MIN_TRADE_AMOUNT <= amount <= self.MAX_TRADE_AMOUNT:
            raise InvalidSettingsError(
                f"trade_amount must be between {self.MIN_TRADE_AMOUNT} and {self.MAX_TRADE_AMOUNT} SOL",
                trade_amount=amount,
            )
        if not 1 <= self.slippage_bps <= self.MAX_SLIPPAGE_BPS:
            raise InvalidSettingsError(
                f"slippage_bps must be between 1 and {self.MAX_SLIPPAGE_BPS}",
                slippage_bps=self.slippage_bps,
            )
        if not 0 <= self.delay_ms <= self.MAX_DELAY_MS:
            raise InvalidSettingsError(
                f"delay_ms must be between 0 and {self.MAX_DELAY_MS}",
                delay_ms=self.delay_ms,
            )
        if self.max_trades_per_token < 1:
            raise InvalidSettingsError(
                "max_trades_per_token must be at least 1",
                max_trades_per_token=self.max_trades_per_token,
            )
        if self.max_trades_per_hour < 1:
            raise InvalidSettingsError(
                "max_trades_per_hour must be at least 1",
                max_trades_per_hour=self.max_trades_per_hour,
            )
        if self.buy_only and self.sell_only:
            raise InvalidSettingsError("buy_only and sell_only are mutually exclusive")

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))

    def with_updates(self, **changes: Any) -> "UserSettings":
        """Return a copy with `changes` applied.

        Raises:
            InvalidSettingsError: Unknown field, both direction flags set
                to True in one update, or a value out of range.
        """
        unknown = set(changes) - self.field_names()
        if unknown:
            raise InvalidSettingsError(
                "Unknown settings", fields=",".join(sorted(unknown))
            )

        if changes.get("buy_only") is True and changes.get("sell_only") is True:
            raise InvalidSettingsError("buy_only and sell_only are mutually exclusive")
        if changes.get("buy_only") is True:
            changes["sell_only"] = False
        elif changes.get("sell_only") is True:
            changes["buy_only"] = False

        return replace(self, **changes)

    def allows_direction(self, direction: SwapDirection) -> bool:
        """Direction filter. Ambiguous swaps pass only when no filter is set."""
        if self.buy_only:
            return direction == SwapDirection.BUY
        if self.sell_only:
            return direction == SwapDirection.SELL
        return True

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation for persistence."""
        data = asdict(self)
        data["trade_amount"] = str(self.trade_amount)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "UserSettings":
        """Build from persisted dict, ignoring unknown keys."""
        if not data:
            return cls()
        known = cls.field_names()
        return cls(**{k: v for k, v in data.items() if k in known})
