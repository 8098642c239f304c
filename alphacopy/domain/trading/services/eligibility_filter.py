"""EligibilityFilter - Domain Service deciding whether a user copies a signal.

Pure and side-effect free: no I/O, no clock, no mutation. Everything it
needs (user, settings, counters, balance, now) is passed in, so the same
function serves the enqueue-time pre-check and the execution-time re-check.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from alphacopy.domain.signals.value_objects import WRAPPED_SOL_MINT, SwapEvent

from ..entities import User
from ..value_objects import Allow, Decision, Deny, DenyReason, PerUserCounters, UserSettings

DEFAULT_MIN_TRADE_INTERVAL = timedelta(seconds=30)
DEFAULT_FEE_BUFFER = Decimal("0.01")

_LAMPORT = Decimal("0.000000001")


class EligibilityFilter:
    """Allow/deny a (user, signal) pair and size the copy trade.

    Checks, first failing wins:
    1. auto trading disabled → auto-disabled
    2. buy_only / sell_only excludes the direction → direction-filtered
    3. traded asset at max_trades_per_token → token-cap-reached
    4. trades in the last hour at max_trades_per_hour → hourly-cap-reached
    5. last trade closer than min_trade_interval → cooldown-active
    6. no linked custody wallet → no-wallet
    7. balance < trade_amount + fee_buffer → insufficient-balance
       (skipped when balance is None, i.e. before execution)

    Sizing: the fixed trade_amount. With a scaling_factor configured it is
    min(trade_amount, source SOL amount * scaling_factor), so small leader
    trades are copied proportionally; when the source amount is not in SOL
    (stable-quoted or ambiguous swaps) the fixed trade_amount still applies.

    Example:
        >>> decision = EligibilityFilter().evaluate(user, user.settings, counters, event, now)
        >>> if decision.allowed:
        ...     spend(decision.amount)
    """

    def __init__(
        self,
        *,
        min_trade_interval: timedelta = DEFAULT_MIN_TRADE_INTERVAL,
        fee_buffer: Decimal = DEFAULT_FEE_BUFFER,
        scaling_factor: Decimal | None = None,
        native_asset: str = WRAPPED_SOL_MINT,
    ) -> None:
        if scaling_factor is not None and scaling_factor <= 0:
            raise ValueError("scaling_factor must be positive")
        self.min_trade_interval = min_trade_interval
        self.fee_buffer = fee_buffer
        self.scaling_factor = scaling_factor
        self.native_asset = native_asset

    def evaluate(
        self,
        user: User,
        settings: UserSettings,
        counters: PerUserCounters,
        signal: SwapEvent,
        now: datetime,
        balance: Decimal | None = None,
    ) -> Decision:
        """Decide whether `user` copies `signal` at `now`.

        Args:
            user: Subscriber (wallet link is checked).
            settings: Subscriber settings snapshot.
            counters: Subscriber counters snapshot (rolled forward here).
            signal: Detected swap.
            now: Evaluation time.
            balance: Native balance in SOL, None to skip the balance check.

        Returns:
            Allow(amount) or Deny(reason).
        """
        if not settings.auto_trading_enabled:
            return Deny(DenyReason.AUTO_DISABLED)

        if not settings.allows_direction(signal.direction):
            return Deny(
                DenyReason.DIRECTION_FILTERED,
                f"{signal.direction.value} excluded",
            )

        asset = signal.traded_asset
        token_count = counters.token_count(asset)
        if token_count >= settings.max_trades_per_token:
            return Deny(
                DenyReason.TOKEN_CAP_REACHED,
                f"{token_count}/{settings.max_trades_per_token} trades for {asset}",
            )

        rolled = counters.rolled_forward(now)
        if rolled.trades_this_hour >= settings.max_trades_per_hour:
            return Deny(
                DenyReason.HOURLY_CAP_REACHED,
                f"{rolled.trades_this_hour}/{settings.max_trades_per_hour} trades this hour",
            )

        if (
            rolled.last_trade_at is not None
            and now - rolled.last_trade_at < self.min_trade_interval
        ):
            return Deny(DenyReason.COOLDOWN_ACTIVE)

        if not user.has_wallet:
            return Deny(DenyReason.NO_WALLET)

        if balance is not None:
            required = settings.trade_amount + self.fee_buffer
            if balance < required:
                return Deny(
                    DenyReason.INSUFFICIENT_BALANCE,
                    f"balance {balance} SOL < required {required} SOL",
                )

        return Allow(self._size(settings, signal))

    def _size(self, settings: UserSettings, signal: SwapEvent) -> Decimal:
        source_amount = signal.base_amount
        if (
            self.scaling_factor is None
            or source_amount is None
            or source_amount <= 0
            or signal.base_asset != self.native_asset
        ):
            return settings.trade_amount

        scaled = (source_amount * self.scaling_factor).quantize(_LAMPORT)
        return min(settings.trade_amount, scaled)
