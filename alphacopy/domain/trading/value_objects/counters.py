"""PerUserCounters - in-memory rate-limit state of one user.

Owned exclusively by ExecutionQueue. Never persisted: rebuilt from the
TradeLedger's succeeded records on startup.

The hourly limit is a sliding log of successful trade times: a trade
counts while it is younger than one hour. This makes the invariant
"succeeded trades in any rolling 60-minute window <= max_trades_per_hour"
hold, which a fixed reset window would not guarantee at window edges.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Iterable, Mapping

HOUR = timedelta(hours=1)


@dataclass(frozen=True)
class PerUserCounters:
    """Immutable counters snapshot. Updates return a new instance.

    Attributes:
        trade_times: Succeeded trade timestamps, oldest first.
        token_trade_counts: Succeeded trades per traded asset.
        last_trade_at: Time of the latest succeeded trade.
    """

    trade_times: tuple[datetime, ...] = ()
    token_trade_counts: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType({})
    )
    last_trade_at: datetime | None = None

    @property
    def trades_this_hour(self) -> int:
        """Trades in the log. Call rolled_forward(now) first for an exact count."""
        return len(self.trade_times)

    @property
    def hour_window_reset_at(self) -> datetime | None:
        """When the oldest counted trade leaves the window (None if empty)."""
        if not self.trade_times:
            return None
        return self.trade_times[0] + HOUR

    def token_count(self, asset: str) -> int:
        return self.token_trade_counts.get(asset, 0)

    def rolled_forward(self, now: datetime) -> "PerUserCounters":
        """Drop trades that are an hour old or older at `now`."""
        cutoff = now - HOUR
        kept = tuple(t for t in self.trade_times if t > cutoff)
        if len(kept) == len(self.trade_times):
            return self
        return PerUserCounters(
            trade_times=kept,
            token_trade_counts=self.token_trade_counts,
            last_trade_at=self.last_trade_at,
        )

    def with_trade(self, asset: str, at: datetime) -> "PerUserCounters":
        """Record one succeeded trade of `asset` at `at`."""
        counts = dict(self.token_trade_counts)
        counts[asset] = counts.get(asset, 0) + 1
        rolled = self.rolled_forward(at)
        last = at if self.last_trade_at is None else max(self.last_trade_at, at)
        return PerUserCounters(
            trade_times=tuple(sorted((*rolled.trade_times, at))),
            token_trade_counts=MappingProxyType(counts),
            last_trade_at=last,
        )

    def without_token(self, asset: str) -> "PerUserCounters":
        """Reset the per-token counter of `asset`."""
        if asset not in self.token_trade_counts:
            return self
        counts = {k: v for k, v in self.token_trade_counts.items() if k != asset}
        return PerUserCounters(
            trade_times=self.trade_times,
            token_trade_counts=MappingProxyType(counts),
            last_trade_at=self.last_trade_at,
        )

    @classmethod
    def from_history(
        cls,
        trades: Iterable[tuple[str, datetime]],
        now: datetime,
    ) -> "PerUserCounters":
        """Rebuild counters from (traded_asset, succeeded_at) pairs."""
        counters = cls()
        for asset, at in sorted(trades, key=lambda item: item[1]):
            counters = counters.with_trade(asset, at)
        return counters.rolled_forward(now)
