"""Asset eligibility policies - which traded tokens are worth copying.

Pluggable predicate applied to the traded asset of a SwapEvent after
parsing. Parser stays protocol-only; the policy can be swapped without
touching detection logic.

Known weaknesses of MemecoinHeuristic:
- symbol length and supply say little about whether a token is a memecoin
- metadata-less tokens (fresh launches) are rejected
- the exclusion list matches by symbol, so spoofed symbols pass or fail by name
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable


@dataclass(frozen=True)
class TokenMetadata:
    """Subset of on-chain token metadata used by asset policies."""

    mint: str
    symbol: str | None = None
    name: str | None = None
    supply: Decimal | None = None
    decimals: int | None = None


class AssetPolicy(ABC):
    """Decides whether swaps into/out of a token should be copied."""

    @abstractmethod
    def is_eligible(self, asset: str, metadata: TokenMetadata | None) -> bool:
        """Check if asset is eligible for copy trading.

        Args:
            asset: Token mint address.
            metadata: Token metadata, None if lookup failed.

        Returns:
            True if swaps involving this asset may be copied.
        """

    @property
    def needs_metadata(self) -> bool:
        """Whether callers should fetch metadata before calling is_eligible."""
        return True


class AllowAllAssets(AssetPolicy):
    """Copy every swap regardless of token."""

    def is_eligible(self, asset: str, metadata: TokenMetadata | None) -> bool:
        return True

    @property
    def needs_metadata(self) -> bool:
        return False


@dataclass(frozen=True)
class MemecoinHeuristic(AssetPolicy):
    """Symbol-length / exclusion-list / supply heuristic.

    A token is eligible when it has a symbol of at most `max_symbol_length`
    characters, that symbol is not in `excluded_symbols`, and total supply
    is strictly greater than `min_supply`.

    Example:
        >>> policy = MemecoinHeuristic()
        >>> policy.is_eligible("Mint", TokenMetadata("Mint", "BONK", supply=Decimal("9e13")))
        True
        >>> policy.is_eligible("Mint", TokenMetadata("Mint", "USDC", supply=Decimal("9e9")))
        False
    """

    max_symbol_length: int = 10
    excluded_symbols: frozenset[str] = field(
        default_factory=lambda: frozenset({"USDC", "USDT", "SOL", "BTC", "ETH"})
    )
    min_supply: Decimal = Decimal("1000000")
    excluded_mints: frozenset[str] = frozenset()

    @classmethod
    def from_lists(
        cls,
        *,
        max_symbol_length: int,
        excluded_symbols: Iterable[str],
        min_supply: Decimal,
        excluded_mints: Iterable[str] = (),
    ) -> "MemecoinHeuristic":
        return cls(
            max_symbol_length=max_symbol_length,
            excluded_symbols=frozenset(s.upper() for s in excluded_symbols),
            min_supply=min_supply,
            excluded_mints=frozenset(excluded_mints),
        )

    def is_eligible(self, asset: str, metadata: TokenMetadata | None) -> bool:
        if asset in self.excluded_mints:
            return False
        if metadata is None or not metadata.symbol:
            return False

        symbol = metadata.symbol.strip().upper()
        if not symbol or len(symbol) > self.max_symbol_length:
            return False
        if symbol in self.excluded_symbols:
            return False

        if metadata.supply is None:
            return False
        return metadata.supply > self.min_supply
