"""Swap Direction - buy/sell classification of an alpha wallet swap."""

from enum import Enum


class SwapDirection(str, Enum):
    """Direction of a detected swap, from the alpha wallet's point of view.

    - BUY: base (SOL) or stable asset went in, a token came out
    - SELL: a token went in, base or stable asset came out
    - AMBIGUOUS: neither side is base/stable (token-to-token route)
    """

    BUY = "buy"
    SELL = "sell"
    AMBIGUOUS = "ambiguous"

    def is_buy(self) -> bool:
        return self == SwapDirection.BUY

    def is_sell(self) -> bool:
        return self == SwapDirection.SELL
