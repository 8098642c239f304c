"""Signal value objects."""

from .assets import NATIVE_SOL_DECIMALS, USDC_MINT, USDT_MINT, WRAPPED_SOL_MINT
from .raw_transaction import RawTransaction
from .swap_direction import SwapDirection
from .swap_event import SwapEvent

__all__ = [
    "RawTransaction",
    "SwapDirection",
    "SwapEvent",
    "WRAPPED_SOL_MINT",
    "USDC_MINT",
    "USDT_MINT",
    "NATIVE_SOL_DECIMALS",
]
