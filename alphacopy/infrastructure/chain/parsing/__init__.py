"""Swap transaction parsing."""

from .decoded_transaction import DecodedTransaction, Instruction, TransactionDecodeError
from .decoders import AccountOffsetDecoder, BalanceDeltaDecoder, ProtocolDecoder, SwapLegs
from .swap_parser import SwapParser, SwapProtocol, default_protocols

__all__ = [
    "SwapParser",
    "SwapProtocol",
    "default_protocols",
    "ProtocolDecoder",
    "BalanceDeltaDecoder",
    "AccountOffsetDecoder",
    "SwapLegs",
    "DecodedTransaction",
    "Instruction",
    "TransactionDecodeError",
]
