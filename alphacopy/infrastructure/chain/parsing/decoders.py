"""Protocol decoders - extract swap legs from a matched instruction.

Decoding is protocol-coupled, so each swap program id maps to a decoder.
New protocols plug in through SwapParser.register_protocol().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from alphacopy.domain.signals.value_objects import WRAPPED_SOL_MINT

from .decoded_transaction import DecodedTransaction, Instruction

# Rent and priority fees show up in the SOL delta of every swap
NATIVE_DUST = Decimal("0.0001")


@dataclass(frozen=True)
class SwapLegs:
    input_asset: str
    output_asset: str
    input_amount: Decimal
    output_amount: Decimal


class ProtocolDecoder(ABC):
    """Turns one matched swap instruction into SwapLegs, or None."""

    @abstractmethod
    def decode(
        self,
        tx: DecodedTransaction,
        instruction: Instruction,
        wallet: str,
    ) -> SwapLegs | None:
        """Decode swap legs from the wallet's point of view."""


class BalanceDeltaDecoder(ProtocolDecoder):
    """Legs from the wallet's balance changes.

    The asset the wallet lost most of is the input, the asset it gained
    most of is the output. Works for routers (Jupiter) whose instruction
    accounts say nothing stable about which mints were swapped.
    """

    def __init__(self, native_dust: Decimal = NATIVE_DUST) -> None:
        self.native_dust = native_dust

    def decode(
        self,
        tx: DecodedTransaction,
        instruction: Instruction,
        wallet: str,
    ) -> SwapLegs | None:
        deltas = {
            mint: delta
            for mint, delta in tx.asset_deltas(wallet).items()
            if mint != WRAPPED_SOL_MINT or abs(delta) >= self.native_dust
        }
        spent = {m: d for m, d in deltas.items() if d < 0}
        received = {m: d for m, d in deltas.items() if d > 0}
        if not spent or not received:
            return None

        input_asset = min(spent, key=lambda m: spent[m])
        output_asset = max(received, key=lambda m: received[m])
        return SwapLegs(
            input_asset=input_asset,
            output_asset=output_asset,
            input_amount=-spent[input_asset],
            output_amount=received[output_asset],
        )


class AccountOffsetDecoder(ProtocolDecoder):
    """Legs from fixed account positions of the swap instruction.

    The two offsets point at the pair's token accounts (or mints) in the
    instruction's account list; negative offsets count from the end.
    Which side is the input is decided by the wallet's balance change, so
    pools whose account order does not encode direction (Orca a_to_b)
    decode correctly. Without balance data the positional order is used.
    """

    def __init__(self, first_index: int, second_index: int) -> None:
        self.first_index = first_index
        self.second_index = second_index

    def _account(self, instruction: Instruction, index: int) -> str | None:
        if -len(instruction.accounts) <= index < len(instruction.accounts):
            return instruction.accounts[index]
        return None

    def decode(
        self,
        tx: DecodedTransaction,
        instruction: Instruction,
        wallet: str,
    ) -> SwapLegs | None:
        first = self._account(instruction, self.first_index)
        second = self._account(instruction, self.second_index)
        if first is None or second is None:
            return None

        mint_a = tx.mint_of_account(first)
        mint_b = tx.mint_of_account(second)
        if not mint_a or not mint_b or mint_a == mint_b:
            return None

        deltas = tx.asset_deltas(wallet)
        delta_a = deltas.get(mint_a, Decimal(0))
        delta_b = deltas.get(mint_b, Decimal(0))
        if delta_b < 0 <= delta_a:
            mint_a, mint_b = mint_b, mint_a
            delta_a, delta_b = delta_b, delta_a

        return SwapLegs(
            input_asset=mint_a,
            output_asset=mint_b,
            input_amount=abs(min(delta_a, Decimal(0))),
            output_amount=max(delta_b, Decimal(0)),
        )
