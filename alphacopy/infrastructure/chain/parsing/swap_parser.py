"""SwapParser - classify raw transactions as swaps and normalize them.

parse() never raises: malformed payloads, unknown layouts and decoder bugs
all end up as None plus a logged diagnostic.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from alphacopy.domain.signals.value_objects import (
    USDC_MINT,
    USDT_MINT,
    WRAPPED_SOL_MINT,
    RawTransaction,
    SwapDirection,
    SwapEvent,
)

from .decoded_transaction import DecodedTransaction, Instruction
from .decoders import AccountOffsetDecoder, BalanceDeltaDecoder, ProtocolDecoder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapProtocol:
    program_id: str
    name: str
    decoder: ProtocolDecoder


def default_protocols() -> list[SwapProtocol]:
    """Built-in program id → decoder table."""
    balance = BalanceDeltaDecoder()
    return [
        SwapProtocol("JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4", "jupiter", balance),
        SwapProtocol("675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8", "raydium", AccountOffsetDecoder(-3, -2)),
        SwapProtocol("CPMMoo8L3F4NbTegBCKVNunggL7H1ZpdTHKxQB5qKP1C", "raydium-cpmm", AccountOffsetDecoder(4, 5)),
        SwapProtocol("whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc", "orca", AccountOffsetDecoder(3, 5)),
        SwapProtocol("9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM", "raydium", balance),
        SwapProtocol("EhpHV7B2r4F4zHF2qNpANKKLNEtCT6Z6LNHNz8Xr8kLJ", "orca", balance),
        SwapProtocol("6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P", "pump.fun", balance),
    ]


class SwapParser:
    """Raw transaction → SwapEvent | None.

    A transaction is a swap when one of its outer or inner instructions
    invokes an allow-listed program id. The first matching instruction
    selects the protocol decoder; if that decoder cannot decode, the
    balance-delta decoder is tried before giving up.

    Direction: base (wrapped SOL) or stable asset in → BUY, out → SELL,
    otherwise AMBIGUOUS.

    Example:
        >>> parser = SwapParser(allowed_program_ids=settings.swap_program_ids)
        >>> event = parser.parse(raw_tx)
        >>> if event is not None:
        ...     print(event.direction, event.traded_asset)
    """

    def __init__(
        self,
        *,
        allowed_program_ids: Iterable[str] | None = None,
        base_asset: str = WRAPPED_SOL_MINT,
        stable_assets: Iterable[str] = (USDC_MINT, USDT_MINT),
        protocols: Iterable[SwapProtocol] | None = None,
        fallback_decoder: ProtocolDecoder | None = None,
    ) -> None:
        self.base_asset = base_asset
        self.stable_assets = frozenset(stable_assets)
        self._fallback = fallback_decoder or BalanceDeltaDecoder()
        self._protocols: dict[str, SwapProtocol] = {
            p.program_id: p for p in (protocols if protocols is not None else default_protocols())
        }
        if allowed_program_ids is None:
            self._allowed = set(self._protocols)
        else:
            self._allowed = set(allowed_program_ids)

    @property
    def allowed_program_ids(self) -> frozenset[str]:
        return frozenset(self._allowed)

    def register_protocol(
        self,
        program_id: str,
        name: str,
        decoder: ProtocolDecoder | None = None,
    ) -> None:
        """Allow-list a program id, optionally with its own decoder."""
        self._protocols[program_id] = SwapProtocol(program_id, name, decoder or self._fallback)
        self._allowed.add(program_id)

    def parse(self, raw: Any) -> SwapEvent | None:
        """Decode `raw` into a SwapEvent, or None if it is not a swap.

        Accepts a RawTransaction, a `getTransaction` result dict, or its JSON
        text/bytes. Never raises.
        """
        try:
            return self._parse(raw)
        except Exception as e:
            logger.warning(
                "swap_parser.decode_failed",
                extra={
                    "signature": getattr(raw, "signature", None),
                    "error_type": type(e).__name__,
                    "error": str(e),
                },
            )
            return None

    def _parse(self, raw: Any) -> SwapEvent | None:
        wallet: str | None = None
        signature: str | None = None
        received_at = None

        if isinstance(raw, RawTransaction):
            payload: Any = raw.payload
            wallet = raw.source_wallet
            signature = raw.signature
            received_at = raw.received_at
        elif isinstance(raw, Mapping):
            payload = raw
        elif isinstance(raw, (str, bytes, bytearray)):
            payload = json.loads(raw)
        else:
            logger.debug("swap_parser.unsupported_input", extra={"type": type(raw).__name__})
            return None

        if not isinstance(payload, Mapping):
            return None

        tx = DecodedTransaction(payload)
        signature = signature or tx.signature
        if not signature:
            return None
        if tx.failed:
            logger.debug("swap_parser.failed_transaction", extra={"signature": signature})
            return None

        match = self._match(tx.instructions)
        if match is None:
            return None
        protocol, instruction = match

        wallet = wallet or tx.fee_payer
        legs = protocol.decoder.decode(tx, instruction, wallet)
        if legs is None and protocol.decoder is not self._fallback:
            legs = self._fallback.decode(tx, instruction, wallet)
        if legs is None:
            logger.info(
                "swap_parser.legs_not_found",
                extra={"signature": signature, "protocol": protocol.name, "wallet": wallet},
            )
            return None

        return SwapEvent(
            source_wallet=wallet,
            tx_signature=signature,
            protocol=protocol.name,
            input_asset=legs.input_asset,
            output_asset=legs.output_asset,
            input_amount=legs.input_amount,
            output_amount=legs.output_amount,
            observed_at=tx.observed_at(received_at),
            direction=self.classify_direction(legs.input_asset, legs.output_asset),
        )

    def _match(self, instructions: list[Instruction]) -> tuple[SwapProtocol, Instruction] | None:
        # outer instructions first: a Jupiter route beats the AMM hops it invokes
        for instruction in sorted(instructions, key=lambda ix: ix.inner):
            if instruction.program_id in self._allowed:
                protocol = self._protocols.get(instruction.program_id) or SwapProtocol(
                    instruction.program_id, instruction.program_id[:8], self._fallback
                )
                return protocol, instruction
        return None

    def classify_direction(self, input_asset: str, output_asset: str) -> SwapDirection:
        quote_assets = self.stable_assets | {self.base_asset}
        input_is_quote = input_asset in quote_assets
        output_is_quote = output_asset in quote_assets
        if input_is_quote and not output_is_quote:
            return SwapDirection.BUY
        if output_is_quote and not input_is_quote:
            return SwapDirection.SELL
        return SwapDirection.AMBIGUOUS
