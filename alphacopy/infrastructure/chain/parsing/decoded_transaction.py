"""Normalized view over a jsonParsed Solana transaction."""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Mapping

from alphacopy.domain.signals.value_objects import NATIVE_SOL_DECIMALS, WRAPPED_SOL_MINT


class TransactionDecodeError(ValueError):
    """Payload is not a decodable transaction."""

    pass


@dataclass(frozen=True)
class Instruction:
    program_id: str
    accounts: tuple[str, ...]
    inner: bool = False


@dataclass(frozen=True)
class TokenBalanceEntry:
    account: str
    mint: str
    owner: str | None
    amount: int
    decimals: int


def _key(entry: Any) -> str:
    # jsonParsed accountKeys are objects, legacy/json encoding gives plain strings
    if isinstance(entry, Mapping):
        return str(entry["pubkey"])
    if isinstance(entry, str):
        return entry
    raise TransactionDecodeError(f"unexpected account key {entry!r}")


class DecodedTransaction:
    """Accessors the protocol decoders need, computed from the raw payload.

    Raises TransactionDecodeError from the constructor when the payload
    lacks the structure of a `getTransaction` result.
    """

    def __init__(self, payload: Mapping[str, Any]) -> None:
        if not isinstance(payload, Mapping):
            raise TransactionDecodeError("payload is not an object")

        transaction = payload.get("transaction")
        meta = payload.get("meta")
        if not isinstance(transaction, Mapping) or not isinstance(meta, Mapping):
            raise TransactionDecodeError("missing transaction or meta")
        message = transaction.get("message")
        if not isinstance(message, Mapping):
            raise TransactionDecodeError("missing message")

        signatures = transaction.get("signatures") or []
        self.signature: str | None = signatures[0] if signatures else None
        self.failed = meta.get("err") is not None
        self.fee = int(meta.get("fee") or 0)
        self.block_time: int | None = payload.get("blockTime")
        self.slot: int | None = payload.get("slot")

        self.account_keys: list[str] = [_key(k) for k in message.get("accountKeys") or []]
        # v0 transactions list lookup-table accounts after static keys
        loaded = meta.get("loadedAddresses") or {}
        if not any(isinstance(k, Mapping) for k in message.get("accountKeys") or []):
            self.account_keys += list(loaded.get("writable") or []) + list(loaded.get("readonly") or [])
        if not self.account_keys:
            raise TransactionDecodeError("no account keys")

        self.instructions: list[Instruction] = [
            self._instruction(ix, inner=False) for ix in message.get("instructions") or []
        ]
        for group in meta.get("innerInstructions") or []:
            for ix in group.get("instructions") or []:
                self.instructions.append(self._instruction(ix, inner=True))

        self._pre_lamports: list[int] = [int(v) for v in meta.get("preBalances") or []]
        self._post_lamports: list[int] = [int(v) for v in meta.get("postBalances") or []]
        self._pre_tokens = [self._token_entry(e) for e in meta.get("preTokenBalances") or []]
        self._post_tokens = [self._token_entry(e) for e in meta.get("postTokenBalances") or []]

    def _instruction(self, ix: Mapping[str, Any], *, inner: bool) -> Instruction:
        if "programId" in ix:
            program_id = str(ix["programId"])
        elif "programIdIndex" in ix:
            program_id = self.account_keys[int(ix["programIdIndex"])]
        else:
            raise TransactionDecodeError("instruction without program id")

        accounts: list[str] = []
        for account in ix.get("accounts") or []:
            accounts.append(self.account_keys[account] if isinstance(account, int) else str(account))
        return Instruction(program_id=program_id, accounts=tuple(accounts), inner=inner)

    def _token_entry(self, entry: Mapping[str, Any]) -> TokenBalanceEntry:
        ui = entry["uiTokenAmount"]
        return TokenBalanceEntry(
            account=self.account_keys[int(entry["accountIndex"])],
            mint=str(entry["mint"]),
            owner=entry.get("owner"),
            amount=int(ui["amount"]),
            decimals=int(ui["decimals"]),
        )

    @property
    def fee_payer(self) -> str:
        return self.account_keys[0]

    def observed_at(self, fallback: datetime | None = None) -> datetime:
        if self.block_time:
            return datetime.fromtimestamp(self.block_time, tz=timezone.utc)
        return fallback or datetime.now(timezone.utc)

    def mint_of_account(self, address: str) -> str | None:
        """Mint of a token account (or the address itself if it is a mint)."""
        for entry in (*self._pre_tokens, *self._post_tokens):
            if entry.account == address or entry.mint == address:
                return entry.mint
        return None

    def native_delta(self, wallet: str) -> Decimal:
        """Wallet's SOL change, fee added back when it paid the fee."""
        try:
            index = self.account_keys.index(wallet)
        except ValueError:
            return Decimal(0)
        if index >= len(self._pre_lamports) or index >= len(self._post_lamports):
            return Decimal(0)

        lamports = self._post_lamports[index] - self._pre_lamports[index]
        if index == 0:
            lamports += self.fee
        return Decimal(lamports).scaleb(-NATIVE_SOL_DECIMALS)

    def token_deltas(self, wallet: str) -> dict[str, Decimal]:
        """Per-mint UI amount change of token accounts owned by `wallet`."""
        raw: dict[str, int] = {}
        decimals: dict[str, int] = {}
        for entry in self._pre_tokens:
            if entry.owner == wallet:
                raw[entry.mint] = raw.get(entry.mint, 0) - entry.amount
                decimals[entry.mint] = entry.decimals
        for entry in self._post_tokens:
            if entry.owner == wallet:
                raw[entry.mint] = raw.get(entry.mint, 0) + entry.amount
                decimals[entry.mint] = entry.decimals
        return {
            mint: Decimal(delta).scaleb(-decimals[mint])
            for mint, delta in raw.items()
            if delta != 0
        }

    def asset_deltas(self, wallet: str) -> dict[str, Decimal]:
        """Token deltas with native SOL folded into the wrapped SOL mint."""
        deltas = self.token_deltas(wallet)
        native = self.native_delta(wallet)
        if native != 0:
            deltas[WRAPPED_SOL_MINT] = deltas.get(WRAPPED_SOL_MINT, Decimal(0)) + native
        return {mint: delta for mint, delta in deltas.items() if delta != 0}
