"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest


@pytest.fixture
def now():
    """Fixed evaluation time."""
    return datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def alpha_wallet():
    """Tracked alpha wallet address."""
    return "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"


@pytest.fixture
def token_mint():
    """Memecoin mint used as the traded asset."""
    return "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"


@pytest.fixture
def make_swap_event(alpha_wallet, token_mint, now):
    """Factory для SwapEvent (BUY of token_mint with 2 SOL by default)."""
    from alphacopy.domain.signals.value_objects import (
        WRAPPED_SOL_MINT,
        SwapDirection,
        SwapEvent,
    )

    def _make(
        signature: str = "sig-1",
        direction: SwapDirection = SwapDirection.BUY,
        input_asset: str | None = None,
        output_asset: str | None = None,
        input_amount: Decimal = Decimal("2"),
        output_amount: Decimal = Decimal("1500000"),
        source_wallet: str | None = None,
    ) -> SwapEvent:
        if direction == SwapDirection.SELL:
            default_in, default_out = token_mint, WRAPPED_SOL_MINT
        else:
            default_in, default_out = WRAPPED_SOL_MINT, token_mint
        return SwapEvent(
            source_wallet=source_wallet or alpha_wallet,
            tx_signature=signature,
            protocol="jupiter",
            input_asset=input_asset or default_in,
            output_asset=output_asset or default_out,
            input_amount=input_amount,
            output_amount=output_amount,
            observed_at=now,
            direction=direction,
        )

    return _make


@pytest.fixture
def make_user():
    """Factory для User with auto trading on and a linked wallet."""
    from alphacopy.domain.trading.entities import User
    from alphacopy.domain.trading.value_objects import UserSettings

    def _make(user_id: int = 7, with_wallet: bool = True, **settings) -> User:
        params = {
            "auto_trading_enabled": True,
            "trade_amount": Decimal("0.05"),
            "delay_ms": 0,
        }
        params.update(settings)
        return User(
            id=user_id,
            wallet_public_key="4Nd1mBQtrMJVYVfKf2PJy9NZUZdTAsp7D4xWLs4gDB4T" if with_wallet else None,
            encrypted_secret="gAAAAAB-encrypted" if with_wallet else None,
            settings=UserSettings(**params),
        )

    return _make


@pytest.fixture
def make_swap_tx(alpha_wallet, token_mint):
    """Factory для jsonParsed `getTransaction` payloads of a swap.

    Default: the alpha wallet spends 2 SOL (plus fee) on 1.5M tokens
    through the Jupiter v6 program.
    """
    from alphacopy.domain.signals.value_objects import WRAPPED_SOL_MINT

    jupiter = "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4"

    def _make(
        signature: str = "sig-1",
        program_id: str = jupiter,
        sol_change_lamports: int = -2_000_000_000,
        token_pre: int = 0,
        token_post: int = 1_500_000_000_000,
        token_decimals: int = 6,
        mint: str | None = None,
        err: dict | None = None,
        fee: int = 5000,
        instruction_accounts: list[str] | None = None,
        extra_token_balances: list[dict] | None = None,
    ) -> dict:
        mint = mint or token_mint
        pre_lamports = 10_000_000_000
        post_lamports = pre_lamports + sol_change_lamports - fee
        token_account = "TokenAcct1111111111111111111111111111111111"
        wsol_account = "WsoLAcct11111111111111111111111111111111111"
        account_keys = [
            {"pubkey": alpha_wallet, "signer": True, "writable": True},
            {"pubkey": token_account, "signer": False, "writable": True},
            {"pubkey": wsol_account, "signer": False, "writable": True},
            {"pubkey": program_id, "signer": False, "writable": False},
        ]
        pre_tokens = [
            {
                "accountIndex": 1,
                "mint": mint,
                "owner": alpha_wallet,
                "uiTokenAmount": {"amount": str(token_pre), "decimals": token_decimals},
            },
            {
                "accountIndex": 2,
                "mint": WRAPPED_SOL_MINT,
                "owner": alpha_wallet,
                "uiTokenAmount": {"amount": "0", "decimals": 9},
            },
        ]
        post_tokens = [
            {
                "accountIndex": 1,
                "mint": mint,
                "owner": alpha_wallet,
                "uiTokenAmount": {"amount": str(token_post), "decimals": token_decimals},
            },
            {
                "accountIndex": 2,
                "mint": WRAPPED_SOL_MINT,
                "owner": alpha_wallet,
                "uiTokenAmount": {"amount": "0", "decimals": 9},
            },
        ]
        for entry in extra_token_balances or []:
            pre_tokens.append(entry["pre"])
            post_tokens.append(entry["post"])
        return {
            "slot": 250_000_000,
            "blockTime": 1_768_478_400,
            "transaction": {
                "signatures": [signature],
                "message": {
                    "accountKeys": account_keys,
                    "instructions": [
                        {
                            "programId": program_id,
                            "accounts": instruction_accounts
                            or [alpha_wallet, token_account, wsol_account],
                            "data": "3Bxs4h24hBtQy9rw",
                        }
                    ],
                },
            },
            "meta": {
                "err": err,
                "fee": fee,
                "preBalances": [pre_lamports, 2_039_280, 2_039_280, 1],
                "postBalances": [post_lamports, 2_039_280, 2_039_280, 1],
                "preTokenBalances": pre_tokens,
                "postTokenBalances": post_tokens,
                "innerInstructions": [],
            },
        }

    return _make
