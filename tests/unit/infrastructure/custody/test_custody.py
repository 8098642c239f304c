"""Tests for EncryptionManager and SolanaCustodyProvider."""

import json
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.transaction import VersionedTransaction

from alphacopy.domain.trading.exceptions import CustodyError, NoWalletError, SigningError
from alphacopy.infrastructure.chain import RpcTransportError, SolanaRpcClient
from alphacopy.infrastructure.custody import (
    EncryptionManager,
    KeypairSigner,
    SolanaCustodyProvider,
    keypair_from_secret,
)

TOKEN = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"


def token_account(amount: int, decimals: int = 5) -> dict:
    return {
        "pubkey": "TokenAcct",
        "account": {
            "data": {
                "parsed": {
                    "info": {"mint": TOKEN, "tokenAmount": {"amount": str(amount), "decimals": decimals}}
                }
            }
        },
    }


@pytest.fixture
def encryption():
    return EncryptionManager("test-encryption-key-at-least-32-chars-long")


@pytest.fixture
def mock_rpc():
    return AsyncMock(spec=SolanaRpcClient)


@pytest.fixture
def custody(mock_rpc, encryption):
    return SolanaCustodyProvider(mock_rpc, encryption)


class TestEncryptionManager:
    def test_round_trip(self, encryption):
        ciphertext = encryption.encrypt("super-secret")

        assert ciphertext != "super-secret"
        assert encryption.decrypt(ciphertext) == "super-secret"

    def test_wrong_key_cannot_decrypt(self, encryption):
        ciphertext = encryption.encrypt("super-secret")
        other = EncryptionManager("another-encryption-key-at-least-32-chars")

        with pytest.raises(SigningError):
            other.decrypt(ciphertext)

    def test_empty_key_rejected(self):
        with pytest.raises(ValueError):
            EncryptionManager("")


class TestWalletImport:
    """Tests для import_wallet / signer_for."""

    def test_import_base58_secret(self, custody):
        # Arrange
        keypair = Keypair()

        # Act
        public_key, encrypted = custody.import_wallet(str(keypair))

        # Assert
        assert public_key == str(keypair.pubkey())
        assert str(keypair) not in encrypted
        signer = custody.signer_for(public_key, encrypted)
        assert signer.public_key == public_key

    def test_import_cli_json_secret(self, custody):
        keypair = Keypair()

        public_key, _ = custody.import_wallet(json.dumps(list(bytes(keypair))))

        assert public_key == str(keypair.pubkey())

    def test_invalid_secret(self, custody):
        with pytest.raises(SigningError):
            custody.import_wallet("definitely-not-a-key")

    def test_signer_for_rejects_mismatched_public_key(self, custody):
        _, encrypted = custody.import_wallet(str(Keypair()))

        with pytest.raises(SigningError, match="does not match"):
            custody.signer_for(str(Keypair().pubkey()), encrypted)

    @pytest.mark.parametrize(
        "public_key, encrypted",
        [(None, None), ("", "gAAAA"), ("4Nd1mBQtrMJVYVfKf2PJy9NZUZdTAsp7D4xWLs4gDB4T", None)],
    )
    def test_signer_for_without_linked_wallet(self, custody, public_key, encrypted):
        with pytest.raises(NoWalletError):
            custody.signer_for(public_key, encrypted)

    def test_keypair_from_secret_strips_whitespace(self):
        keypair = Keypair()

        assert keypair_from_secret(f"  {keypair}\n").pubkey() == keypair.pubkey()


class TestKeypairSigner:
    def test_signs_versioned_transaction(self):
        # Arrange
        keypair = Keypair()
        message = MessageV0.try_compile(keypair.pubkey(), [], [], Hash.default())
        unsigned = bytes(VersionedTransaction(message, [keypair]))

        # Act
        signed = VersionedTransaction.from_bytes(KeypairSigner(keypair).sign(unsigned))

        # Assert
        assert signed.message == message
        assert len(signed.signatures) == 1

    def test_garbage_bytes(self):
        with pytest.raises(SigningError):
            KeypairSigner(Keypair()).sign(b"\x01\x02garbage")


class TestBalances:
    """Tests для get_balance / get_token_balance."""

    @pytest.mark.asyncio
    async def test_native_balance_in_sol(self, custody, mock_rpc):
        mock_rpc.get_balance.return_value = 1_500_000_000

        balance = await custody.get_balance("Owner")

        assert balance == Decimal("1.5")

    @pytest.mark.asyncio
    async def test_token_balance_sums_accounts(self, custody, mock_rpc):
        mock_rpc.get_token_accounts_by_owner.return_value = [token_account(700), token_account(300)]

        balance = await custody.get_token_balance("Owner", TOKEN)

        assert balance.amount == 1_000
        assert balance.decimals == 5
        assert balance.ui_amount == Decimal("0.01")
        assert balance.is_empty is False

    @pytest.mark.asyncio
    async def test_no_token_accounts(self, custody, mock_rpc):
        mock_rpc.get_token_accounts_by_owner.return_value = []

        balance = await custody.get_token_balance("Owner", TOKEN)

        assert balance.is_empty is True

    @pytest.mark.asyncio
    async def test_rpc_failure_is_custody_error(self, custody, mock_rpc):
        mock_rpc.get_balance.side_effect = RpcTransportError("HTTP 503")

        with pytest.raises(CustodyError):
            await custody.get_balance("Owner")
