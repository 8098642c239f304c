"""SolanaCustodyProvider - encrypted keypairs, local signing, RPC balances."""

import json
import logging
from decimal import Decimal

from solders.keypair import Keypair
from solders.transaction import VersionedTransaction

from alphacopy.domain.signals.value_objects import NATIVE_SOL_DECIMALS
from alphacopy.domain.trading.exceptions import CustodyError, NoWalletError, SigningError
from alphacopy.domain.trading.ports import CustodyPort, SignerHandle
from alphacopy.domain.trading.value_objects import TokenBalance
from alphacopy.infrastructure.chain.rpc_client import RpcError, RpcTransportError, SolanaRpcClient

from .encryption_manager import EncryptionManager

logger = logging.getLogger(__name__)


def keypair_from_secret(secret: str) -> Keypair:
    """Parse a base58 secret key or a Solana CLI JSON byte array.

    Raises:
        SigningError: Secret is not a valid ed25519 keypair.
    """
    secret = secret.strip()
    try:
        if secret.startswith("["):
            return Keypair.from_bytes(bytes(json.loads(secret)))
        return Keypair.from_base58_string(secret)
    except Exception as e:
        # solders raises its own error types for malformed key material
        raise SigningError(f"Invalid wallet secret: {type(e).__name__}") from e


class KeypairSigner(SignerHandle):
    """Signs versioned transactions with an in-memory keypair."""

    def __init__(self, keypair: Keypair) -> None:
        self._keypair = keypair

    @property
    def public_key(self) -> str:
        return str(self._keypair.pubkey())

    def sign(self, tx_bytes: bytes) -> bytes:
        try:
            unsigned = VersionedTransaction.from_bytes(tx_bytes)
            signed = VersionedTransaction(unsigned.message, [self._keypair])
        except Exception as e:
            raise SigningError(f"Failed to sign transaction: {e}") from e
        return bytes(signed)

    def __repr__(self) -> str:
        return f"KeypairSigner(public_key={self.public_key})"


class SolanaCustodyProvider(CustodyPort):
    """Custody over Fernet-encrypted keypairs.

    Example:
        >>> custody = SolanaCustodyProvider(rpc, EncryptionManager(settings.encryption_key))
        >>> public_key, encrypted = custody.import_wallet(secret)
        >>> balance = await custody.get_balance(public_key)
    """

    def __init__(self, rpc: SolanaRpcClient, encryption: EncryptionManager) -> None:
        self._rpc = rpc
        self._encryption = encryption

    async def get_balance(self, public_key: str) -> Decimal:
        try:
            lamports = await self._rpc.get_balance(public_key)
        except (RpcError, RpcTransportError) as e:
            logger.warning("custody.balance_failed", extra={"public_key": public_key, "error": str(e)})
            raise CustodyError(f"Balance query failed: {e}", public_key=public_key) from e
        return Decimal(lamports).scaleb(-NATIVE_SOL_DECIMALS)

    async def get_token_balance(self, public_key: str, mint: str) -> TokenBalance:
        try:
            accounts = await self._rpc.get_token_accounts_by_owner(public_key, mint)
        except (RpcError, RpcTransportError) as e:
            logger.warning(
                "custody.token_balance_failed",
                extra={"public_key": public_key, "mint": mint, "error": str(e)},
            )
            raise CustodyError(f"Token balance query failed: {e}", public_key=public_key) from e

        total = 0
        decimals = 0
        for account in accounts:
            info = account.get("account", {}).get("data", {}).get("parsed", {}).get("info", {})
            token_amount = info.get("tokenAmount") or {}
            total += int(token_amount.get("amount", 0))
            decimals = int(token_amount.get("decimals", decimals))
        return TokenBalance(mint=mint, amount=total, decimals=decimals)

    def signer_for(self, public_key: str | None, encrypted_secret: str | None) -> SignerHandle:
        if not public_key or not encrypted_secret:
            raise NoWalletError()
        keypair = keypair_from_secret(self.decrypt_secret(encrypted_secret))
        if str(keypair.pubkey()) != public_key:
            raise SigningError("Stored secret does not match wallet public key", public_key=public_key)
        return KeypairSigner(keypair)

    def encrypt_secret(self, secret: str) -> str:
        return self._encryption.encrypt(secret)

    def decrypt_secret(self, ciphertext: str) -> str:
        return self._encryption.decrypt(ciphertext)

    def import_wallet(self, secret: str) -> tuple[str, str]:
        """Validate a user-supplied secret.

        Returns:
            (public_key, encrypted_secret)
        """
        keypair = keypair_from_secret(secret)
        return str(keypair.pubkey()), self.encrypt_secret(str(keypair))

