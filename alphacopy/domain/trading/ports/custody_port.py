"""CustodyPort - key custody and balance queries."""

from abc import ABC, abstractmethod
from decimal import Decimal

from ..value_objects import TokenBalance


class SignerHandle(ABC):
    """Opaque handle able to sign transactions for one custody wallet."""

    @property
    @abstractmethod
    def public_key(self) -> str:
        """Base58 public key of the signing wallet."""

    @abstractmethod
    def sign(self, tx_bytes: bytes) -> bytes:
        """Sign a serialized transaction and return the signed bytes.

        Raises:
            SigningError: Transaction could not be signed.
        """


class CustodyPort(ABC):
    """Encrypted key storage + balance queries.

    Implementations: SolanaCustodyProvider (infrastructure).
    """

    @abstractmethod
    async def get_balance(self, public_key: str) -> Decimal:
        """Native SOL balance.

        Raises:
            CustodyError: RPC failure or timeout.
        """

    @abstractmethod
    async def get_token_balance(self, public_key: str, mint: str) -> TokenBalance:
        """SPL token balance (zero balance if the wallet holds none).

        Raises:
            CustodyError: RPC failure or timeout.
        """

    @abstractmethod
    def signer_for(self, public_key: str | None, encrypted_secret: str | None) -> SignerHandle:
        """Decrypt the user's secret into a signer.

        Raises:
            NoWalletError: No wallet linked (empty key or secret).
            SigningError: Secret cannot be decrypted or does not match the key.
        """

    @abstractmethod
    def encrypt_secret(self, secret: str) -> str:
        """Encrypt a wallet secret for storage."""

    @abstractmethod
    def decrypt_secret(self, ciphertext: str) -> str:
        """Decrypt a stored wallet secret."""

    @abstractmethod
    def import_wallet(self, secret: str) -> tuple[str, str]:
        """Validate a user-supplied wallet secret.

        Returns:
            (public_key, encrypted_secret)

        Raises:
            SigningError: Secret is not a valid keypair.
        """
