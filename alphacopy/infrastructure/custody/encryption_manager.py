"""Encryption Manager for custody wallet secrets.

Uses Fernet symmetric encryption for storing wallet private keys.
"""

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken

from alphacopy.domain.trading.exceptions import SigningError


class EncryptionManager:
    """Handles encryption and decryption of wallet secrets."""

    def __init__(self, secret_key: str):
        """Initialize encryption manager.

        Args:
            secret_key: Base secret for key derivation (ENCRYPTION_KEY).
        """
        if not secret_key:
            raise ValueError("Encryption secret must not be empty")
        # Derive a valid Fernet key from the secret
        derived_key = hashlib.sha256(secret_key.encode()).digest()
        fernet_key = base64.urlsafe_b64encode(derived_key)
        self._fernet = Fernet(fernet_key)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a string.

        Returns:
            Base64-encoded encrypted string.
        """
        encrypted = self._fernet.encrypt(plaintext.encode())
        return encrypted.decode()

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt an encrypted string.

        Raises:
            SigningError: Ciphertext was produced with another key or is corrupt.
        """
        try:
            decrypted = self._fernet.decrypt(ciphertext.encode())
        except InvalidToken as e:
            raise SigningError("Stored wallet secret cannot be decrypted") from e
        return decrypted.decode()
