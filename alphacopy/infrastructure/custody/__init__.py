"""Custody adapters: secret encryption and Solana signing."""

from .encryption_manager import EncryptionManager
from .solana_custody import KeypairSigner, SolanaCustodyProvider, keypair_from_secret

__all__ = [
    "EncryptionManager",
    "KeypairSigner",
    "SolanaCustodyProvider",
    "keypair_from_secret",
]
