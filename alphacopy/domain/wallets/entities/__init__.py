"""Wallet entities."""

from .tracked_wallet import TrackedWallet, is_valid_address

__all__ = ["TrackedWallet", "is_valid_address"]
