"""Wallet domain exceptions."""

from .wallet_exceptions import InvalidWalletAddressError, WalletError, WalletNotTrackedError

__all__ = ["WalletError", "WalletNotTrackedError", "InvalidWalletAddressError"]
