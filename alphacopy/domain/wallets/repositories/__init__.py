"""Wallet repository ports."""

from .wallet_repository import WalletRepository

__all__ = ["WalletRepository"]
