"""Wallet domain services."""

from .wallet_registry import RegistrySnapshot, WalletRegistry

__all__ = ["RegistrySnapshot", "WalletRegistry"]
