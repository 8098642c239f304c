"""alphacopy - copy-trading core for Solana alpha wallets."""

__version__ = "1.0.0"
