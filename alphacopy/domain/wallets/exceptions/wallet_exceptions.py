"""Wallet domain exceptions."""

from alphacopy.domain.shared import BusinessRuleViolation, DomainException


class WalletError(DomainException):
    """Base exception для wallet registry errors."""

    pass


class WalletNotTrackedError(WalletError):
    """Address is not registered, or registered but inactive."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Wallet {address} is not tracked", address=address)
        self.address = address


class InvalidWalletAddressError(WalletError, BusinessRuleViolation):
    """Address is not a valid base58 public key."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Invalid wallet address: {address!r}")
        self.address = address
