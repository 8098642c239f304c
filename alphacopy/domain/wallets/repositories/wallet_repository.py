"""WalletRepository - persistence port for tracked wallets and subscriptions."""

from abc import ABC, abstractmethod

from ..entities import TrackedWallet


class WalletRepository(ABC):
    """Port for the tracked-wallet registry store.

    Implementations: SQLAlchemyWalletRepository (infrastructure).
    """

    @abstractmethod
    async def save_wallet(self, wallet: TrackedWallet) -> None:
        """Insert or update a tracked wallet (keyed by address)."""

    @abstractmethod
    async def list_wallets(self) -> list[TrackedWallet]:
        """Load every tracked wallet, active and inactive."""

    @abstractmethod
    async def add_subscription(self, user_id: int, address: str) -> None:
        """Persist a (user, wallet) subscription. Idempotent."""

    @abstractmethod
    async def remove_subscription(self, user_id: int, address: str) -> None:
        """Delete a (user, wallet) subscription. Idempotent."""

    @abstractmethod
    async def list_subscriptions(self) -> list[tuple[int, str]]:
        """Load all (user_id, address) subscriptions."""
