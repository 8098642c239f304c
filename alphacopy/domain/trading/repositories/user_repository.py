"""UserRepository - persistence port for users and their settings."""

from abc import ABC, abstractmethod

from ..entities import User


class UserRepository(ABC):
    """Port for user storage.

    Implementations: SQLAlchemyUserRepository (infrastructure).
    """

    @abstractmethod
    async def get(self, user_id: int) -> User | None:
        """Get user by id, None if unknown."""

    @abstractmethod
    async def save(self, user: User) -> None:
        """Insert or update a user (settings included)."""

    @abstractmethod
    async def list_all(self) -> list[User]:
        """All users."""
