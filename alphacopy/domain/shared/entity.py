"""Base Entity class for domain model.

Entity - об'єкт з унікальною ідентичністю. Два entities з однаковими
атрибутами але різними ID - це різні об'єкти.
"""

from abc import ABC

EntityId = str | int


class Entity(ABC):
    """Base class for all domain entities.

    Entity порівнюється за ID, а не за значенням атрибутів. ID може бути
    int (users, trade records) або str (deterministic attempt ids, addresses).

    Example:
        >>> a = User(id=1, wallet_public_key="A")
        >>> b = User(id=1, wallet_public_key="B")
        >>> a == b  # True (same ID)
    """

    def __init__(self, id: EntityId | None = None) -> None:
        """Initialize entity with optional ID.

        Args:
            id: Unique identifier. None для нових entities (ще не збережені).
        """
        self._id = id

    @property
    def id(self) -> EntityId | None:
        """Get entity ID."""
        return self._id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return False

        # Нові entities без ID рівні тільки самі собі
        if self._id is None and other._id is None:
            return self is other

        return type(self) is type(other) and self._id == other._id

    def __hash__(self) -> int:
        if self._id is None:
            return hash(id(self))
        return hash(self._id)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id!r})"
