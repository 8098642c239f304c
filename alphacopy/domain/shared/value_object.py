"""Base ValueObject class for domain model.

ValueObject - immutable об'єкт, який порівнюється за значенням атрибутів.
"""

from abc import ABC
from dataclasses import dataclass


@dataclass(frozen=True, eq=True)
class ValueObject(ABC):
    """Base class for all domain value objects.

    - **Immutable**: frozen=True, зміна = новий instance
    - **Equality by value**: порівнюється за атрибутами

    Example:
        >>> @dataclass(frozen=True)
        ... class Quote(ValueObject):
        ...     input_mint: str
        ...     in_amount: int

        >>> Quote("So11...", 10) == Quote("So11...", 10)  # True
    """

    def __post_init__(self) -> None:
        """Hook для валідації після ініціалізації.

        Raises:
            ValueError: If validation fails.
        """
        pass


def validate_value_object(condition: bool, message: str) -> None:
    """Helper для валідації в value objects.

    Args:
        condition: Умова яка має бути True.
        message: Повідомлення помилки якщо condition False.

    Raises:
        ValueError: If condition is False.
    """
    if not condition:
        raise ValueError(message)
