"""Base domain exceptions.

Domain exceptions представляють порушення бізнес-правил.
Вони частина domain layer і не залежать від infrastructure.
"""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain errors.

    Example:
        >>> raise DomainException("Attempt already terminal", attempt_id="a1")
    """

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize domain exception.

        Args:
            message: Human-readable error message.
            **context: Additional context (user_id, attempt_id, etc).
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class BusinessRuleViolation(DomainException):
    """Exception raised when business rule is violated.

    Example:
        >>> raise BusinessRuleViolation(
        ...     "buy_only and sell_only are mutually exclusive",
        ...     user_id=7,
        ... )
    """

    pass


class AggregateNotFound(DomainException):
    """Exception raised when aggregate is not found."""

    pass


class InvalidStateTransition(DomainException):
    """Exception raised for invalid state transitions.

    Example:
        >>> raise InvalidStateTransition(
        ...     "Cannot transition from failed to executing",
        ...     from_state="failed",
        ...     to_state="executing",
        ... )
    """

    pass


class ConfigurationError(DomainException):
    """Fatal configuration problem detected at startup (fail fast)."""

    pass
