"""Trading domain exceptions.

Execution failures raised by collaborators (aggregator, custody) are
caught by ExecutionQueue and turned into a failed CopyTradeAttempt; they
never cross into another user's attempt.
"""

from alphacopy.domain.shared import AggregateNotFound, BusinessRuleViolation, DomainException


class TradingError(DomainException):
    """Base exception для copy trading errors."""

    pass


class AggregatorError(TradingError):
    """Liquidity aggregator call failed."""

    pass


class QuoteUnavailableError(AggregatorError):
    """Aggregator returned no route (or an error) for the requested pair."""

    def __init__(self, input_mint: str, output_mint: str, reason: str) -> None:
        super().__init__(
            f"Quote unavailable: {reason}",
            input_mint=input_mint,
            output_mint=output_mint,
        )
        self.reason = reason


class SwapSubmissionError(AggregatorError):
    """Swap transaction could not be built, signed or submitted."""

    pass


class CustodyError(TradingError):
    """Key custody or balance query failed."""

    pass


class NoWalletError(CustodyError):
    """No linked custody wallet to sign with."""

    def __init__(self, user_id: int | None = None) -> None:
        context = {"user_id": user_id} if user_id is not None else {}
        super().__init__("No linked custody wallet", **context)
        self.user_id = user_id


class SigningError(CustodyError):
    """Signer rejected or failed to sign the transaction."""

    pass


class UserNotFoundError(AggregateNotFound):
    """User does not exist."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} not found", user_id=user_id)
        self.user_id = user_id


class InvalidSettingsError(BusinessRuleViolation):
    """User settings update violates a settings rule."""

    pass


class ExecutionTimeoutError(TradingError):
    """External call exceeded its execution timeout."""

    def __init__(self, step: str, timeout_seconds: float) -> None:
        super().__init__(f"{step} timed out after {timeout_seconds:g}s", step=step)
        self.step = step
        self.timeout_seconds = timeout_seconds
