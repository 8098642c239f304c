"""Trading domain exceptions."""

from .trading_exceptions import (
    AggregatorError,
    CustodyError,
    ExecutionTimeoutError,
    InvalidSettingsError,
    NoWalletError,
    QuoteUnavailableError,
    SigningError,
    SwapSubmissionError,
    TradingError,
    UserNotFoundError,
)

__all__ = [
    "TradingError",
    "AggregatorError",
    "QuoteUnavailableError",
    "SwapSubmissionError",
    "CustodyError",
    "ExecutionTimeoutError",
    "NoWalletError",
    "SigningError",
    "UserNotFoundError",
    "InvalidSettingsError",
]
