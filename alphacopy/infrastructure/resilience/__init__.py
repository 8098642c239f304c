"""Retry, backoff and circuit breaking for network adapters."""

from .circuit_breaker import CircuitBreaker, CircuitBreakerOpenError, CircuitState
from .exponential_backoff import BackoffSchedule, RetryableError, retry_with_backoff

__all__ = [
    "BackoffSchedule",
    "CircuitBreaker",
    "CircuitBreakerOpenError",
    "CircuitState",
    "RetryableError",
    "retry_with_backoff",
]
