"""Trading value objects."""

from .attempt_state import AttemptState
from .counters import PerUserCounters
from .decision import Allow, Decision, Deny, DenyReason
from .market import Quote, SwapResult, TokenBalance
from .user_settings import UserSettings

__all__ = [
    "AttemptState",
    "PerUserCounters",
    "Allow",
    "Deny",
    "Decision",
    "DenyReason",
    "Quote",
    "SwapResult",
    "TokenBalance",
    "UserSettings",
]
