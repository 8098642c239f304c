"""Eligibility decision - Allow(amount) or Deny(reason)."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Literal


class DenyReason(str, Enum):
    """Why a user does not copy a signal, in evaluation order."""

    AUTO_DISABLED = "auto-disabled"
    DIRECTION_FILTERED = "direction-filtered"
    TOKEN_CAP_REACHED = "token-cap-reached"
    HOURLY_CAP_REACHED = "hourly-cap-reached"
    COOLDOWN_ACTIVE = "cooldown-active"
    NO_WALLET = "no-wallet"
    INSUFFICIENT_BALANCE = "insufficient-balance"


@dataclass(frozen=True)
class Allow:
    """Copy the signal, spending `amount` SOL (buy size)."""

    amount: Decimal
    allowed: Literal[True] = True


@dataclass(frozen=True)
class Deny:
    """Skip the signal. Denials are values, not errors."""

    reason: DenyReason
    detail: str = ""
    allowed: Literal[False] = False


Decision = Allow | Deny
