"""Domain events emitted by chain activity sources."""

from dataclasses import dataclass

from alphacopy.domain.shared import DomainEvent


@dataclass(frozen=True)
class SourceDegradedEvent(DomainEvent):
    """Source hit the consecutive-failure threshold and keeps retrying at the capped interval."""

    source: str
    consecutive_failures: int
    retry_interval_seconds: float
    last_error: str


@dataclass(frozen=True)
class SourceRecoveredEvent(DomainEvent):
    """Source reconnected after a degradation episode."""

    source: str
    failed_attempts: int


@dataclass(frozen=True)
class SourceOverflowEvent(DomainEvent):
    """Buffer was full; oldest transaction dropped."""

    source: str
    dropped_signature: str
    dropped_total: int
    capacity: int
