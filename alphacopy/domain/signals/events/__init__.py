"""Chain activity source events."""

from .source_events import (
    SourceDegradedEvent,
    SourceOverflowEvent,
    SourceRecoveredEvent,
)

__all__ = [
    "SourceDegradedEvent",
    "SourceOverflowEvent",
    "SourceRecoveredEvent",
]
