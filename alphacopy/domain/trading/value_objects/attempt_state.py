"""Attempt State - lifecycle of a CopyTradeAttempt."""

from enum import Enum


class AttemptState(str, Enum):
    """CopyTradeAttempt lifecycle.

    Flow:
        QUEUED → EXECUTING → SUCCEEDED
                           ↘ FAILED

    Every transition happens exactly once; SUCCEEDED and FAILED are terminal.
    """

    QUEUED = "queued"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    def is_final(self) -> bool:
        return self in (AttemptState.SUCCEEDED, AttemptState.FAILED)

    def can_transition_to(self, target: "AttemptState") -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[AttemptState, frozenset[AttemptState]] = {
    AttemptState.QUEUED: frozenset({AttemptState.EXECUTING}),
    AttemptState.EXECUTING: frozenset({AttemptState.SUCCEEDED, AttemptState.FAILED}),
    AttemptState.SUCCEEDED: frozenset(),
    AttemptState.FAILED: frozenset(),
}
