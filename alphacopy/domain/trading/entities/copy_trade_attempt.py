"""CopyTradeAttempt - Aggregate Root for one user's copy of one signal."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid5

from alphacopy.domain.shared import AggregateRoot, InvalidStateTransition
from alphacopy.domain.signals.value_objects import SwapEvent

from ..events import CopyTradeFailedEvent, CopyTradeSucceededEvent
from ..value_objects import AttemptState, SwapResult
from .trade_record import TradeRecord

ATTEMPT_NAMESPACE = UUID("6f1c2a52-3d0e-4c55-9f6b-2f4f3b0e7a11")


def attempt_id_for(user_id: int, tx_signature: str) -> str:
    """Deterministic attempt id for (user, signal signature)."""
    return str(uuid5(ATTEMPT_NAMESPACE, f"{user_id}:{tx_signature}"))


class CopyTradeAttempt(AggregateRoot):
    """Unit of work in ExecutionQueue.

    Business Rules:
    - id is derived from (user_id, tx_signature), one attempt per pair
    - QUEUED → EXECUTING → SUCCEEDED | FAILED, each transition once
    - terminal transitions build the TradeRecord and emit one domain event

    Example:
        >>> attempt = CopyTradeAttempt.create(user_id=7, signal=swap)
        >>> attempt.start_execution()
        >>> attempt.mark_succeeded(
        ...     input_asset=WRAPPED_SOL_MINT,
        ...     output_asset=swap.traded_asset,
        ...     result=SwapResult("sig", 50_000_000, 1_234),
        ... )
        >>> attempt.record.status
        <AttemptState.SUCCEEDED: 'succeeded'>
    """

    def __init__(
        self,
        *,
        id: str,
        user_id: int,
        signal: SwapEvent,
        enqueued_at: datetime,
        state: AttemptState = AttemptState.QUEUED,
        started_at: datetime | None = None,
        finished_at: datetime | None = None,
        error: str | None = None,
    ) -> None:
        super().__init__(id=id)
        self.user_id = user_id
        self.signal = signal
        self.enqueued_at = enqueued_at
        self.state = state
        self.started_at = started_at
        self.finished_at = finished_at
        self.error = error
        self.record: TradeRecord | None = None

    @classmethod
    def create(
        cls,
        *,
        user_id: int,
        signal: SwapEvent,
        now: datetime | None = None,
    ) -> "CopyTradeAttempt":
        return cls(
            id=attempt_id_for(user_id, signal.tx_signature),
            user_id=user_id,
            signal=signal,
            enqueued_at=now or datetime.now(timezone.utc),
        )

    @property
    def id(self) -> str:
        return self._id  # type: ignore[return-value]

    @property
    def source_wallet(self) -> str:
        return self.signal.source_wallet

    def _transition(self, target: AttemptState) -> None:
        if not self.state.can_transition_to(target):
            raise InvalidStateTransition(
                f"Cannot transition from {self.state.value} to {target.value}",
                attempt_id=self.id,
                from_state=self.state.value,
                to_state=target.value,
            )
        self.state = target

    def start_execution(self, now: datetime | None = None) -> None:
        """QUEUED → EXECUTING."""
        self._transition(AttemptState.EXECUTING)
        self.started_at = now or datetime.now(timezone.utc)

    def mark_succeeded(
        self,
        *,
        input_asset: str,
        output_asset: str,
        result: SwapResult,
        now: datetime | None = None,
    ) -> TradeRecord:
        """EXECUTING → SUCCEEDED. Emits CopyTradeSucceededEvent."""
        self._transition(AttemptState.SUCCEEDED)
        self.finished_at = now or datetime.now(timezone.utc)
        self.record = self._build_record(
            input_asset=input_asset,
            output_asset=output_asset,
            amount_in=Decimal(result.in_amount),
            amount_out=Decimal(result.out_amount),
            tx_signature_out=result.signature,
        )
        self.add_domain_event(
            CopyTradeSucceededEvent(
                attempt_id=self.id,
                user_id=self.user_id,
                record=self.record,
            )
        )
        return self.record

    def mark_failed(
        self,
        reason: str,
        *,
        input_asset: str | None = None,
        output_asset: str | None = None,
        amount_in: int = 0,
        now: datetime | None = None,
    ) -> TradeRecord:
        """EXECUTING → FAILED. Emits CopyTradeFailedEvent.

        Args:
            reason: Human-readable failure reason (persisted and notified).
            input_asset: Planned input asset, defaults to the signal's.
            output_asset: Planned output asset, defaults to the signal's.
            amount_in: Planned input amount in base units, if known.
        """
        self._transition(AttemptState.FAILED)
        self.finished_at = now or datetime.now(timezone.utc)
        self.error = reason
        self.record = self._build_record(
            input_asset=input_asset or self.signal.input_asset,
            output_asset=output_asset or self.signal.output_asset,
            amount_in=Decimal(amount_in),
            amount_out=Decimal(0),
            tx_signature_out=None,
            error=reason,
        )
        self.add_domain_event(
            CopyTradeFailedEvent(
                attempt_id=self.id,
                user_id=self.user_id,
                reason=reason,
                record=self.record,
            )
        )
        return self.record

    def _build_record(
        self,
        *,
        input_asset: str,
        output_asset: str,
        amount_in: Decimal,
        amount_out: Decimal,
        tx_signature_out: str | None,
        error: str | None = None,
    ) -> TradeRecord:
        return TradeRecord(
            id=self.id,
            user_id=self.user_id,
            source_wallet=self.source_wallet,
            tx_signature_in=self.signal.tx_signature,
            tx_signature_out=tx_signature_out,
            input_asset=input_asset,
            output_asset=output_asset,
            amount_in=amount_in,
            amount_out=amount_out,
            direction=self.signal.direction,
            status=self.state,
            error=error,
            created_at=self.finished_at or datetime.now(timezone.utc),
        )
