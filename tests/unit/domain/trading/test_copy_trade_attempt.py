"""Tests for CopyTradeAttempt aggregate."""

from decimal import Decimal

import pytest

from alphacopy.domain.shared import InvalidStateTransition
from alphacopy.domain.signals.value_objects import WRAPPED_SOL_MINT, SwapDirection
from alphacopy.domain.trading.entities import CopyTradeAttempt, attempt_id_for
from alphacopy.domain.trading.events import CopyTradeFailedEvent, CopyTradeSucceededEvent
from alphacopy.domain.trading.value_objects import AttemptState, SwapResult


class TestAttemptIdentity:
    def test_id_is_deterministic_per_user_and_signature(self, make_swap_event):
        signal = make_swap_event(signature="sig-abc")

        first = CopyTradeAttempt.create(user_id=7, signal=signal)
        second = CopyTradeAttempt.create(user_id=7, signal=signal)

        assert first.id == second.id == attempt_id_for(7, "sig-abc")
        assert attempt_id_for(8, "sig-abc") != first.id
        assert attempt_id_for(7, "sig-abd") != first.id

    def test_created_queued(self, make_swap_event, now):
        attempt = CopyTradeAttempt.create(user_id=7, signal=make_swap_event(), now=now)

        assert attempt.state == AttemptState.QUEUED
        assert attempt.enqueued_at == now
        assert attempt.record is None
        assert not attempt.has_domain_events


class TestAttemptTransitions:
    """Tests для QUEUED → EXECUTING → SUCCEEDED | FAILED."""

    def test_mark_succeeded_builds_record_and_event(self, make_swap_event, token_mint, now):
        # Arrange
        signal = make_swap_event(signature="sig-in")
        attempt = CopyTradeAttempt.create(user_id=7, signal=signal, now=now)
        attempt.start_execution(now)

        # Act
        record = attempt.mark_succeeded(
            input_asset=WRAPPED_SOL_MINT,
            output_asset=token_mint,
            result=SwapResult(signature="sig-out", in_amount=50_000_000, out_amount=37_000),
            now=now,
        )

        # Assert
        assert attempt.state == AttemptState.SUCCEEDED
        assert record.status == AttemptState.SUCCEEDED
        assert record.id == attempt.id
        assert record.tx_signature_in == "sig-in"
        assert record.tx_signature_out == "sig-out"
        assert record.amount_in == Decimal(50_000_000)
        assert record.traded_asset == token_mint
        assert record.created_at == now

        events = attempt.get_domain_events()
        assert len(events) == 1
        assert isinstance(events[0], CopyTradeSucceededEvent)
        assert events[0].record is record

    def test_mark_failed_builds_record_and_event(self, make_swap_event, now):
        attempt = CopyTradeAttempt.create(user_id=7, signal=make_swap_event(), now=now)
        attempt.start_execution(now)

        record = attempt.mark_failed("Quote unavailable: no route", now=now)

        assert attempt.state == AttemptState.FAILED
        assert attempt.error == "Quote unavailable: no route"
        assert record.succeeded is False
        assert record.tx_signature_out is None
        assert record.amount_out == Decimal(0)
        events = attempt.get_domain_events()
        assert len(events) == 1
        assert isinstance(events[0], CopyTradeFailedEvent)
        assert events[0].reason == "Quote unavailable: no route"

    def test_sell_failure_keeps_sold_token_as_traded_asset(self, make_swap_event, token_mint, now):
        attempt = CopyTradeAttempt.create(
            user_id=7, signal=make_swap_event(direction=SwapDirection.SELL), now=now
        )
        attempt.start_execution(now)

        record = attempt.mark_failed("no-token-balance", input_asset=token_mint, output_asset=WRAPPED_SOL_MINT)

        assert record.traded_asset == token_mint

    def test_cannot_finish_before_executing(self, make_swap_event):
        attempt = CopyTradeAttempt.create(user_id=7, signal=make_swap_event())

        with pytest.raises(InvalidStateTransition):
            attempt.mark_failed("too early")

    def test_terminal_state_is_final(self, make_swap_event):
        attempt = CopyTradeAttempt.create(user_id=7, signal=make_swap_event())
        attempt.start_execution()
        attempt.mark_failed("boom")

        with pytest.raises(InvalidStateTransition):
            attempt.mark_succeeded(
                input_asset=WRAPPED_SOL_MINT,
                output_asset="x",
                result=SwapResult("sig", 1, 1),
            )
        with pytest.raises(InvalidStateTransition):
            attempt.start_execution()
        assert len(attempt.get_domain_events()) == 1

    def test_clear_domain_events(self, make_swap_event):
        attempt = CopyTradeAttempt.create(user_id=7, signal=make_swap_event())
        attempt.start_execution()
        attempt.mark_failed("boom")

        attempt.clear_domain_events()

        assert attempt.get_domain_events() == []
