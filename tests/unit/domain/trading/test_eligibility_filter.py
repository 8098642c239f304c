"""Tests for EligibilityFilter domain service."""

from datetime import timedelta
from decimal import Decimal

import pytest

from alphacopy.domain.signals.value_objects import USDC_MINT, SwapDirection
from alphacopy.domain.trading.services import EligibilityFilter
from alphacopy.domain.trading.value_objects import Allow, Deny, DenyReason, PerUserCounters

TOKEN_X = "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm"


@pytest.fixture
def eligibility():
    return EligibilityFilter(
        min_trade_interval=timedelta(seconds=30),
        fee_buffer=Decimal("0.01"),
        scaling_factor=Decimal("0.1"),
    )


class TestEligibilityDenials:
    """Tests для check order: first failing check wins."""

    def test_auto_trading_disabled(self, eligibility, make_user, make_swap_event, now):
        user = make_user(auto_trading_enabled=False)

        decision = eligibility.evaluate(user, user.settings, PerUserCounters(), make_swap_event(), now)

        assert decision == Deny(DenyReason.AUTO_DISABLED)

    def test_sell_only_filters_buy(self, eligibility, make_user, make_swap_event, now):
        user = make_user(sell_only=True)

        decision = eligibility.evaluate(user, user.settings, PerUserCounters(), make_swap_event(), now)

        assert isinstance(decision, Deny)
        assert decision.reason == DenyReason.DIRECTION_FILTERED

    def test_buy_only_filters_ambiguous(self, eligibility, make_user, make_swap_event, now):
        user = make_user(buy_only=True)
        signal = make_swap_event(direction=SwapDirection.AMBIGUOUS, input_asset=TOKEN_X)

        decision = eligibility.evaluate(user, user.settings, PerUserCounters(), signal, now)

        assert decision.reason == DenyReason.DIRECTION_FILTERED

    def test_token_cap_reached(self, eligibility, make_user, make_swap_event, token_mint, now):
        user = make_user(max_trades_per_token=1)
        counters = PerUserCounters().with_trade(token_mint, now - timedelta(hours=5))

        decision = eligibility.evaluate(user, user.settings, counters, make_swap_event(), now)

        assert decision.reason == DenyReason.TOKEN_CAP_REACHED

    def test_sell_counts_against_sold_token(self, eligibility, make_user, make_swap_event, token_mint, now):
        user = make_user(max_trades_per_token=1)
        counters = PerUserCounters().with_trade(token_mint, now - timedelta(hours=5))
        signal = make_swap_event(direction=SwapDirection.SELL)

        decision = eligibility.evaluate(user, user.settings, counters, signal, now)

        assert decision.reason == DenyReason.TOKEN_CAP_REACHED

    def test_hourly_cap_checked_before_cooldown(self, eligibility, make_user, make_swap_event, now):
        # Arrange - last trade 5s ago would also trip the cooldown
        user = make_user(max_trades_per_hour=1)
        counters = PerUserCounters().with_trade(TOKEN_X, now - timedelta(seconds=5))

        # Act
        decision = eligibility.evaluate(user, user.settings, counters, make_swap_event(), now)

        # Assert
        assert decision.reason == DenyReason.HOURLY_CAP_REACHED

    def test_cooldown_active(self, eligibility, make_user, make_swap_event, now):
        user = make_user()
        counters = PerUserCounters().with_trade(TOKEN_X, now - timedelta(seconds=10))

        decision = eligibility.evaluate(user, user.settings, counters, make_swap_event(), now)

        assert decision == Deny(DenyReason.COOLDOWN_ACTIVE)

    def test_cooldown_over_at_exact_interval(self, eligibility, make_user, make_swap_event, now):
        user = make_user()
        counters = PerUserCounters().with_trade(TOKEN_X, now - timedelta(seconds=30))

        decision = eligibility.evaluate(user, user.settings, counters, make_swap_event(), now)

        assert isinstance(decision, Allow)

    def test_no_wallet(self, eligibility, make_user, make_swap_event, now):
        user = make_user(with_wallet=False)

        decision = eligibility.evaluate(user, user.settings, PerUserCounters(), make_swap_event(), now)

        assert decision == Deny(DenyReason.NO_WALLET)

    def test_insufficient_balance_includes_fee_buffer(self, eligibility, make_user, make_swap_event, now):
        user = make_user(trade_amount=Decimal("0.05"))

        decision = eligibility.evaluate(
            user, user.settings, PerUserCounters(), make_swap_event(), now, balance=Decimal("0.059")
        )

        assert decision.reason == DenyReason.INSUFFICIENT_BALANCE
        assert "0.06" in decision.detail

    def test_balance_check_skipped_without_balance(self, eligibility, make_user, make_swap_event, now):
        user = make_user()

        decision = eligibility.evaluate(user, user.settings, PerUserCounters(), make_swap_event(), now)

        assert decision.allowed is True


class TestEligibilitySizing:
    """Tests для min(trade_amount, source amount * scaling_factor)."""

    def test_capped_by_trade_amount(self, eligibility, make_user, make_swap_event, now):
        user = make_user(trade_amount=Decimal("0.05"))

        decision = eligibility.evaluate(
            user, user.settings, PerUserCounters(), make_swap_event(input_amount=Decimal("2")), now
        )

        assert decision == Allow(Decimal("0.05"))

    def test_scaled_below_trade_amount(self, eligibility, make_user, make_swap_event, now):
        user = make_user(trade_amount=Decimal("1"))

        decision = eligibility.evaluate(
            user, user.settings, PerUserCounters(), make_swap_event(input_amount=Decimal("0.5")), now
        )

        assert decision.amount == Decimal("0.05")

    def test_stable_quoted_swap_uses_fixed_amount(self, eligibility, make_user, make_swap_event, now):
        user = make_user(trade_amount=Decimal("0.3"))
        signal = make_swap_event(input_asset=USDC_MINT, input_amount=Decimal("0.5"))

        decision = eligibility.evaluate(user, user.settings, PerUserCounters(), signal, now)

        assert decision.amount == Decimal("0.3")

    def test_unscaled_filter_copies_fixed_amount(self, make_user, make_swap_event, now):
        # Arrange
        unscaled = EligibilityFilter(min_trade_interval=timedelta(0))
        user = make_user(trade_amount=Decimal("0.05"))
        signal = make_swap_event(input_amount=Decimal("0.3"))

        # Act
        decision = unscaled.evaluate(user, user.settings, PerUserCounters(), signal, now)

        # Assert
        assert decision == Allow(Decimal("0.05"))

    def test_rejects_non_positive_scaling_factor(self):
        with pytest.raises(ValueError):
            EligibilityFilter(scaling_factor=Decimal("0"))


class TestEligibilityScenarios:
    def test_token_cap_after_first_trade(self, eligibility, make_user, make_swap_event, now):
        # Arrange
        user = make_user(
            trade_amount=Decimal("0.05"),
            slippage_bps=300,
            max_trades_per_token=1,
        )
        first = make_swap_event(signature="sig-1", output_asset=TOKEN_X)
        second = make_swap_event(signature="sig-2", output_asset=TOKEN_X)

        # Act
        decision_1 = eligibility.evaluate(user, user.settings, PerUserCounters(), first, now)
        counters = PerUserCounters().with_trade(first.traded_asset, now)
        later = now + timedelta(minutes=5)
        decision_2 = eligibility.evaluate(user, user.settings, counters, second, later)

        # Assert
        assert decision_1 == Allow(Decimal("0.05"))
        assert decision_2.reason == DenyReason.TOKEN_CAP_REACHED

    def test_hourly_cap_and_window_rollover(self, eligibility, make_user, make_swap_event, now):
        # Arrange
        user = make_user(max_trades_per_hour=2)
        assets = [
            "3S8qX1MsMqRbiwKg2cQyx7nis1oHMgaCuc9c4VfvVdPN",
            "A8C3xuqscfmyLrte3VmTqrAq8kgMASius9AFNANwpump",
            "ED5nyyWEzpPPiWimP8vYm7sD7TD3LAt3Q3gRTWHzPJBY",
            "HeLp6NuQkmYB4pYWo2zYs22mESHXPQYzXbB8n4V98jwC",
        ]
        counters = PerUserCounters()
        decisions = []

        # Act - three signals within one minute
        for offset, asset in zip((0, 31, 59), assets):
            at = now + timedelta(seconds=offset)
            signal = make_swap_event(signature=f"sig-{offset}", output_asset=asset)
            decision = eligibility.evaluate(user, user.settings, counters, signal, at)
            decisions.append(decision)
            if decision.allowed:
                counters = counters.with_trade(asset, at)

        rolled_over = now + timedelta(minutes=61)
        fourth = eligibility.evaluate(
            user,
            user.settings,
            counters,
            make_swap_event(signature="sig-4", output_asset=assets[3]),
            rolled_over,
        )

        # Assert
        assert [d.allowed for d in decisions] == [True, True, False]
        assert decisions[2].reason == DenyReason.HOURLY_CAP_REACHED
        assert isinstance(fourth, Allow)
