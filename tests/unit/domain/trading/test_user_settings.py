"""Tests for UserSettings value object."""

from decimal import Decimal

import pytest

from alphacopy.domain.signals.value_objects import SwapDirection
from alphacopy.domain.trading.exceptions import InvalidSettingsError
from alphacopy.domain.trading.value_objects import UserSettings


class TestUserSettingsValidation:
    """Tests для bounds checking."""

    def test_defaults(self):
        settings = UserSettings()

        assert settings.trade_amount == Decimal("0.01")
        assert settings.slippage_bps == 300
        assert settings.auto_trading_enabled is False
        assert settings.delay_ms == 1000

    def test_trade_amount_coerced_to_decimal(self):
        settings = UserSettings(trade_amount="0.25")

        assert settings.trade_amount == Decimal("0.25")

    @pytest.mark.parametrize(
        "field,value",
        [
            ("trade_amount", Decimal("0.0001")),
            ("trade_amount", Decimal("11")),
            ("slippage_bps", 0),
            ("slippage_bps", 5001),
            ("delay_ms", -1),
            ("delay_ms", 60_001),
            ("max_trades_per_token", 0),
            ("max_trades_per_hour", 0),
        ],
    )
    def test_out_of_range_rejected(self, field, value):
        with pytest.raises(InvalidSettingsError):
            UserSettings(**{field: value})

    def test_non_numeric_trade_amount_rejected(self):
        with pytest.raises(InvalidSettingsError, match="number"):
            UserSettings(trade_amount="lots")

    def test_both_direction_flags_rejected(self):
        with pytest.raises(InvalidSettingsError, match="mutually exclusive"):
            UserSettings(buy_only=True, sell_only=True)


class TestUserSettingsUpdates:
    """Tests для with_updates()."""

    def test_enabling_buy_only_clears_sell_only(self):
        # Arrange
        settings = UserSettings(sell_only=True)

        # Act
        updated = settings.with_updates(buy_only=True)

        # Assert
        assert updated.buy_only is True
        assert updated.sell_only is False
        assert settings.sell_only is True  # original untouched

    def test_enabling_sell_only_clears_buy_only(self):
        updated = UserSettings(buy_only=True).with_updates(sell_only=True)

        assert updated.sell_only is True
        assert updated.buy_only is False

    def test_both_flags_in_one_update_rejected(self):
        with pytest.raises(InvalidSettingsError):
            UserSettings().with_updates(buy_only=True, sell_only=True)

    def test_unknown_field_rejected(self):
        with pytest.raises(InvalidSettingsError, match="Unknown settings"):
            UserSettings().with_updates(leverage=10)

    def test_invalid_update_keeps_previous_value(self):
        settings = UserSettings(slippage_bps=100)

        with pytest.raises(InvalidSettingsError):
            settings.with_updates(slippage_bps=9000)
        assert settings.slippage_bps == 100


class TestUserSettingsDirection:
    @pytest.mark.parametrize(
        "settings,direction,expected",
        [
            (UserSettings(), SwapDirection.AMBIGUOUS, True),
            (UserSettings(buy_only=True), SwapDirection.BUY, True),
            (UserSettings(buy_only=True), SwapDirection.SELL, False),
            (UserSettings(buy_only=True), SwapDirection.AMBIGUOUS, False),
            (UserSettings(sell_only=True), SwapDirection.SELL, True),
            (UserSettings(sell_only=True), SwapDirection.BUY, False),
        ],
    )
    def test_allows_direction(self, settings, direction, expected):
        assert settings.allows_direction(direction) is expected


class TestUserSettingsSerialization:
    def test_dict_round_trip(self):
        settings = UserSettings(trade_amount=Decimal("0.2"), sell_only=True, delay_ms=0)

        data = settings.to_dict()

        assert data["trade_amount"] == "0.2"
        assert UserSettings.from_dict(data) == settings

    def test_from_dict_ignores_unknown_keys(self):
        settings = UserSettings.from_dict({"slippage_bps": 50, "legacy_flag": True})

        assert settings.slippage_bps == 50

    def test_from_empty_dict_gives_defaults(self):
        assert UserSettings.from_dict(None) == UserSettings()
