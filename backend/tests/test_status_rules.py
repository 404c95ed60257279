"""
Status rules, equipment range resolution and the input gates.

These are pure functions: no app or database needed.
"""

import math

import pytest

from app.services.equipment_service import (
    CHILLER_RANGE,
    DEFAULT_RANGE,
    FREEZER_RANGE,
    resolve_range,
)
from app.services.status_rules import (
    STATUS_IN_STOCK,
    STATUS_NEED_STOCK,
    STATUS_OUT_OF_STOCK,
    is_out_of_range,
    status_badge,
    stock_status,
    temperature_in_range,
    temperature_tag,
)
from app.validation import ValidationError, parse_quantity, parse_temperature


class TestStockStatus:
    @pytest.mark.parametrize("threshold", [None, 0, 5, 100, "abc"])
    def test_zero_is_out_regardless_of_threshold(self, threshold):
        assert stock_status(0, threshold) == STATUS_OUT_OF_STOCK

    def test_at_or_under_threshold_is_low(self):
        assert stock_status(5, 5) == STATUS_NEED_STOCK
        assert stock_status(3, 5) == STATUS_NEED_STOCK
        assert stock_status(0.5, 1) == STATUS_NEED_STOCK

    def test_over_threshold_is_ok(self):
        assert stock_status(6, 5) == STATUS_IN_STOCK

    def test_non_numeric_threshold_never_low(self):
        assert stock_status(1, None) == STATUS_IN_STOCK
        assert stock_status(1, "5") == STATUS_IN_STOCK
        assert stock_status(1, True) == STATUS_IN_STOCK

    def test_badges(self):
        assert status_badge(STATUS_OUT_OF_STOCK) == "OUT"
        assert status_badge(STATUS_NEED_STOCK) == "LOW"
        assert status_badge(STATUS_IN_STOCK) == "OK"
        assert status_badge(None) == "OK"


class TestTemperatureRange:
    def test_inclusive_bounds(self):
        assert temperature_in_range(0, 0, 5)
        assert temperature_in_range(5, 0, 5)
        assert not temperature_in_range(5.1, 0, 5)
        assert not temperature_in_range(-0.1, 0, 5)

    @pytest.mark.parametrize("temp", [None, "3", math.nan, True])
    def test_non_numeric_is_not_in_range(self, temp):
        assert temperature_in_range(temp, 0, 5) is False

    @pytest.mark.parametrize("temp", [None, "3", math.nan])
    def test_missing_reading_is_not_out_of_range(self, temp):
        assert is_out_of_range(temp, 0, 5) is False

    def test_out_of_range(self):
        assert is_out_of_range(-10, -25, -15) is True
        assert is_out_of_range(-20, -25, -15) is False

    def test_tags(self):
        assert temperature_tag(8, 0, 5) == "HIGH"
        assert temperature_tag(-1, 0, 5) == "LOW"
        assert temperature_tag(3, 0, 5) == "OK"
        assert temperature_tag(None, 0, 5) == "OK"


class TestResolveRange:
    @pytest.mark.parametrize("label", ["Freezer", "walk-in FREEZER", "Ice cream freezer 2"])
    def test_freezer_label(self, label):
        assert resolve_range({"id": "x", "label": label}) == FREEZER_RANGE

    @pytest.mark.parametrize("label", ["Drinks cooler", "Prep Fridge"])
    def test_chiller_label(self, label):
        assert resolve_range({"id": "x", "label": label}) == CHILLER_RANGE

    def test_default(self):
        assert resolve_range({"id": "x", "label": "Display case"}) == DEFAULT_RANGE
        assert resolve_range({}) == DEFAULT_RANGE
        assert resolve_range(None) == DEFAULT_RANGE

    def test_explicit_range_wins(self):
        eq = {"id": "f", "label": "Freezer", "min": -30, "max": -18}
        assert resolve_range(eq) == {"min": -30, "max": -18}

    def test_partial_explicit_range_falls_back_to_label(self):
        eq = {"id": "f", "label": "Freezer", "min": -30}
        assert resolve_range(eq) == FREEZER_RANGE

    def test_id_counts_when_label_blank(self):
        assert resolve_range({"id": "freezer1", "label": ""}) == FREEZER_RANGE


class TestInputGates:
    def test_quantity_accepts_numbers_and_strings(self):
        assert parse_quantity(3) == 3
        assert parse_quantity("2.5") == 2.5
        assert parse_quantity("1,5") == 1.5
        assert parse_quantity("4.0") == 4
        assert isinstance(parse_quantity("4.0"), int)

    @pytest.mark.parametrize("value", [-1, "-0.5", "abc", "", None, True, math.inf, "nan"])
    def test_quantity_rejects(self, value):
        with pytest.raises(ValidationError):
            parse_quantity(value)

    def test_temperature_allows_negative(self):
        assert parse_temperature("-18") == -18
        assert parse_temperature("3,5") == 3.5

    @pytest.mark.parametrize("value", ["warm", "", None, False, math.inf])
    def test_temperature_rejects(self, value):
        with pytest.raises(ValidationError):
            parse_temperature(value)
