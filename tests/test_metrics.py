"""
Unit tests for derived metrics

Tests for:
- calculate_deviation, including the zero fair price case
- get_current_fair_price
- format_price bucket boundaries
"""

import datetime

import pytest

from btc_powerlaw.metrics import calculate_deviation, format_price, get_current_fair_price
from btc_powerlaw.power_law import calculate_power_law_price, days_since_genesis


class TestCalculateDeviation:
    """Tests for calculate_deviation."""

    def test_above_fair(self) -> None:
        assert calculate_deviation(110.0, 100.0) == pytest.approx(10.0)

    def test_below_fair(self) -> None:
        assert calculate_deviation(50.0, 100.0) == pytest.approx(-50.0)

    @pytest.mark.parametrize("actual", [0.0, 1.0, 98_500.0, -3.0])
    def test_zero_fair_price_is_zero(self, actual) -> None:
        """Division by zero is defined as no deviation."""
        assert calculate_deviation(actual, 0) == 0


class TestGetCurrentFairPrice:
    def test_matches_formula_for_given_day(self) -> None:
        today = datetime.date(2025, 12, 25)
        expected = calculate_power_law_price(days_since_genesis(today), 1.0117e-17, 5.82)
        assert get_current_fair_price(1.0117e-17, 5.82, today=today) == pytest.approx(expected)

    def test_defaults_to_today(self) -> None:
        assert get_current_fair_price() > 0


class TestFormatPrice:
    """Tests for format_price bucket boundaries."""

    @pytest.mark.parametrize(
        ("price", "expected"),
        [
            (1_234_567.0, "$1.23M"),
            (1_000_000.0, "$1.00M"),
            (98_500.0, "$98.5K"),
            (1_000.0, "$1.0K"),
            (999.5, "$999.50"),
            (12.5, "$12.50"),
            (1.0, "$1.00"),
            (0.05, "$0.0500"),
            (0.01, "$0.0100"),
            (0.005, "$5.00e-03"),
            (0.0, "$0.00e+00"),
        ],
    )
    def test_buckets(self, price, expected) -> None:
        assert format_price(price) == expected
