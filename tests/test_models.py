"""
Unit tests for data models and their validation

Tests for:
- DateRange inverted range rejection
- ChartConfig exponent/coefficient/budget bounds
- HistoricalPoint positive price invariant
- FeedResult status helpers
"""

import datetime

import pytest

from btc_powerlaw.constants import EXPONENT_MAX, EXPONENT_MIN
from btc_powerlaw.errors import InvalidRangeError
from btc_powerlaw.models import ChartConfig, DateRange, FeedResult, FeedStatus, HistoricalPoint


class TestDateRange:
    def test_inverted_range_raises(self) -> None:
        with pytest.raises(InvalidRangeError):
            DateRange(datetime.date(2021, 1, 1), datetime.date(2020, 1, 1))

    def test_invalid_range_is_value_error(self) -> None:
        """InvalidRangeError can be caught as a plain ValueError."""
        with pytest.raises(ValueError):
            DateRange(datetime.date(2021, 1, 2), datetime.date(2021, 1, 1))

    def test_span(self) -> None:
        assert DateRange(datetime.date(2020, 1, 1), datetime.date(2020, 1, 31)).span_days == 30

    def test_default_range(self) -> None:
        default = DateRange()
        assert default.start == datetime.date(2009, 1, 3)
        assert default.end == datetime.date(2040, 12, 31)


class TestChartConfig:
    def test_defaults(self) -> None:
        config = ChartConfig()
        assert config.exponent == 5.82
        assert config.max_points == 800
        assert config.recent_window_days is None

    @pytest.mark.parametrize("exponent", [EXPONENT_MIN - 0.01, EXPONENT_MAX + 0.01, float("nan")])
    def test_exponent_bounds(self, exponent) -> None:
        with pytest.raises(ValueError, match="exponent"):
            ChartConfig(exponent=exponent)

    def test_bounds_inclusive(self) -> None:
        assert ChartConfig(exponent=EXPONENT_MIN).exponent == EXPONENT_MIN
        assert ChartConfig(exponent=EXPONENT_MAX).exponent == EXPONENT_MAX

    def test_rejects_bad_coefficient_and_budget(self) -> None:
        with pytest.raises(ValueError, match="coefficient"):
            ChartConfig(coefficient=0)
        with pytest.raises(ValueError, match="max_points"):
            ChartConfig(max_points=0)
        with pytest.raises(ValueError, match="recent_window_days"):
            ChartConfig(recent_window_days=0)

    def test_frozen(self) -> None:
        config = ChartConfig()
        with pytest.raises(AttributeError):
            config.exponent = 6.0


class TestHistoricalPoint:
    @pytest.mark.parametrize("price", [0.0, -1.0])
    def test_price_must_be_positive(self, price) -> None:
        with pytest.raises(ValueError, match="price"):
            HistoricalPoint(date="2020-01-01", price=price, days_since_genesis=4015)


class TestFeedResult:
    def test_status_helpers(self) -> None:
        assert FeedResult(FeedStatus.OK).ok
        limited = FeedResult(FeedStatus.RATE_LIMITED)
        assert limited.rate_limited and not limited.ok
        failed = FeedResult(FeedStatus.FAILED, detail="down")
        assert not failed.ok and not failed.rate_limited
        assert failed.points == ()

    def test_status_values(self) -> None:
        assert FeedStatus("rate_limited") is FeedStatus.RATE_LIMITED
