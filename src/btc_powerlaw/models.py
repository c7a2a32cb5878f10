"""Data models for power-law curves, price history and chart records."""

from __future__ import annotations

import datetime
import enum
import math
from dataclasses import dataclass

from btc_powerlaw.constants import (
    DEFAULT_COEFFICIENT,
    DEFAULT_END_DATE,
    DEFAULT_EXPONENT,
    DEFAULT_START_DATE,
    EXPONENT_MAX,
    EXPONENT_MIN,
    MAX_CHART_POINTS,
)
from btc_powerlaw.errors import InvalidRangeError


@dataclass(slots=True, frozen=True)
class PowerLawPoint:
    """One sample of the analytic power-law curve.

    Attributes:
        date:             Calendar day of the sample.
        days:             Whole days since genesis (never negative).
        fair_price:       Model price in USD.
        support_price:    Lower band, ``fair_price * 0.42``.
        resistance_price: Upper band, ``fair_price * 2.4``.
    """

    date: datetime.date
    days: int
    fair_price: float
    support_price: float
    resistance_price: float

    @property
    def iso_date(self) -> str:
        return self.date.isoformat()


@dataclass(slots=True, frozen=True)
class HistoricalPoint:
    """An observed daily USD close.

    Attributes:
        date:               ISO calendar day (``YYYY-MM-DD``).
        price:              Observed price in USD, strictly positive.
        days_since_genesis: Whole days since genesis for ``date``.
    """

    date: str
    price: float
    days_since_genesis: int

    def __post_init__(self) -> None:
        if not self.price > 0:
            raise ValueError(f"price must be > 0, got {self.price}")


@dataclass(slots=True, frozen=True)
class ChartRecord:
    """A power-law sample joined with the matching observed price.

    ``band_base`` and ``band_width`` describe the support/resistance band as a
    stacked area. ``actual_price`` is ``None`` when no observation matched or
    when the date lies in the future.
    """

    date: str
    timestamp: int
    days: int
    fair_price: float
    support_price: float
    resistance_price: float
    band_base: float
    band_width: float
    actual_price: float | None = None


@dataclass(slots=True, frozen=True)
class DateRange:
    """Inclusive calendar range of a chart."""

    start: datetime.date = DEFAULT_START_DATE
    end: datetime.date = DEFAULT_END_DATE

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise InvalidRangeError(
                f"range end ({self.end}) must be >= start ({self.start})"
            )

    @property
    def span_days(self) -> int:
        return (self.end - self.start).days


@dataclass(slots=True, frozen=True)
class ChartConfig:
    """Everything a chart recomputation depends on.

    Attributes:
        exponent:           Power-law exponent, bounded to the slider range.
        coefficient:        Power-law coefficient, strictly positive.
        date_range:         Range to render.
        max_points:         Render budget handed to the downsampler.
        recent_window_days: When set, the last *n* days are rendered with one
                            exact daily record each instead of interval samples.
    """

    exponent: float = DEFAULT_EXPONENT
    coefficient: float = DEFAULT_COEFFICIENT
    date_range: DateRange = DateRange()
    max_points: int = MAX_CHART_POINTS
    recent_window_days: int | None = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.exponent) or not (
            EXPONENT_MIN <= self.exponent <= EXPONENT_MAX
        ):
            raise ValueError(
                f"exponent must be within [{EXPONENT_MIN}, {EXPONENT_MAX}], "
                f"got {self.exponent}"
            )
        if not self.coefficient > 0:
            raise ValueError(f"coefficient must be > 0, got {self.coefficient}")
        if self.max_points < 1:
            raise ValueError(f"max_points must be >= 1, got {self.max_points}")
        if self.recent_window_days is not None and self.recent_window_days < 1:
            raise ValueError(
                f"recent_window_days must be >= 1, got {self.recent_window_days}"
            )


@dataclass(slots=True, frozen=True)
class ChartOutput:
    """Result of one recomputation, ready for a rendering layer."""

    records: tuple[ChartRecord, ...]
    current_price: float | None
    current_fair_price: float
    deviation: float | None
    is_using_fallback: bool


class FeedStatus(str, enum.Enum):
    OK = "ok"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class FeedResult:
    """Outcome of a live fetch as seen by the price source.

    Attributes:
        status: ``ok``, ``rate_limited`` or ``failed``.
        points: Observed prices, oldest first (empty unless ``status`` is ok).
        source: Name of the feed that answered, if any.
        detail: Short reason for a failure, for logs.
    """

    status: FeedStatus
    points: tuple[HistoricalPoint, ...] = ()
    source: str | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status is FeedStatus.OK

    @property
    def rate_limited(self) -> bool:
        return self.status is FeedStatus.RATE_LIMITED
