"""Power-law fair value model.

Fair price grows as a power of the number of days since the genesis block:

    price = coefficient * days ** exponent

Support and resistance are fixed multiples of the fair price. Every function
here is pure; dates before genesis collapse to day 0 and price 0.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterator
from dataclasses import dataclass

from btc_powerlaw.constants import (
    DEFAULT_COEFFICIENT,
    DEFAULT_EXPONENT,
    GENESIS_DATE,
    GENESIS_EPOCH,
    INTERVAL_THRESHOLDS,
    RESISTANCE_MULTIPLIER,
    SUPPORT_MULTIPLIER,
)
from btc_powerlaw.errors import InvalidRangeError
from btc_powerlaw.models import PowerLawPoint

_ONE_DAY = datetime.timedelta(days=1)


def as_date(value: datetime.date) -> datetime.date:
    """Return the UTC calendar day of *value* (dates pass through)."""
    if isinstance(value, datetime.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(datetime.timezone.utc)
        return value.date()
    return value


def days_since_genesis(value: datetime.date) -> int:
    """Whole days between genesis and *value*, floored and clamped to >= 0.

    Accepts a ``date`` or a ``datetime``; naive datetimes are read as UTC.
    """
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        days = (value - GENESIS_EPOCH) // _ONE_DAY
    else:
        days = (value - GENESIS_DATE).days
    return max(0, days)


def calculate_power_law_price(
    days: float,
    coefficient: float = DEFAULT_COEFFICIENT,
    exponent: float = DEFAULT_EXPONENT,
) -> float:
    if days <= 0:
        return 0.0
    return coefficient * days**exponent


def calculate_support_price(
    fair_price: float, multiplier: float = SUPPORT_MULTIPLIER
) -> float:
    return fair_price * multiplier


def calculate_resistance_price(
    fair_price: float, multiplier: float = RESISTANCE_MULTIPLIER
) -> float:
    return fair_price * multiplier


def calculate_optimal_interval(start: datetime.date, end: datetime.date) -> int:
    """Pick a sampling stride in days from the span of the range.

    Wider ranges are sampled more sparsely: more than 20 years uses a 30-day
    step, more than 10 years 14 days, more than 5 years 7 days, more than one
    year 3 days, anything shorter is sampled daily.
    """
    span = (as_date(end) - as_date(start)).days
    for threshold, interval in INTERVAL_THRESHOLDS:
        if span > threshold:
            return interval
    return 1


def power_law_point(
    day: datetime.date,
    coefficient: float = DEFAULT_COEFFICIENT,
    exponent: float = DEFAULT_EXPONENT,
) -> PowerLawPoint:
    """Evaluate the model (fair price and band) for a single calendar day."""
    day = as_date(day)
    days = days_since_genesis(day)
    fair = calculate_power_law_price(days, coefficient, exponent)
    return PowerLawPoint(
        date=day,
        days=days,
        fair_price=fair,
        support_price=calculate_support_price(fair),
        resistance_price=calculate_resistance_price(fair),
    )


@dataclass(slots=True, frozen=True)
class PowerLawCurve:
    """Lazily sampled power-law curve between two dates (inclusive).

    Iterating yields :class:`PowerLawPoint` objects oldest first. The curve is
    restartable: every iteration recomputes the points from scratch. Days at
    or before genesis are skipped, and the ``end`` date is always emitted even
    when it falls between two strides.
    """

    start: datetime.date
    end: datetime.date
    coefficient: float
    exponent: float
    interval_days: int

    def __iter__(self) -> Iterator[PowerLawPoint]:
        step = datetime.timedelta(days=self.interval_days)
        current = self.start
        last: datetime.date | None = None

        while current <= self.end:
            if days_since_genesis(current) > 0:
                yield power_law_point(current, self.coefficient, self.exponent)
                last = current
            current += step

        if last != self.end and days_since_genesis(self.end) > 0:
            yield power_law_point(self.end, self.coefficient, self.exponent)


def generate_power_law_data(
    start: datetime.date,
    end: datetime.date,
    coefficient: float = DEFAULT_COEFFICIENT,
    exponent: float = DEFAULT_EXPONENT,
    interval_days: int | None = None,
) -> PowerLawCurve:
    """Sample the power-law curve from *start* to *end*.

    Args:
        start:         First date of the range (``date`` or ``datetime``).
        end:           Last date of the range, always present in the output
                       when it lies after genesis.
        coefficient:   Power-law coefficient.
        exponent:      Power-law exponent.
        interval_days: Fixed stride in days; chosen from the range span when
                       omitted (see :func:`calculate_optimal_interval`).

    Raises:
        InvalidRangeError: If *end* is before *start*.
        ValueError:        If *interval_days* is not positive.
    """
    start, end = as_date(start), as_date(end)
    if end < start:
        raise InvalidRangeError(f"range end ({end}) must be >= start ({start})")

    if interval_days is None:
        interval_days = calculate_optimal_interval(start, end)
    elif interval_days < 1:
        raise ValueError(f"interval_days must be >= 1, got {interval_days}")

    return PowerLawCurve(
        start=start,
        end=end,
        coefficient=coefficient,
        exponent=exponent,
        interval_days=interval_days,
    )


def today_utc() -> datetime.date:
    """Current calendar day in UTC."""
    return datetime.datetime.now(datetime.timezone.utc).date()
