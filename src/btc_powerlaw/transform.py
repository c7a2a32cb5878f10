"""Reconcile the power-law curve with observed prices into chart records.

Historical prices are keyed by ISO day. A power-law sample takes the observed
price of its own day when there is one; otherwise the closest observation
within a tolerance (15 days by default) is used, because long ranges are
sampled every few weeks while observations are daily. Samples after "now"
never carry an observed price.
"""

from __future__ import annotations

import bisect
import datetime
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, TypeVar

from btc_powerlaw.constants import NEAREST_MATCH_TOLERANCE_DAYS, RECENT_WINDOW_DAYS
from btc_powerlaw.models import ChartRecord, HistoricalPoint, PowerLawPoint
from btc_powerlaw.power_law import (
    as_date,
    days_since_genesis,
    power_law_point,
    today_utc,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _parse_day(value: str | datetime.date) -> datetime.date:
    if isinstance(value, str):
        return datetime.date.fromisoformat(value[:10])
    return as_date(value)


def transform_raw_prices(
    prices: Iterable[Mapping[str, Any]],
) -> list[HistoricalPoint]:
    """Convert raw ``{"date", "price"}`` rows into :class:`HistoricalPoint` objects.

    Rows with a missing or unparsable date, or a missing or non-positive
    price, are skipped. Input order is preserved; duplicate dates are kept and
    resolved later by :func:`create_price_map` (last one wins).
    """
    points: list[HistoricalPoint] = []
    skipped = 0
    for row in prices:
        try:
            day = _parse_day(row["date"])
            price = row["price"]
            if price is None:
                raise ValueError("missing price")
            points.append(
                HistoricalPoint(
                    date=day.isoformat(),
                    price=float(price),
                    days_since_genesis=days_since_genesis(day),
                )
            )
        except (KeyError, TypeError, ValueError):
            skipped += 1
            continue

    if skipped:
        logger.debug("skipped %d malformed price rows", skipped)
    return points


def create_price_map(prices: Iterable[HistoricalPoint]) -> dict[str, float]:
    """Map ISO day to price; a later point for the same day overwrites an earlier one."""
    price_map: dict[str, float] = {}
    for point in prices:
        price_map[point.date] = point.price
    return price_map


def merge_historical_data(
    baseline: Iterable[HistoricalPoint],
    live: Iterable[HistoricalPoint],
) -> tuple[HistoricalPoint, ...]:
    """Overlay *live* on *baseline*, one point per day, sorted by date.

    The baseline is inserted first and live points overwrite it day by day,
    so the live feed wins wherever both have a value.
    """
    by_date: dict[str, HistoricalPoint] = {}
    for point in baseline:
        by_date[point.date] = point
    for point in live:
        by_date[point.date] = point
    return tuple(sorted(by_date.values(), key=lambda p: p.date))


class PriceIndex:
    """Exact and nearest-date lookup over a date -> price mapping.

    Nearest lookups bisect a sorted copy of the keys. When two observations
    are equally far from the target, the one that comes first in the
    mapping's iteration order wins.
    """

    __slots__ = ("_prices", "_ordinals", "_entries")

    def __init__(self, price_map: Mapping[str, float]) -> None:
        self._prices = dict(price_map)
        entries = sorted(
            (_parse_day(day).toordinal(), position, price)
            for position, (day, price) in enumerate(self._prices.items())
        )
        self._entries = entries
        self._ordinals = [entry[0] for entry in entries]

    def __len__(self) -> int:
        return len(self._prices)

    def exact(self, day: str) -> float | None:
        return self._prices.get(day)

    def nearest(
        self,
        day: str | datetime.date,
        tolerance_days: int = NEAREST_MATCH_TOLERANCE_DAYS,
    ) -> float | None:
        if not self._entries:
            return None

        target = _parse_day(day).toordinal()
        i = bisect.bisect_left(self._ordinals, target)

        best: tuple[int, int, float] | None = None
        for j in (i - 1, i):
            if 0 <= j < len(self._entries):
                ordinal, position, price = self._entries[j]
                candidate = (abs(ordinal - target), position, price)
                if best is None or candidate[:2] < best[:2]:
                    best = candidate

        if best is None or best[0] > tolerance_days:
            return None
        return best[2]

    def lookup(
        self,
        day: str,
        tolerance_days: int = NEAREST_MATCH_TOLERANCE_DAYS,
    ) -> float | None:
        """Exact price for *day*, else the nearest one within tolerance."""
        price = self.exact(day)
        if price is None:
            price = self.nearest(day, tolerance_days)
        return price


def find_nearest_price(
    day: str | datetime.date,
    price_map: Mapping[str, float],
    tolerance_days: int = NEAREST_MATCH_TOLERANCE_DAYS,
) -> float | None:
    """Price of the observation closest to *day*, or ``None`` beyond *tolerance_days*."""
    return PriceIndex(price_map).nearest(day, tolerance_days)


def to_chart_record(point: PowerLawPoint, actual_price: float | None = None) -> ChartRecord:
    midnight = datetime.datetime.combine(
        point.date, datetime.time(), tzinfo=datetime.timezone.utc
    )
    return ChartRecord(
        date=point.iso_date,
        timestamp=int(midnight.timestamp() * 1000),
        days=point.days,
        fair_price=point.fair_price,
        support_price=point.support_price,
        resistance_price=point.resistance_price,
        band_base=point.support_price,
        band_width=point.resistance_price - point.support_price,
        actual_price=actual_price,
    )


def _sorted_records(records: Iterable[ChartRecord]) -> tuple[ChartRecord, ...]:
    # ISO dates sort lexicographically in chronological order
    return tuple(sorted(records, key=lambda r: r.date))


def _merge_points(
    points: Iterable[PowerLawPoint],
    index: PriceIndex,
    now: datetime.date,
    tolerance_days: int,
) -> list[ChartRecord]:
    records: list[ChartRecord] = []
    for point in points:
        actual: float | None = None
        if point.date <= now:
            actual = index.lookup(point.iso_date, tolerance_days)
        records.append(to_chart_record(point, actual))
    return records


def merge_data_for_chart(
    power_law_data: Iterable[PowerLawPoint],
    historical_prices: Iterable[HistoricalPoint],
    now: datetime.date | None = None,
    tolerance_days: int = NEAREST_MATCH_TOLERANCE_DAYS,
) -> tuple[ChartRecord, ...]:
    """Join every power-law sample with its observed price.

    Args:
        power_law_data:    Curve samples, e.g. from ``generate_power_law_data``.
        historical_prices: Observed prices; later points for a day win.
        now:               Reference day; samples after it get no observed
                           price. Defaults to today (UTC).
        tolerance_days:    Maximum distance for a nearest-date match.

    Returns:
        Chart records sorted by date.
    """
    now = today_utc() if now is None else as_date(now)
    index = PriceIndex(create_price_map(historical_prices))
    return _sorted_records(_merge_points(power_law_data, index, now, tolerance_days))


def merge_with_recent_window(
    power_law_data: Iterable[PowerLawPoint],
    historical_prices: Iterable[HistoricalPoint],
    coefficient: float,
    exponent: float,
    window_days: int = RECENT_WINDOW_DAYS,
    now: datetime.date | None = None,
    tolerance_days: int = NEAREST_MATCH_TOLERANCE_DAYS,
) -> tuple[ChartRecord, ...]:
    """Like :func:`merge_data_for_chart`, with exact daily records for recent days.

    Samples in the last *window_days* calendar days up to *now* are replaced by
    one freshly computed record per day, clipped to the range the curve
    covers. A day in that window appears only if an observation exists for
    exactly that day. Older samples use the tolerant merge; future samples are
    kept without an observed price.
    """
    if window_days < 1:
        raise ValueError(f"window_days must be >= 1, got {window_days}")

    points = list(power_law_data)
    if not points:
        return ()

    now = today_utc() if now is None else as_date(now)
    window_start = now - datetime.timedelta(days=window_days - 1)
    index = PriceIndex(create_price_map(historical_prices))

    older = [p for p in points if p.date < window_start]
    future = [p for p in points if p.date > now]
    records = _merge_points(older, index, now, tolerance_days)
    records.extend(to_chart_record(p) for p in future)

    day = max(window_start, points[0].date)
    last_day = min(now, points[-1].date)
    dropped = 0
    while day <= last_day:
        price = index.exact(day.isoformat())
        if price is None:
            dropped += 1
        elif days_since_genesis(day) > 0:
            records.append(to_chart_record(power_law_point(day, coefficient, exponent), price))
        day += datetime.timedelta(days=1)

    if dropped:
        logger.debug("recent window: %d days without an observation dropped", dropped)
    return _sorted_records(records)


def sample_data_points(data: Sequence[T], max_points: int) -> list[T]:
    """Reduce *data* to about *max_points* items at a uniform stride.

    Index ``floor(i * len / max_points)`` is taken for each ``i`` below
    *max_points*; the last item is appended when the stride missed it, so the
    result holds *max_points* or *max_points + 1* items. Sequences already
    within budget are returned unchanged (as a list).

    Raises:
        ValueError: If *max_points* is below 1.
    """
    if max_points < 1:
        raise ValueError(f"max_points must be >= 1, got {max_points}")

    items = list(data)
    if len(items) <= max_points:
        return items

    step = len(items) / max_points
    indices = [int(i * step) for i in range(max_points)]
    if indices[-1] != len(items) - 1:
        indices.append(len(items) - 1)
    return [items[i] for i in indices]


def get_latest_price(prices: Iterable[HistoricalPoint]) -> float | None:
    """Price of the most recent point, or ``None`` when there are none."""
    latest: HistoricalPoint | None = None
    for point in prices:
        if latest is None or point.date >= latest.date:
            latest = point
    return None if latest is None else latest.price
