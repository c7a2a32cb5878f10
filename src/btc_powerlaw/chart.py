"""One-shot chart recomputation: ``compute_chart(config, prices) -> ChartOutput``.

Every control change (exponent, coefficient, date range) builds a new
:class:`~btc_powerlaw.models.ChartConfig` and calls :func:`compute_chart`
again; nothing is cached or mutated between calls.

Point density is controlled in two stages. The sampling interval picked from
the range span keeps the curve small; :func:`sample_data_points` then caps
whatever remains at ``config.max_points``.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable

from btc_powerlaw.metrics import calculate_deviation, get_current_fair_price
from btc_powerlaw.models import ChartConfig, ChartOutput, HistoricalPoint
from btc_powerlaw.power_law import generate_power_law_data, today_utc
from btc_powerlaw.source import HistoricalPriceSource
from btc_powerlaw.transform import (
    get_latest_price,
    merge_data_for_chart,
    merge_with_recent_window,
    sample_data_points,
)


def compute_chart(
    config: ChartConfig,
    prices: Iterable[HistoricalPoint],
    is_using_fallback: bool = False,
    now: datetime.date | None = None,
) -> ChartOutput:
    """Build chart records and headline metrics for *config*.

    Args:
        config:            Model parameters, range and render budget.
        prices:            Reconciled price history.
        is_using_fallback: Passed through to the output for display.
        now:               Reference day for "future" and "current";
                           defaults to today (UTC).
    """
    now = now or today_utc()
    prices = tuple(prices)

    curve = generate_power_law_data(
        config.date_range.start,
        config.date_range.end,
        config.coefficient,
        config.exponent,
    )
    if config.recent_window_days is None:
        merged = merge_data_for_chart(curve, prices, now=now)
    else:
        merged = merge_with_recent_window(
            curve,
            prices,
            config.coefficient,
            config.exponent,
            window_days=config.recent_window_days,
            now=now,
        )
    records = tuple(sample_data_points(merged, config.max_points))

    current_price = get_latest_price(prices)
    current_fair_price = get_current_fair_price(config.coefficient, config.exponent, today=now)
    deviation = None
    if current_price is not None:
        deviation = calculate_deviation(current_price, current_fair_price)

    return ChartOutput(
        records=records,
        current_price=current_price,
        current_fair_price=current_fair_price,
        deviation=deviation,
        is_using_fallback=is_using_fallback,
    )


def chart_for_source(
    config: ChartConfig,
    source: HistoricalPriceSource,
    now: datetime.date | None = None,
) -> ChartOutput:
    """:func:`compute_chart` over the current state of *source*."""
    return compute_chart(config, source.prices, source.is_using_fallback, now=now)
