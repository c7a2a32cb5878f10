"""Scalar summaries shown next to the chart."""

from __future__ import annotations

import datetime

from btc_powerlaw.constants import DEFAULT_COEFFICIENT, DEFAULT_EXPONENT
from btc_powerlaw.power_law import (
    calculate_power_law_price,
    days_since_genesis,
    today_utc,
)
from btc_powerlaw.transform import get_latest_price

__all__ = [
    "calculate_deviation",
    "format_price",
    "get_current_fair_price",
    "get_latest_price",
]


def get_current_fair_price(
    coefficient: float = DEFAULT_COEFFICIENT,
    exponent: float = DEFAULT_EXPONENT,
    today: datetime.date | None = None,
) -> float:
    """Model price for today (UTC) or for *today* when given."""
    days = days_since_genesis(today_utc() if today is None else today)
    return calculate_power_law_price(days, coefficient, exponent)


def calculate_deviation(actual_price: float, fair_price: float) -> float:
    """Percent deviation of *actual_price* from *fair_price*; 0 when fair is 0."""
    if fair_price == 0:
        return 0.0
    return (actual_price - fair_price) / fair_price * 100


def format_price(price: float) -> str:
    """Format a USD price with a precision bucketed by magnitude.

    Examples: ``$1.23M``, ``$98.5K``, ``$12.34``, ``$0.0500``, ``$5.00e-03``.
    """
    if price >= 1_000_000:
        return f"${price / 1_000_000:.2f}M"
    if price >= 1_000:
        return f"${price / 1_000:.1f}K"
    if price >= 1:
        return f"${price:.2f}"
    if price >= 0.01:
        return f"${price:.4f}"
    return f"${price:.2e}"
