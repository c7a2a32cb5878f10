"""Model constants shared by the engine, the merge logic and the metrics."""

from __future__ import annotations

import datetime

# Bitcoin genesis block, 2009-01-03T00:00:00Z
GENESIS_DATE = datetime.date(2009, 1, 3)
GENESIS_EPOCH = datetime.datetime(2009, 1, 3, tzinfo=datetime.timezone.utc)

# Power-law defaults (Santostasi model)
DEFAULT_EXPONENT = 5.82
DEFAULT_COEFFICIENT = 1.0117e-17

# Confidence band multipliers
SUPPORT_MULTIPLIER = 0.42
RESISTANCE_MULTIPLIER = 2.4

# Exponent bounds accepted by ChartConfig
EXPONENT_MIN = 4.0
EXPONENT_MAX = 7.0

# Default chart range
DEFAULT_START_DATE = GENESIS_DATE
DEFAULT_END_DATE = datetime.date(2040, 12, 31)

# Range span (days) above which each sampling interval applies, widest first
INTERVAL_THRESHOLDS: tuple[tuple[int, int], ...] = (
    (365 * 20, 30),
    (365 * 10, 14),
    (365 * 5, 7),
    (365, 3),
)

# Merge policy
NEAREST_MATCH_TOLERANCE_DAYS = 15
RECENT_WINDOW_DAYS = 30

# Render budget
MAX_CHART_POINTS = 800
