"""btc-powerlaw: Bitcoin price history against a power-law fair value model."""

from .chart import chart_for_source, compute_chart
from .errors import FeedError, FeedUnavailableError, InvalidRangeError, RateLimitedError
from .metrics import calculate_deviation, format_price, get_current_fair_price
from .models import (
    ChartConfig,
    ChartOutput,
    ChartRecord,
    DateRange,
    FeedResult,
    FeedStatus,
    HistoricalPoint,
    PowerLawPoint,
)
from .power_law import calculate_power_law_price, days_since_genesis, generate_power_law_data
from .source import HistoricalPriceSource
from .transform import (
    get_latest_price,
    merge_data_for_chart,
    merge_with_recent_window,
    sample_data_points,
)

__all__ = [
    "ChartConfig",
    "ChartOutput",
    "ChartRecord",
    "DateRange",
    "FeedError",
    "FeedResult",
    "FeedStatus",
    "FeedUnavailableError",
    "HistoricalPoint",
    "HistoricalPriceSource",
    "InvalidRangeError",
    "PowerLawPoint",
    "RateLimitedError",
    "calculate_deviation",
    "calculate_power_law_price",
    "chart_for_source",
    "compute_chart",
    "days_since_genesis",
    "format_price",
    "generate_power_law_data",
    "get_current_fair_price",
    "get_latest_price",
    "merge_data_for_chart",
    "merge_with_recent_window",
    "sample_data_points",
]
__version__ = "0.1.0"
