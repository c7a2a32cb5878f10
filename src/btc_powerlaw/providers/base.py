"""Abstract base class for all live BTC/USD price feeds."""

from __future__ import annotations

import datetime
from abc import ABC, abstractmethod

from btc_powerlaw.models import HistoricalPoint


class PriceFeed(ABC):
    """Base class every live feed must implement.

    Feeds are tried in order by the registry. The first one to return a
    non-empty list wins; the next feed is tried on ``None``, an empty list or
    a :class:`~btc_powerlaw.errors.FeedError`.
    """

    #: Human-readable feed name used in logs and in ``BTCPL_PROVIDERS``.
    name: str = ""

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout

    @abstractmethod
    async def fetch_range(
        self,
        start: datetime.date,
        end: datetime.date,
    ) -> list[HistoricalPoint] | None:
        """Fetch daily BTC/USD prices between *start* and *end* (inclusive).

        Returns:
            Points oldest first. Several samples may share a day; the later
            one wins when the points are merged. ``None`` when the feed has
            nothing for the range.

        Raises:
            RateLimitedError:     The upstream answered with HTTP 429.
            FeedUnavailableError: Any other failure (network, status, key).
        """

    @abstractmethod
    async def fetch_current(self) -> HistoricalPoint | None:
        """Fetch the latest BTC/USD price, dated today (UTC).

        Raises the same errors as :meth:`fetch_range`.
        """
