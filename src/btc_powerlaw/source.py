"""Best-available BTC/USD price history with graceful degradation.

The bundled snapshot is the floor. A refresh asks the live feed chain for
more recent (or complete) history and overlays it on the snapshot, live
values winning day by day. Any failure drops back to the snapshot alone and
raises the fallback flag; nothing is ever raised to the caller.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable, Sequence

from btc_powerlaw import registry
from btc_powerlaw.config import Settings
from btc_powerlaw.models import FeedResult, FeedStatus, HistoricalPoint
from btc_powerlaw.power_law import today_utc
from btc_powerlaw.providers.base import PriceFeed
from btc_powerlaw.snapshot import load_snapshot
from btc_powerlaw.transform import merge_historical_data

logger = logging.getLogger(__name__)


class HistoricalPriceSource:
    """Reconciled date -> price series plus a fallback flag.

    The series is replaced wholesale on every refresh, never patched in
    place. Refreshes may overlap; only the most recently started one is
    applied, an older response that arrives later is discarded.

    Args:
        baseline: Static prices used as the floor. Defaults to the bundled
                  snapshot.
        feeds:    Live feed chain. Defaults to ``registry.pick(settings)``,
                  built on first refresh.
        settings: Runtime settings. Defaults to ``Settings.from_env()``.
    """

    def __init__(
        self,
        baseline: Iterable[HistoricalPoint] | None = None,
        feeds: Sequence[PriceFeed] | None = None,
        settings: Settings | None = None,
    ) -> None:
        if baseline is None:
            baseline = load_snapshot()
        self._baseline = merge_historical_data(baseline, ())
        self._feeds = list(feeds) if feeds is not None else None
        self._settings = settings
        self._prices = self._baseline
        self._is_using_fallback = True
        self._last_status: FeedStatus | None = None
        self._generation = 0

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = Settings.from_env()
        return self._settings

    @property
    def feeds(self) -> list[PriceFeed]:
        if self._feeds is None:
            self._feeds = registry.pick(self.settings)
        return self._feeds

    @property
    def baseline(self) -> tuple[HistoricalPoint, ...]:
        return self._baseline

    @property
    def prices(self) -> tuple[HistoricalPoint, ...]:
        """Current reconciled series, oldest first, one point per day."""
        return self._prices

    @property
    def is_using_fallback(self) -> bool:
        """True until a live refresh succeeds, and again after any failed one."""
        return self._is_using_fallback

    @property
    def last_status(self) -> FeedStatus | None:
        """Status of the last applied refresh (``None`` before the first)."""
        return self._last_status

    async def refresh(
        self,
        start: datetime.date | None = None,
        end: datetime.date | None = None,
    ) -> tuple[HistoricalPoint, ...]:
        """Fetch ``[start, end]`` (default: history start .. today) over the snapshot."""
        start = start or self.settings.history_start
        end = end or today_utc()
        generation = self._begin()
        result = await registry.fetch_range(start, end, self.feeds)
        return self._apply(generation, result, self._baseline)

    async def refresh_recent(self, days: int | None = None) -> tuple[HistoricalPoint, ...]:
        """Fetch the last *days* days (default ``BTCPL_RECENT_DAYS``) over the snapshot."""
        days = days or self.settings.recent_days
        end = today_utc()
        start = end - datetime.timedelta(days=days - 1)
        generation = self._begin()
        result = await registry.fetch_range(start, end, self.feeds)
        return self._apply(generation, result, self._baseline)

    async def refresh_current(self) -> tuple[HistoricalPoint, ...]:
        """Fetch the spot price and store it as today's point.

        Unlike the range refreshes the spot price is overlaid on the current
        series, keeping history from an earlier successful refresh.
        """
        generation = self._begin()
        base = self._prices
        result = await registry.fetch_current(self.feeds)
        return self._apply(generation, result, base)

    def _begin(self) -> int:
        self._generation += 1
        return self._generation

    def _apply(
        self,
        generation: int,
        result: FeedResult,
        base: tuple[HistoricalPoint, ...],
    ) -> tuple[HistoricalPoint, ...]:
        if generation != self._generation:
            logger.debug(
                "discarding superseded refresh %d (latest is %d)", generation, self._generation
            )
            return self._prices

        self._last_status = result.status
        if result.ok:
            self._prices = merge_historical_data(base, result.points)
            self._is_using_fallback = False
            logger.info(
                "merged %d live prices from %s", len(result.points), result.source
            )
        else:
            self._prices = self._baseline
            self._is_using_fallback = True
            if result.rate_limited:
                logger.warning("live feeds rate limited, using cached data: %s", result.detail)
            else:
                logger.warning("live feeds unavailable, using cached data: %s", result.detail)
        return self._prices
