"""
Unit tests for HistoricalPriceSource

Tests for:
- snapshot floor and the fallback flag
- live overlay, last-write-wins deduplication
- silent degradation on failures and rate limits
- superseded refreshes (last request wins)
"""

import asyncio
import datetime

import pytest

from btc_powerlaw.config import Settings
from btc_powerlaw.errors import FeedUnavailableError, RateLimitedError
from btc_powerlaw.models import FeedStatus
from btc_powerlaw.power_law import today_utc
from btc_powerlaw.snapshot import load_snapshot
from btc_powerlaw.source import HistoricalPriceSource

from conftest import FakeFeed, make_point

SETTINGS = Settings(providers=(), history_start=datetime.date(2019, 1, 1), recent_days=30)


def prices_by_date(source):
    return {p.date: p.price for p in source.prices}


class TestInitialState:
    def test_defaults_to_bundled_snapshot(self) -> None:
        source = HistoricalPriceSource(feeds=[], settings=SETTINGS)
        assert source.prices == load_snapshot()
        assert source.is_using_fallback
        assert source.last_status is None

    def test_custom_baseline_sorted(self, baseline) -> None:
        source = HistoricalPriceSource(baseline=reversed(baseline), feeds=[], settings=SETTINGS)
        assert source.prices == tuple(baseline)
        assert source.baseline == tuple(baseline)


class TestRefresh:
    @pytest.mark.asyncio
    async def test_live_merged_over_baseline(self, baseline) -> None:
        live = [make_point("2020-01-05", 9100.0), make_point("2020-03-01", 8500.0)]
        feed = FakeFeed("live", live)
        source = HistoricalPriceSource(baseline, feeds=[feed], settings=SETTINGS)

        prices = await source.refresh()

        assert prices is source.prices
        assert prices_by_date(source) == {
            "2020-01-01": 7200.0,
            "2020-01-05": 9100.0,
            "2020-02-01": 9400.0,
            "2020-03-01": 8500.0,
        }
        assert not source.is_using_fallback
        assert source.last_status is FeedStatus.OK
        assert feed.calls == [("range", datetime.date(2019, 1, 1), today_utc())]

    @pytest.mark.asyncio
    async def test_repeated_samples_last_wins(self, baseline) -> None:
        live = [make_point("2020-03-01", 8000.0), make_point("2020-03-01", 8100.0)]
        source = HistoricalPriceSource(baseline, feeds=[FakeFeed("live", live)], settings=SETTINGS)
        await source.refresh()
        assert prices_by_date(source)["2020-03-01"] == 8100.0

    @pytest.mark.asyncio
    async def test_failure_falls_back_to_snapshot(self, baseline) -> None:
        """A failed fetch leaves exactly the snapshot and raises the flag."""
        feed = FakeFeed("live", FeedUnavailableError("boom"))
        source = HistoricalPriceSource(baseline, feeds=[feed], settings=SETTINGS)

        prices = await source.refresh()

        assert prices == tuple(baseline)
        assert source.is_using_fallback
        assert source.last_status is FeedStatus.FAILED

    @pytest.mark.asyncio
    async def test_rate_limited_falls_back(self, baseline, caplog) -> None:
        feed = FakeFeed("live", RateLimitedError("429"))
        source = HistoricalPriceSource(baseline, feeds=[feed], settings=SETTINGS)
        await source.refresh()
        assert source.prices == tuple(baseline)
        assert source.is_using_fallback
        assert source.last_status is FeedStatus.RATE_LIMITED
        assert "rate limited" in caplog.text

    @pytest.mark.asyncio
    async def test_failure_after_success_drops_live_data(self, baseline) -> None:
        feed = FakeFeed("live", [make_point("2020-03-01", 8500.0)], FeedUnavailableError("x"))
        source = HistoricalPriceSource(baseline, feeds=[feed], settings=SETTINGS)

        await source.refresh()
        assert not source.is_using_fallback
        await source.refresh()
        assert source.prices == tuple(baseline)
        assert source.is_using_fallback

    @pytest.mark.asyncio
    async def test_refresh_recent_window(self, baseline) -> None:
        feed = FakeFeed("live", [make_point("2020-03-01", 8500.0)])
        source = HistoricalPriceSource(baseline, feeds=[feed], settings=SETTINGS)
        await source.refresh_recent(7)
        end = today_utc()
        assert feed.calls == [("range", end - datetime.timedelta(days=6), end)]

    @pytest.mark.asyncio
    async def test_refresh_current_overlays_series(self, baseline) -> None:
        today = today_utc().isoformat()
        feed = FakeFeed(
            "live",
            [make_point("2020-03-01", 8500.0)],
            make_point(today, 100000.0),
        )
        source = HistoricalPriceSource(baseline, feeds=[feed], settings=SETTINGS)

        await source.refresh()
        await source.refresh_current()

        prices = prices_by_date(source)
        assert prices["2020-03-01"] == 8500.0
        assert prices[today] == 100000.0
        assert not source.is_using_fallback

    @pytest.mark.asyncio
    async def test_refresh_current_failure_falls_back(self, baseline) -> None:
        """A failed spot fetch after a good refresh leaves exactly the snapshot."""
        feed = FakeFeed("live", [make_point("2020-03-01", 8500.0)], FeedUnavailableError("down"))
        source = HistoricalPriceSource(baseline, feeds=[feed], settings=SETTINGS)

        await source.refresh()
        assert not source.is_using_fallback
        prices = await source.refresh_current()

        assert prices == tuple(baseline)
        assert source.prices == tuple(baseline)
        assert source.is_using_fallback
        assert source.last_status is FeedStatus.FAILED

    @pytest.mark.asyncio
    async def test_unexpected_feed_error_falls_back(self, baseline) -> None:
        source = HistoricalPriceSource(
            baseline, feeds=[FakeFeed("live", RuntimeError("boom"))], settings=SETTINGS
        )
        prices = await source.refresh()
        assert prices == tuple(baseline)
        assert source.is_using_fallback
        assert source.last_status is FeedStatus.FAILED


class BlockingFeed(FakeFeed):
    """First range call waits for ``release``; later calls answer at once."""

    def __init__(self, slow, fast) -> None:
        super().__init__("blocking")
        self.release = asyncio.Event()
        self.slow = slow
        self.fast = fast

    async def fetch_range(self, start, end):
        self.calls.append(("range", start, end))
        if len(self.calls) == 1:
            await self.release.wait()
            return self.slow
        return self.fast


class TestSupersededRefresh:
    @pytest.mark.asyncio
    async def test_stale_response_discarded(self, baseline) -> None:
        """An older refresh finishing last does not overwrite a newer result."""
        feed = BlockingFeed(
            slow=[make_point("2020-03-01", 1.0)],
            fast=[make_point("2020-03-01", 2.0)],
        )
        source = HistoricalPriceSource(baseline, feeds=[feed], settings=SETTINGS)

        stale = asyncio.create_task(source.refresh())
        await asyncio.sleep(0)
        await source.refresh()
        assert prices_by_date(source)["2020-03-01"] == 2.0

        feed.release.set()
        await stale
        assert prices_by_date(source)["2020-03-01"] == 2.0
        assert not source.is_using_fallback

    @pytest.mark.asyncio
    async def test_stale_spot_price_discarded(self, baseline) -> None:
        """A spot quote arriving after a newer refresh is dropped."""
        today = today_utc().isoformat()
        feed = SlowSpotFeed(
            spot=make_point(today, 1.0),
            history=[make_point("2020-03-01", 8500.0)],
        )
        source = HistoricalPriceSource(baseline, feeds=[feed], settings=SETTINGS)

        stale = asyncio.create_task(source.refresh_current())
        await asyncio.sleep(0)
        await source.refresh()

        feed.release.set()
        await stale
        prices = prices_by_date(source)
        assert today not in prices
        assert prices["2020-03-01"] == 8500.0
        assert not source.is_using_fallback


class SlowSpotFeed(FakeFeed):
    """Spot call waits for ``release``; range calls answer at once."""

    def __init__(self, spot, history) -> None:
        super().__init__("slow-spot")
        self.release = asyncio.Event()
        self.spot = spot
        self.history = history

    async def fetch_range(self, start, end):
        self.calls.append(("range", start, end))
        return self.history

    async def fetch_current(self):
        self.calls.append(("current",))
        await self.release.wait()
        return self.spot
