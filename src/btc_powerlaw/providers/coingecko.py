"""CoinGecko feed — BTC/USD history and spot price from the public REST API.

Works without a key. A free demo key, if present in ``COINGECKO_API_KEY``, is
sent as ``x-cg-demo-api-key`` for a higher rate limit.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
import os
import time
from typing import Any

import aiohttp

from btc_powerlaw.errors import FeedUnavailableError, RateLimitedError
from btc_powerlaw.models import HistoricalPoint
from btc_powerlaw.power_law import days_since_genesis, today_utc
from btc_powerlaw.providers.base import PriceFeed

_API_URL = "https://api.coingecko.com/api/v3"
_RANGE_URL = f"{_API_URL}/coins/bitcoin/market_chart/range"
_SIMPLE_PRICE_URL = f"{_API_URL}/simple/price"

# Successful responses are reused for 5 minutes
CACHE_TTL_SECONDS = 300

logger = logging.getLogger(__name__)

_response_cache: dict[tuple, tuple[float, Any]] = {}


def _cache_key(url: str, params: dict[str, Any]) -> tuple:
    return (url, tuple(sorted(params.items())))


def _get_cached(key: tuple) -> Any | None:
    """Return a cached payload if it has not expired."""
    if key in _response_cache:
        timestamp, value = _response_cache[key]
        if time.monotonic() - timestamp < CACHE_TTL_SECONDS:
            return value
        del _response_cache[key]
    return None


def _set_cached(key: tuple, value: Any) -> None:
    _response_cache[key] = (time.monotonic(), value)


def clear_cache() -> None:
    """Drop every cached CoinGecko response."""
    _response_cache.clear()
    logger.debug("CoinGecko response cache cleared")


def _midnight_ts(day: datetime.date) -> int:
    """Unix seconds at 00:00 UTC of *day*."""
    return int(
        datetime.datetime.combine(day, datetime.time(), tzinfo=datetime.timezone.utc).timestamp()
    )


def _point(day: datetime.date, price: float) -> HistoricalPoint:
    return HistoricalPoint(
        date=day.isoformat(),
        price=price,
        days_since_genesis=days_since_genesis(day),
    )


class CoinGeckoFeed(PriceFeed):
    """Fetches BTC/USD prices from CoinGecko.

    ``market_chart/range`` answers with ``[timestamp_ms, price]`` pairs whose
    granularity depends on the span (5-minutely, hourly or daily); every
    sample is kept and same-day samples collapse at merge time.
    """

    name = "coingecko"

    def __init__(self, timeout: float = 10.0, api_key: str | None = None) -> None:
        super().__init__(timeout)
        self.api_key = api_key if api_key is not None else os.getenv("COINGECKO_API_KEY")

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key
        return headers

    async def _get_json(self, url: str, params: dict[str, Any]) -> Any:
        key = _cache_key(url, params)
        cached = _get_cached(key)
        if cached is not None:
            logger.debug("CoinGecko cache hit for %s", url)
            return cached

        data = await self._request(url, params)
        _set_cached(key, data)
        return data

    async def _request(self, url: str, params: dict[str, Any]) -> Any:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout, headers=self._headers()) as session:
                async with session.get(url, params=params) as resp:
                    if resp.status == 429:
                        raise RateLimitedError("CoinGecko rate limit (HTTP 429)")
                    if resp.status != 200:
                        raise FeedUnavailableError(f"CoinGecko API error: {resp.status}")
                    return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise FeedUnavailableError(f"CoinGecko request failed: {exc!r}") from exc

    async def fetch_range(
        self,
        start: datetime.date,
        end: datetime.date,
    ) -> list[HistoricalPoint] | None:
        params = {
            "vs_currency": "usd",
            "from": _midnight_ts(start),
            # end is inclusive: stop at the following midnight
            "to": _midnight_ts(end + datetime.timedelta(days=1)),
        }
        data = await self._get_json(_RANGE_URL, params)

        rows = data.get("prices") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            raise FeedUnavailableError("CoinGecko payload has no 'prices' list")

        points: list[HistoricalPoint] = []
        for row in rows:
            try:
                ts = datetime.datetime.fromtimestamp(
                    int(row[0]) / 1000, tz=datetime.timezone.utc
                )
                points.append(_point(ts.date(), float(row[1])))
            except (IndexError, KeyError, TypeError, ValueError, OverflowError):
                continue

        return points or None

    async def fetch_current(self) -> HistoricalPoint | None:
        data = await self._get_json(
            _SIMPLE_PRICE_URL, {"ids": "bitcoin", "vs_currencies": "usd"}
        )
        quote = data.get("bitcoin") if isinstance(data, dict) else None
        price = quote.get("usd") if isinstance(quote, dict) else None
        if not price:
            raise FeedUnavailableError("CoinGecko returned no price data")
        try:
            return _point(today_utc(), float(price))
        except (TypeError, ValueError) as exc:
            raise FeedUnavailableError(f"CoinGecko price is not a number: {price!r}") from exc
