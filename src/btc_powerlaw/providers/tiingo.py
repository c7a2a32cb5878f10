"""Tiingo feed — BTC/USD daily bars from the Tiingo crypto endpoint.

Requires a free Tiingo API key: https://www.tiingo.com/account/api/token
Set the ``TIINGO_API_KEY`` environment variable before use.
"""

from __future__ import annotations

import asyncio
import datetime
import os

import requests

from btc_powerlaw.errors import FeedUnavailableError, RateLimitedError
from btc_powerlaw.models import HistoricalPoint
from btc_powerlaw.power_law import days_since_genesis, today_utc
from btc_powerlaw.providers.base import PriceFeed

_PRICES_URL = "https://api.tiingo.com/tiingo/crypto/prices"
_TICKER = "btcusd"


class TiingoFeed(PriceFeed):
    """Fetches daily BTC/USD closes from the Tiingo REST API.

    An API key is required. If ``TIINGO_API_KEY`` is not set the feed raises
    :class:`~btc_powerlaw.errors.FeedUnavailableError` at fetch time so the
    registry logs the root cause and moves on to the next feed.
    """

    name = "tiingo"

    def __init__(self, timeout: float = 10.0, api_key: str | None = None) -> None:
        super().__init__(timeout)
        self.api_key = api_key if api_key is not None else os.getenv("TIINGO_API_KEY")

    async def fetch_range(
        self,
        start: datetime.date,
        end: datetime.date,
    ) -> list[HistoricalPoint] | None:
        if not self.api_key:
            raise FeedUnavailableError(
                "TIINGO_API_KEY environment variable is not set. "
                "Get a free key at https://www.tiingo.com/account/api/token"
            )

        rows = await asyncio.to_thread(self._download, start, end)
        if not rows:
            return None

        points: list[HistoricalPoint] = []
        for row in rows:
            try:
                day = datetime.date.fromisoformat(str(row["date"])[:10])
                points.append(
                    HistoricalPoint(
                        date=day.isoformat(),
                        price=float(row["close"]),
                        days_since_genesis=days_since_genesis(day),
                    )
                )
            except (KeyError, TypeError, ValueError):
                continue

        return points or None

    async def fetch_current(self) -> HistoricalPoint | None:
        today = today_utc()
        points = await self.fetch_range(today - datetime.timedelta(days=2), today)
        if not points:
            return None
        return HistoricalPoint(
            date=today.isoformat(),
            price=points[-1].price,
            days_since_genesis=days_since_genesis(today),
        )

    def _download(self, start: datetime.date, end: datetime.date) -> list[dict] | None:
        """Blocking Tiingo request — called via asyncio.to_thread."""
        headers = {
            "Authorization": f"Token {self.api_key}",
            "Content-Type": "application/json",
        }
        params = {
            "tickers": _TICKER,
            "startDate": start.isoformat(),
            "endDate": end.isoformat(),
            "resampleFreq": "1day",
        }
        try:
            resp = requests.get(_PRICES_URL, headers=headers, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FeedUnavailableError(f"Tiingo request failed: {exc!r}") from exc

        if resp.status_code == 429:
            raise RateLimitedError("Tiingo rate limit (HTTP 429)")
        if resp.status_code != 200:
            raise FeedUnavailableError(f"Tiingo API error: {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise FeedUnavailableError("Tiingo returned invalid JSON") from exc

        # One entry per requested ticker, each carrying a ``priceData`` list
        if not isinstance(data, list) or not data:
            return None
        price_data = data[0].get("priceData") if isinstance(data[0], dict) else None
        return price_data if isinstance(price_data, list) else None
