"""yfinance feed — BTC-USD daily closes from Yahoo Finance."""

from __future__ import annotations

import asyncio
import datetime

import yfinance as yf

from btc_powerlaw.errors import FeedUnavailableError
from btc_powerlaw.models import HistoricalPoint
from btc_powerlaw.power_law import days_since_genesis, today_utc
from btc_powerlaw.providers.base import PriceFeed

_TICKER = "BTC-USD"


class YFinanceFeed(PriceFeed):
    """Fetches BTC-USD daily closes via yfinance.

    yfinance is synchronous; blocking calls run in a thread pool so the async
    interface stays non-blocking. Yahoo history for BTC-USD starts in
    September 2014.
    """

    name = "yfinance"

    async def fetch_range(
        self,
        start: datetime.date,
        end: datetime.date,
    ) -> list[HistoricalPoint] | None:
        # yfinance treats ``end`` as exclusive
        df = await asyncio.to_thread(
            self._download, start, end + datetime.timedelta(days=1)
        )
        if df is None or df.empty:
            return None

        points: list[HistoricalPoint] = []
        for ts, row in df.iterrows():
            try:
                day = ts.date()
                points.append(
                    HistoricalPoint(
                        date=day.isoformat(),
                        price=float(row["Close"]),
                        days_since_genesis=days_since_genesis(day),
                    )
                )
            except (KeyError, TypeError, ValueError):
                continue

        return points or None

    async def fetch_current(self) -> HistoricalPoint | None:
        today = today_utc()
        points = await self.fetch_range(today - datetime.timedelta(days=5), today)
        if not points:
            return None
        latest = points[-1]
        return HistoricalPoint(
            date=today.isoformat(),
            price=latest.price,
            days_since_genesis=days_since_genesis(today),
        )

    def _download(self, start: datetime.date, end: datetime.date):
        """Blocking yfinance fetch — called via asyncio.to_thread."""
        try:
            df = yf.Ticker(_TICKER).history(
                start=start.isoformat(),
                end=end.isoformat(),
                interval="1d",
                auto_adjust=True,
                timeout=self.timeout,
            )
        except Exception as exc:
            # yfinance surfaces HTTP, parsing and pandas errors alike
            raise FeedUnavailableError(f"yfinance download failed: {exc!r}") from exc
        return df if not df.empty else None
