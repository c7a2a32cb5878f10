"""Finnhub feed — BTC/USDT daily crypto candles.

Requires a free Finnhub API key: https://finnhub.io/dashboard
Set the ``FINNHUB_API_KEY`` environment variable before use.

Install the optional dep before use:
    pip install "btc-powerlaw[finnhub]"
"""

from __future__ import annotations

import asyncio
import datetime
import os

from btc_powerlaw.errors import FeedUnavailableError, RateLimitedError
from btc_powerlaw.models import HistoricalPoint
from btc_powerlaw.power_law import days_since_genesis, today_utc
from btc_powerlaw.providers.base import PriceFeed

_SYMBOL = "BINANCE:BTCUSDT"
_RESOLUTION = "D"


def _utc_ts(day: datetime.date) -> int:
    return int(
        datetime.datetime.combine(day, datetime.time(), tzinfo=datetime.timezone.utc).timestamp()
    )


class FinnhubFeed(PriceFeed):
    """Fetches daily BTC/USDT closes from Finnhub crypto candles.

    USDT is treated as USD. Requires the ``finnhub-python`` package
    (``pip install "btc-powerlaw[finnhub]"``) and ``FINNHUB_API_KEY``.
    """

    name = "finnhub"

    def __init__(self, timeout: float = 10.0, api_key: str | None = None) -> None:
        super().__init__(timeout)
        self.api_key = api_key if api_key is not None else os.getenv("FINNHUB_API_KEY")

    async def fetch_range(
        self,
        start: datetime.date,
        end: datetime.date,
    ) -> list[HistoricalPoint] | None:
        if not self.api_key:
            raise FeedUnavailableError(
                "FINNHUB_API_KEY environment variable is not set. "
                "Get a free key at https://finnhub.io/dashboard"
            )

        raw = await asyncio.to_thread(
            self._fetch_candles,
            _utc_ts(start),
            _utc_ts(end + datetime.timedelta(days=1)) - 1,
        )
        return self._parse(raw)

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

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _fetch_candles(self, from_ts: int, to_ts: int) -> dict | None:
        """Blocking Finnhub request — called via asyncio.to_thread."""
        try:
            import finnhub  # noqa: PLC0415
        except ImportError as exc:
            raise FeedUnavailableError(
                'finnhub-python is not installed; pip install "btc-powerlaw[finnhub]"'
            ) from exc

        try:
            client = finnhub.Client(api_key=self.api_key)
            data = client.crypto_candles(_SYMBOL, _RESOLUTION, from_ts, to_ts)
        except finnhub.FinnhubAPIException as exc:
            if getattr(exc, "status_code", None) == 429:
                raise RateLimitedError("Finnhub rate limit (HTTP 429)") from exc
            raise FeedUnavailableError(f"Finnhub API error: {exc}") from exc
        except Exception as exc:
            # network and decoding errors surface as requests/json exceptions
            raise FeedUnavailableError(f"Finnhub request failed: {exc!r}") from exc

        return data if data and data.get("s") == "ok" else None

    @staticmethod
    def _parse(raw: dict | None) -> list[HistoricalPoint] | None:
        """Convert a Finnhub candle response dict into a point list."""
        if not raw:
            return None

        timestamps = raw.get("t")
        closes = raw.get("c")
        if not isinstance(timestamps, list) or not isinstance(closes, list):
            raise FeedUnavailableError("Finnhub payload has no 't'/'c' arrays")

        points: list[HistoricalPoint] = []
        for i in range(len(timestamps)):
            try:
                day = datetime.datetime.fromtimestamp(
                    int(timestamps[i]), tz=datetime.timezone.utc
                ).date()
                points.append(
                    HistoricalPoint(
                        date=day.isoformat(),
                        price=float(closes[i]),
                        days_since_genesis=days_since_genesis(day),
                    )
                )
            except (IndexError, TypeError, ValueError):
                continue

        return points or None
