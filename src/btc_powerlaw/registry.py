"""Feed registry — builds the live feed chain and runs fetches through it.

Feeds are tried in the configured order (``BTCPL_PROVIDERS``). The first one
returning data wins. Failures never propagate: they are folded into a
:class:`~btc_powerlaw.models.FeedResult` whose status keeps rate limiting
distinguishable from other failures.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from btc_powerlaw.config import Settings
from btc_powerlaw.errors import FeedError, RateLimitedError
from btc_powerlaw.models import FeedResult, FeedStatus, HistoricalPoint
from btc_powerlaw.providers.base import PriceFeed

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _coingecko(timeout: float) -> PriceFeed:
    from btc_powerlaw.providers.coingecko import CoinGeckoFeed  # noqa: PLC0415
    return CoinGeckoFeed(timeout=timeout)


def _yfinance(timeout: float) -> PriceFeed:
    from btc_powerlaw.providers.yfinance import YFinanceFeed  # noqa: PLC0415
    return YFinanceFeed(timeout=timeout)


def _tiingo(timeout: float) -> PriceFeed:
    from btc_powerlaw.providers.tiingo import TiingoFeed  # noqa: PLC0415
    return TiingoFeed(timeout=timeout)


def _finnhub(timeout: float) -> PriceFeed:
    from btc_powerlaw.providers.finnhub import FinnhubFeed  # noqa: PLC0415
    return FinnhubFeed(timeout=timeout)


# Lazy factories: feed modules and their third-party deps load on first use
_FACTORIES: dict[str, Callable[[float], PriceFeed]] = {
    "coingecko": _coingecko,
    "yfinance": _yfinance,
    "tiingo": _tiingo,
    "finnhub": _finnhub,
}


def pick(settings: Settings | None = None) -> list[PriceFeed]:
    """Return the ordered feed chain for *settings* (default: from env).

    Unknown names are logged and skipped.
    """
    settings = settings or Settings.from_env()
    chain: list[PriceFeed] = []
    for name in settings.providers:
        factory = _FACTORIES.get(name)
        if factory is None:
            logger.warning("unknown price feed %r ignored", name)
            continue
        chain.append(factory(settings.timeout_seconds))
    return chain


async def _run_chain(
    feeds: Sequence[PriceFeed],
    call: Callable[[PriceFeed], Awaitable[T]],
    what: str,
) -> tuple[PriceFeed, T] | FeedResult:
    rate_limited = False
    reasons: list[str] = []

    for feed in feeds:
        try:
            result = await call(feed)
        except RateLimitedError as exc:
            rate_limited = True
            reasons.append(f"{feed.name}: {exc}")
            logger.warning("%s feed rate limited on %s", feed.name, what)
            continue
        except FeedError as exc:
            reasons.append(f"{feed.name}: {exc}")
            logger.warning("%s feed failed on %s: %s", feed.name, what, exc)
            continue
        except Exception as exc:
            reasons.append(f"{feed.name}: unexpected {exc!r}")
            logger.exception("%s feed raised unexpectedly on %s", feed.name, what)
            continue
        if result:
            return feed, result
        reasons.append(f"{feed.name}: no data")

    status = FeedStatus.RATE_LIMITED if rate_limited else FeedStatus.FAILED
    return FeedResult(status=status, detail="; ".join(reasons) or "no feeds configured")


async def fetch_range(
    start: datetime.date,
    end: datetime.date,
    feeds: Sequence[PriceFeed] | None = None,
) -> FeedResult:
    """Fetch BTC/USD history for ``[start, end]`` from the first feed that has it."""
    if feeds is None:
        feeds = pick()
    outcome = await _run_chain(
        feeds, lambda feed: feed.fetch_range(start, end), f"range {start}..{end}"
    )
    if isinstance(outcome, FeedResult):
        return outcome
    feed, points = outcome
    return FeedResult(status=FeedStatus.OK, points=tuple(points), source=feed.name)


async def fetch_current(feeds: Sequence[PriceFeed] | None = None) -> FeedResult:
    """Fetch the current BTC/USD price from the first feed that has it."""
    if feeds is None:
        feeds = pick()
    outcome = await _run_chain(feeds, lambda feed: feed.fetch_current(), "current price")
    if isinstance(outcome, FeedResult):
        return outcome
    feed, point = outcome
    points: tuple[HistoricalPoint, ...] = (point,)
    return FeedResult(status=FeedStatus.OK, points=points, source=feed.name)
