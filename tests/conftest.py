"""
Pytest configuration and shared fixtures

Feeds used by the source and registry tests are in-process fakes; no test
touches the network.
"""

import datetime

import pytest

from btc_powerlaw.models import HistoricalPoint
from btc_powerlaw.power_law import days_since_genesis
from btc_powerlaw.providers.base import PriceFeed


def make_point(day: str, price: float) -> HistoricalPoint:
    """Build a HistoricalPoint for an ISO day."""
    return HistoricalPoint(
        date=day,
        price=price,
        days_since_genesis=days_since_genesis(datetime.date.fromisoformat(day)),
    )


class FakeFeed(PriceFeed):
    """Scripted feed: each call pops the next outcome.

    An outcome is a list of points, ``None``, or an exception instance to raise.
    """

    def __init__(self, name: str, *outcomes) -> None:
        super().__init__()
        self.name = name
        self.outcomes = list(outcomes)
        self.calls: list[tuple] = []

    def _next(self):
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def fetch_range(self, start, end):
        self.calls.append(("range", start, end))
        return self._next()

    async def fetch_current(self):
        self.calls.append(("current",))
        return self._next()


@pytest.fixture
def baseline():
    """Small static snapshot: three observations in early January 2020."""
    return (
        make_point("2020-01-01", 7200.0),
        make_point("2020-01-05", 9000.0),
        make_point("2020-02-01", 9400.0),
    )
