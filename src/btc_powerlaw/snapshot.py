"""Bundled static price snapshot.

The snapshot ships inside the package as ``data/bitcoin_historical.json``::

    {"metadata": {...}, "prices": [{"date": "2010-07-18", "price": 0.09}, ...]}

It is read once per process and is the floor every live refresh is merged on.
"""

from __future__ import annotations

import functools
import json
import logging
from importlib import resources
from typing import Any

from btc_powerlaw.models import HistoricalPoint
from btc_powerlaw.transform import transform_raw_prices

logger = logging.getLogger(__name__)

_PACKAGE = "btc_powerlaw"
_SNAPSHOT_FILE = "data/bitcoin_historical.json"


@functools.lru_cache(maxsize=1)
def _read_snapshot() -> dict[str, Any]:
    text = resources.files(_PACKAGE).joinpath(_SNAPSHOT_FILE).read_text(encoding="utf-8")
    return json.loads(text)


@functools.lru_cache(maxsize=1)
def load_snapshot() -> tuple[HistoricalPoint, ...]:
    """Snapshot prices, oldest first, one point per day."""
    raw = _read_snapshot().get("prices", [])
    points = transform_raw_prices(raw)
    logger.debug("loaded %d snapshot prices", len(points))
    # rebuild through a dict so a duplicated day keeps its last value
    by_date = {p.date: p for p in points}
    return tuple(sorted(by_date.values(), key=lambda p: p.date))


def load_snapshot_metadata() -> dict[str, Any]:
    """Snapshot metadata (``lastUpdated``, ``source``, ``currency`` ...)."""
    return dict(_read_snapshot().get("metadata", {}))
