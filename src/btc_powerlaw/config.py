"""Runtime settings read from environment variables.

========================  ====================================  ===========================
Variable                  Default                               Meaning
========================  ====================================  ===========================
``BTCPL_PROVIDERS``       ``coingecko,yfinance,tiingo,finnhub``  Live feed chain, in order
``BTCPL_TIMEOUT_SECONDS`` ``10``                                Per-request timeout
``BTCPL_HISTORY_START``   ``2010-07-01``                        Start of a full refresh
``BTCPL_RECENT_DAYS``     ``30``                                Length of a recent refresh
``BTCPL_LOG_LEVEL``       ``INFO``                              Level for configure_logging
``COINGECKO_API_KEY``     unset                                 Optional CoinGecko demo key
``TIINGO_API_KEY``        unset                                 Required by the Tiingo feed
``FINNHUB_API_KEY``       unset                                 Required by the Finnhub feed
========================  ====================================  ===========================
"""

from __future__ import annotations

import datetime
import os
from dataclasses import dataclass

DEFAULT_PROVIDERS: tuple[str, ...] = ("coingecko", "yfinance", "tiingo", "finnhub")
DEFAULT_HISTORY_START = datetime.date(2010, 7, 1)


@dataclass(slots=True, frozen=True)
class Settings:
    providers: tuple[str, ...] = DEFAULT_PROVIDERS
    timeout_seconds: float = 10.0
    history_start: datetime.date = DEFAULT_HISTORY_START
    recent_days: int = 30
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from ``BTCPL_*`` environment variables.

        Raises:
            ValueError: If a numeric or date variable cannot be parsed.
        """
        raw_providers = os.getenv("BTCPL_PROVIDERS")
        providers = DEFAULT_PROVIDERS
        if raw_providers:
            providers = tuple(
                name.strip().lower() for name in raw_providers.split(",") if name.strip()
            )

        history_start = DEFAULT_HISTORY_START
        raw_start = os.getenv("BTCPL_HISTORY_START")
        if raw_start:
            history_start = datetime.date.fromisoformat(raw_start)

        return cls(
            providers=providers,
            timeout_seconds=float(os.getenv("BTCPL_TIMEOUT_SECONDS", "10")),
            history_start=history_start,
            recent_days=int(os.getenv("BTCPL_RECENT_DAYS", "30")),
            log_level=os.getenv("BTCPL_LOG_LEVEL", "INFO").upper(),
        )
