"""Exception types raised by btc-powerlaw."""

from __future__ import annotations


class InvalidRangeError(ValueError):
    """Raised when a date range ends before it starts."""


class FeedError(Exception):
    """Base class for live price feed failures.

    Feed clients raise these; the registry converts them into a
    :class:`~btc_powerlaw.models.FeedResult` status so nothing above the
    registry ever sees them.
    """


class FeedUnavailableError(FeedError):
    """Network failure, non-success status, missing API key or bad payload."""


class RateLimitedError(FeedError):
    """The upstream API answered with a rate-limit response (HTTP 429)."""
