"""Logging setup for applications embedding btc-powerlaw.

Library modules only create ``logging.getLogger(__name__)`` loggers; nothing
is configured until an application calls :func:`configure_logging`.
"""

from __future__ import annotations

import datetime
import json
import logging
import sys


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.datetime.fromtimestamp(
                record.created, tz=datetime.timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


_TEXT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int | None = None, json_output: bool = False) -> logging.Logger:
    """Attach a stderr handler to the root logger and set its level.

    Args:
        level:       Level name or number; defaults to ``BTCPL_LOG_LEVEL``.
        json_output: Emit JSON lines instead of human-readable text.

    Returns:
        The root logger. Calling this again replaces the handler it installed.
    """
    if level is None:
        from btc_powerlaw.config import Settings  # noqa: PLC0415

        level = Settings.from_env().log_level

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name("btc_powerlaw")
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(_TEXT_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == "btc_powerlaw":
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
    return root
