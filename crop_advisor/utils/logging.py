"""
Logging setup for the crop advisor.

Call ``configure_logging(config)`` once at CLI entry, before any data is
loaded, to set up the root logger with the configured level and optional
file handler. The HTTP client loggers stay at WARNING even under DEBUG so
that plan-service request lines, which embed the API key, are never
written out.

Library modules use ``logging.getLogger(__name__)`` only — they never call
``configure_logging`` or ``basicConfig`` themselves.

JSON format (``json_format = true`` in the ``[logging]`` section) emits one
object per line::

    {"ts": "2026-02-24T15:00:00Z", "level": "WARNING", "logger": "...", "msg": "..."}
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from crop_advisor.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# HTTP client loggers held at WARNING whatever the configured level.
_KEY_BEARING_LOGGERS = ("httpx", "httpcore")

# Attributes every LogRecord carries; anything else came from ``extra=``.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}

# ``key=`` query parameter as it appears in plan-service URLs and in the
# httpx error messages that quote them.
_KEY_PARAM = re.compile(r"([?&]key=)[^&\s'\"]+")


class _RedactKeyFilter(logging.Filter):
    """Mask the plan-service API key in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _KEY_PARAM.sub(r"\1***", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class _JsonFormatter(logging.Formatter):
    """Emit one JSON object per log line.

    Fields: ``ts``, ``level``, ``logger``, ``msg``, plus any ``extra=`` keys.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        for key, val in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                payload[key] = val
        return json.dumps(payload, default=str)


def configure_logging(config: "LoggingConfig") -> None:
    """Configure the root logger from a ``LoggingConfig`` instance.

    Sets up a stderr handler at the configured level, a file handler when
    ``config.log_file`` is non-empty, and the JSON formatter when
    ``config.json_format`` is ``True``. Both handlers mask ``key=`` query
    values, since httpx status errors quote the full request URL.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)

    formatter: logging.Formatter
    if config.json_format:
        formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers: list[logging.Handler] = []

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(formatter)
    console.addFilter(_RedactKeyFilter())
    handlers.append(console)

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(_RedactKeyFilter())
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    # httpx logs every request URL at INFO, and plan-service URLs carry the
    # Gemini key as a ``key=`` query parameter.
    for name in _KEY_BEARING_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
