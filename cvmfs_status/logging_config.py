"""
Logging Configuration — stderr logging in text or JSON.

stdout carries the report (table or JSON), so log records always go to
stderr. Modules log with ``logging.getLogger(__name__)`` and attach
``endpoint``, ``repository``, ``revision`` or ``attempt`` via ``extra=``.

## Environment Variables

- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: WARNING)
- LOG_FORMAT: json, text (default: text)

## Usage

    from cvmfs_status.logging_config import setup_logging

    setup_logging()  # Call once at startup
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, TextIO

import click

# Record attributes copied into JSON output when present
EXTRA_FIELDS = ("repository", "endpoint", "revision", "attempt")

LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "magenta",
}


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line, for log shippers.

    {"ts": "...", "level": "WARNING", "logger": "...", "message": "...",
     "endpoint": "http://...", "revision": 42}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (name, getattr(record, name))
            for name in EXTRA_FIELDS
            if hasattr(record, name)
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """
    Terminal formatter:

        12:34:56 WARNING [classifier     ] RAL: no meta.json (http://...)

    Colour is used on a TTY unless NO_COLOR is set.
    """

    def __init__(self, color: bool | None = None):
        super().__init__()
        if color is None:
            color = sys.stderr.isatty() and "NO_COLOR" not in os.environ
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        level = f"{record.levelname:7}"
        if self.color:
            level = click.style(level, fg=LEVEL_COLORS.get(record.levelname))

        source = record.name.rsplit(".", 1)[-1][:15]
        message = record.getMessage()
        endpoint = getattr(record, "endpoint", None)
        if endpoint:
            message = f"{message} ({endpoint})"

        line = f"{stamp} {level} [{source:15}] {message}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """
    Install a single root handler. Safe to call more than once.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
               Falls back to LOG_LEVEL, then WARNING.
        format_type: "json" or "text".
                     Falls back to LOG_FORMAT, then text.
        stream: Destination, stderr by default
    """
    log_level = (level or os.environ.get("LOG_LEVEL") or "WARNING").upper()
    log_format = (format_type or os.environ.get("LOG_FORMAT") or "text").lower()
    numeric_level = getattr(logging, log_level, logging.WARNING)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if log_format == "json" else HumanFormatter())
    handler.setLevel(numeric_level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    # Per-request chatter from the HTTP stack
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    logging.getLogger(__name__).debug(
        f"Logging configured: level={log_level}, format={log_format}"
    )
