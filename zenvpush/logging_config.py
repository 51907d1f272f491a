"""
Logging for zenvpush runs.

Log lines go to stderr so they never mix with the JSON-lines progress
stream on stdout. LOG_LEVEL picks the level (default WARNING) and
LOG_FORMAT picks ``text`` or ``json``. Records may carry ``secret_key``,
``repository`` and ``stage`` extras; the JSON formatter copies them out.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict

EXTRA_FIELDS = ("secret_key", "repository", "stage")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, plus any secret_key/repository/stage extras."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


class HumanFormatter(logging.Formatter):
    """``12:34:56 WARNING [publisher      ] message``, coloured on a tty."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        level = record.levelname
        if sys.stderr.isatty():
            color = self.COLORS.get(level, "")
            level = f"{color}{level:7}{self.RESET}"
        else:
            level = f"{level:7}"

        module = record.name.split(".")[-1][:15]
        return f"{time_str} {level} [{module:15}] {record.getMessage()}"


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
) -> None:
    """
    Install a single stderr handler on the root logger.

    ``level`` and ``format_type`` fall back to LOG_LEVEL and LOG_FORMAT.
    Unknown levels become WARNING.
    """
    log_level = (level or os.environ.get("LOG_LEVEL", "WARNING")).upper()
    log_format = (format_type or os.environ.get("LOG_FORMAT", "text")).lower()

    numeric_level = logging.getLevelName(log_level)
    if not isinstance(numeric_level, int):
        numeric_level = logging.WARNING

    formatter: logging.Formatter = JSONFormatter() if log_format == "json" else HumanFormatter()

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(numeric_level)
    root.addHandler(handler)

    # httpx logs every request URL at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Logging configured: level={log_level}, format={log_format}"
    )
