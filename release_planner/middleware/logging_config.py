"""
Release Planner logging setup.

Request logs (timing middleware) carry method / path / status / duration_ms
/ request_id.  Lifecycle and notification logs carry the release they act
on: release_id, account_name, release_status, template and recipient_count,
passed through ``extra=``.

- DEBUG app:   coloured one-liners with a trailing [release=.. req=..] tag
- Production:  one JSON object per line
- TESTING:     handlers left alone so caplog sees every record
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

REQUEST_KEYS = ("method", "path", "status", "duration_ms", "remote_addr", "request_id")
RELEASE_KEYS = ("release_id", "account_name", "release_status", "template", "recipient_count")


def record_context(record: logging.LogRecord) -> dict:
    """Request and release fields attached to ``record`` through ``extra=``."""
    context = {}
    for key in REQUEST_KEYS + RELEASE_KEYS:
        value = getattr(record, key, None)
        if value is not None and value != "":
            context[key] = value
    return context


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_context(record),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Coloured development output."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        context = record_context(record)
        tags = []
        if "release_id" in context:
            tags.append(f"release={context['release_id']}")
        if "request_id" in context:
            tags.append(f"req={context['request_id']}")
        if "duration_ms" in context:
            tags.append(f"{context['duration_ms']:.0f}ms")
        tag_str = f" [{' '.join(tags)}]" if tags else ""
        line = (
            f"{color}{datetime.now():%H:%M:%S} {record.levelname:<8}{self.RESET} "
            f"{record.name}: {record.getMessage()}{tag_str}"
        )
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install the release_planner log handler for ``app``.

    LOG_LEVEL overrides the default (DEBUG when app.debug, INFO otherwise).
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if is_prod else "DEBUG")
    level = getattr(logging, level_name.upper(), logging.INFO)

    if not is_testing:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JSONFormatter() if is_prod else ReadableFormatter())
        handler.setLevel(level)
        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(handler)
        root.setLevel(level)

    for noisy in ("urllib3", "werkzeug", "flask_limiter"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger("release_planner").setLevel(level)
    app.logger.setLevel(level)

    if not is_testing:
        app.logger.info("Logging configured: level=%s format=%s",
                        level_name, "JSON" if is_prod else "readable")
