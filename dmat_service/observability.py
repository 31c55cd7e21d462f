"""Process-wide logging: console sink plus an optional rotating file sink.

``setup_logging`` is called once from the application lifespan and
``shutdown_logging`` flushes and closes whatever it installed.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import Settings

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

_EXTRA_KEYS = ("error_code", "error_count", "path", "security_code", "page_index")

_installed_handlers: list[logging.Handler] = []


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            value = record.__dict__.get(key)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT)


def setup_logging(settings: Settings) -> None:
    """Install console and (when ``settings.log_file`` is set) rotating file handlers."""
    if _installed_handlers:
        return
    formatter = _build_formatter(settings.log_format)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    _installed_handlers.append(console)

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        _installed_handlers.append(file_handler)

    root = logging.getLogger()
    for handler in _installed_handlers:
        root.addHandler(handler)
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))


def shutdown_logging() -> None:
    """Flush, close and detach every handler installed by ``setup_logging``."""
    root = logging.getLogger()
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root.removeHandler(handler)
        handler.flush()
        handler.close()
