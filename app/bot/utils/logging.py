"""Structured JSON logging for the bot."""

from __future__ import annotations
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


class JsonFormatter(logging.Formatter):
    """Emit logs as JSON objects with a stable schema."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "event_type": getattr(record, "event_type", "log"),
            "user_id": getattr(record, "user_id", None),
            "message": record.getMessage(),
            "metadata": getattr(record, "metadata", {}),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def get_logger(
    name: str = "bot", level: str = "INFO", path: Optional[str] = None
) -> logging.Logger:
    """Configure and return the application logger.

    Handlers are attached once; later calls only return the logger. Module
    loggers (`bot.store`, `bot.router`, ...) propagate here.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper())

    if logger.handlers:
        return logger

    handler: logging.Handler
    if path:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(path, encoding="utf-8")
        except OSError:
            print(f"[bot] warning: cannot open {path}; logging to stderr")
            handler = logging.StreamHandler(sys.stderr)
    else:
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger
