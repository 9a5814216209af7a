"""Налаштування логування: текстовий або JSON формат у stderr."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

_NOISY_LOGGERS = ("httpx", "httpcore")
_TEXT_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


class JsonFormatter(logging.Formatter):
    """Один JSON-об'єкт на рядок, для збирачів логів."""

    def format(self, record: logging.LogRecord) -> str:
        d: dict[str, Any] = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            d["error"] = self.formatException(record.exc_info)
        return json.dumps(d, default=str)


def setup_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Налаштовує кореневий логер.

    HTTP-клієнт логує кожен запит, тому його логери показуються лише на DEBUG.

    Args:
        level: Рівень логування (DEBUG, INFO, WARNING, ERROR).
        fmt: ``text`` (для людини) або ``json``.
    """
    numeric = getattr(logging, level.upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt="%H:%M:%S"))
    logging.basicConfig(level=numeric, handlers=[handler], force=True)

    noisy_level = logging.DEBUG if numeric <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)
