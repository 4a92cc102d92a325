"""Logging setup driven by ObservabilityConfig.

Modules keep using ``logging.getLogger(__name__)`` and attach context via
``extra={...}``; this module only decides how records are rendered. In
structured mode each record becomes one JSON line that includes those
extra fields.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from .config import ObservabilityConfig, get_config

PACKAGE_LOGGER = "listing_engine"

# Attributes every LogRecord has; anything else came from ``extra``.
_RESERVED = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(config: Optional[ObservabilityConfig] = None) -> logging.Logger:
    """Attach a stream handler to the package logger.

    Calling it again replaces the previous handler instead of stacking.

    Args:
        config: Optional override, defaults to the application config.

    Returns:
        The configured package logger.
    """
    config = config or get_config().observability
    log = logging.getLogger(PACKAGE_LOGGER)

    for handler in list(log.handlers):
        log.removeHandler(handler)

    handler = logging.StreamHandler()
    if config.structured:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(config.format, datefmt="%Y-%m-%d %H:%M:%S")
        )
    log.addHandler(handler)
    log.setLevel(getattr(logging, config.level.upper(), logging.INFO))
    return log
