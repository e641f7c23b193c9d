"""Logging for the devsocial backend.

Built on the standard library ``logging`` module. ``ContextualLogger`` is a
``LoggerAdapter`` that carries a dict of dimensions (request id, operation,
url, ...) which is merged into every record it emits.

Usage:
    from devsocial.core.logging import logger, get_channel_logger

    logger.info("Container initialized")

    request_logger = logger.with_context(request_id="abc", url="/feed")
    request_logger.warning("High query count detected", extra={"query_count": 61})

    worker_log = get_channel_logger("worker")
    worker_log.warning("Slow request detected", extra={"execution_time": "1.204s"})
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, MutableMapping

from devsocial.core.config import settings
from devsocial.core.config.enums import Environment

ROOT_LOGGER_NAME = "devsocial"

# Attributes present on every LogRecord; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "dimensions"}


class JSONFormatter(logging.Formatter):
    """Render records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(getattr(record, "dimensions", {}) or {})
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter used for local development."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = dict(getattr(record, "dimensions", {}) or {})
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                fields[key] = value
        if fields:
            line += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that attaches a set of dimensions to every record."""

    def __init__(self, logger: logging.Logger, dimensions: dict[str, Any] | None = None):
        super().__init__(logger, {})
        self.dimensions: dict[str, Any] = dict(dimensions or {})

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["dimensions"] = {**self.dimensions, **extra.get("dimensions", {})}
        kwargs["extra"] = extra
        return msg, kwargs

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a child logger with additional dimensions."""
        return ContextualLogger(self.logger, {**self.dimensions, **dimensions})


def _build_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if settings.ENVIRONMENT == Environment.LOCAL or settings.LOCAL_DEVELOPMENT:
        handler.setFormatter(TextFormatter())
    else:
        handler.setFormatter(JSONFormatter())
    return handler


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(settings.LOG_LEVEL.upper())
    if not root.handlers:
        root.addHandler(_build_handler())
    root.propagate = True
    return root


def get_channel_logger(channel: str, **dimensions: Any) -> ContextualLogger:
    """Return the logger for a named channel (``devsocial.<channel>``)."""
    return ContextualLogger(
        logging.getLogger(f"{ROOT_LOGGER_NAME}.{channel}"),
        {"channel": channel, **dimensions},
    )


logger = ContextualLogger(_configure_root())
