"""Structured logging for the cache layer.

Provides:
- JSON-formatted logs for log aggregation systems (ELK, Loki, etc.)
- Cache context propagation (entity class, operation) into every record
- A human-readable console format for development

Usage:
    from tagcache.observability.logging import configure_logging

    configure_logging(json_format=True, level="INFO")

    logger = logging.getLogger(__name__)
    with LogContext(entity="entries", operation="invalidate"):
        logger.info("Flushed tag")  # Includes entity and operation
"""

from __future__ import annotations

import contextvars
import logging
import sys
from datetime import datetime, timezone
from typing import Any

import orjson

# Context variables for cache operation correlation
entity_var: contextvars.ContextVar[str] = contextvars.ContextVar("entity", default="")
operation_var: contextvars.ContextVar[str] = contextvars.ContextVar("operation", default="")


def current_context() -> dict[str, str]:
    """The cache context of the running operation, empty fields omitted."""
    context = {"entity": entity_var.get(), "operation": operation_var.get()}
    return {key: value for key, value in context.items() if value}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, encoded with orjson.

    {"timestamp": "2026-01-10T12:34:56.789000+00:00", "level": "WARNING",
     "logger": "tagcache.cache.engine", "message": "Cache write failed ...",
     "line": 42, "entity": "entries", "operation": "read"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
            **current_context(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "traceback": self.formatException(record.exc_info),
            }
        return orjson.dumps(log_data, default=str).decode()


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for development.

    2026-01-10 12:34:56 | INFO     | tagcache.cache.engine | Flushed tag | entity=entries
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    LABELS = {"entity": "entity", "operation": "op"}

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        level = f"{record.levelname:8}"
        if self.use_colors:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        line = f"{timestamp} | {level} | {record.name} | {record.getMessage()}"
        context = " ".join(f"{self.LABELS[k]}={v}" for k, v in current_context().items())
        if context:
            line += f" | {context}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    json_format: bool = True,
    level: str = "INFO",
    use_colors: bool = True,
) -> None:
    """Replace the root handlers with one stderr handler.

    Args:
        json_format: Use JSON format (recommended for production)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_colors: Use ANSI colors in console format
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(ConsoleFormatter(use_colors=use_colors))
    root_logger.addHandler(handler)

    # Connection chatter from the redis client
    logging.getLogger("redis").setLevel(logging.WARNING)


class LogContext:
    """Context manager scoping the entity class and operation of log records.

    Usage:
        with LogContext(entity="fieldsets", operation="clear"):
            logger.info("Clearing fieldset cache")
    """

    def __init__(self, entity: str | None = None, operation: str | None = None) -> None:
        self.entity = entity
        self.operation = operation
        self._tokens: list[tuple[contextvars.ContextVar[str], contextvars.Token[str]]] = []

    def __enter__(self) -> LogContext:
        if self.entity is not None:
            self._tokens.append((entity_var, entity_var.set(self.entity)))
        if self.operation is not None:
            self._tokens.append((operation_var, operation_var.set(self.operation)))
        return self

    def __exit__(self, *args: Any) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()
