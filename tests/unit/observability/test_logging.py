"""Tests for structured logging."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator

import pytest

from tagcache.observability.logging import (
    ConsoleFormatter,
    JsonFormatter,
    LogContext,
    configure_logging,
    current_context,
    entity_var,
    operation_var,
)


def make_record(message: str = "Flushed tag", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="tagcache.cache.engine",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root() -> Iterator[None]:
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLogContext:
    """Test context propagation."""

    def test_sets_and_resets(self) -> None:
        with LogContext(entity="entries", operation="read"):
            assert entity_var.get() == "entries"
            assert operation_var.get() == "read"
        assert entity_var.get() == ""
        assert operation_var.get() == ""

    def test_current_context_omits_empty_fields(self) -> None:
        assert current_context() == {}
        with LogContext(operation="flush_tag"):
            assert current_context() == {"operation": "flush_tag"}

    def test_nested_contexts(self) -> None:
        with LogContext(entity="globals", operation="invalidate"):
            with LogContext(operation="flush_tag"):
                assert entity_var.get() == "globals"
                assert operation_var.get() == "flush_tag"
            assert operation_var.get() == "invalidate"


class TestJsonFormatter:
    """Test JSON output."""

    def test_basic_fields(self) -> None:
        data = json.loads(JsonFormatter().format(make_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "tagcache.cache.engine"
        assert data["message"] == "Flushed tag"
        assert "entity" not in data

    def test_includes_context(self) -> None:
        with LogContext(entity="fieldsets", operation="clear"):
            data = json.loads(JsonFormatter().format(make_record()))
        assert data["entity"] == "fieldsets"
        assert data["operation"] == "clear"

    def test_includes_exception(self) -> None:
        try:
            raise ConnectionError("redis down")
        except ConnectionError:
            record = make_record(exc_info=sys.exc_info())
        data = json.loads(JsonFormatter().format(record))
        assert data["exception"]["type"] == "ConnectionError"
        assert "redis down" in data["exception"]["traceback"]


class TestConsoleFormatter:
    """Test human readable output."""

    def test_format(self) -> None:
        with LogContext(entity="entries", operation="read"):
            line = ConsoleFormatter(use_colors=False).format(make_record("Cache hit"))
        assert "| tagcache.cache.engine | Cache hit | entity=entries op=read" in line


class TestConfigureLogging:
    """Test root logger setup."""

    def test_json_handler(self, restore_root: None) -> None:
        configure_logging(json_format=True, level="WARNING")
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_console_handler(self, restore_root: None) -> None:
        configure_logging(json_format=False, level="debug")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, ConsoleFormatter)
