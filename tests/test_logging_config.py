"""Tests for logging configuration and formatters."""

import io
import json
import logging
import sys

import pytest

from njgit.logging import ComponentLoggerAdapter, get_logger
from njgit.logging.config import (
    ContextualFilter,
    JSONFormatter,
    KeyValueFormatter,
    configure_logging,
)
from njgit.logging.context import log_context


@pytest.fixture
def logger():
    """Create a test logger with handler for capturing output."""
    test_logger = logging.getLogger("test_logger")
    test_logger.setLevel(logging.DEBUG)
    test_logger.handlers.clear()

    yield test_logger

    test_logger.handlers.clear()


@pytest.fixture
def restore_root_logger():
    """Restore root handlers and level changed by configure_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(logger, extra=None):
    return logger.makeRecord("test", logging.INFO, "test.py", 1, "Test message", (), None, extra=extra)


def test_json_formatter_basic(logger):
    """Test JSONFormatter produces valid JSON with mandatory fields."""
    log_obj = json.loads(JSONFormatter().format(_record(logger)))

    assert log_obj["level"] == "INFO"
    assert log_obj["message"] == "Test message"
    assert log_obj["logger"] == "test"
    assert "name" not in log_obj


def test_json_formatter_with_extra_fields(logger):
    record = _record(logger, extra={"event": "sync.job.committed", "commit_id": "abc12345", "pushed": True})

    log_obj = json.loads(JSONFormatter().format(record))

    assert log_obj["event"] == "sync.job.committed"
    assert log_obj["commit_id"] == "abc12345"
    assert log_obj["pushed"] is True


def test_json_timestamp_format(logger):
    """Test ISO-8601 UTC timestamps with millisecond precision."""
    timestamp = json.loads(JSONFormatter().format(_record(logger)))["timestamp"]

    assert timestamp.endswith("Z")
    assert len(timestamp) == 24


def test_json_formatter_includes_exception(logger):
    try:
        raise ValueError("boom")
    except ValueError:
        record = logger.makeRecord("test", logging.ERROR, "test.py", 1, "failed", (), sys.exc_info())

    log_obj = json.loads(JSONFormatter().format(record))

    assert "ValueError: boom" in log_obj["exc_info"]


def test_contextual_filter_adds_static_and_context_fields(logger):
    """Test service, environment and active context are attached to records."""
    record_filter = ContextualFilter(service="njgit", environment="test")

    with log_context(run_id="abc123", job_key="global/default/web"):
        record = _record(logger)
        record_filter.filter(record)

    assert record.service == "njgit"
    assert record.environment == "test"
    assert record.run_id == "abc123"
    assert record.job_key == "global/default/web"


def test_explicit_extra_wins_over_context(logger):
    with log_context(job_key="global/default/web"):
        record = _record(logger, extra={"job_key": "explicit"})
        ContextualFilter().filter(record)

    assert record.job_key == "explicit"


def test_key_value_formatter(logger):
    """Test extras are appended as sorted key=value pairs."""
    formatter = KeyValueFormatter("%(levelname)s %(message)s")
    record = _record(logger, extra={"event": "sync.run.completed", "path": "a b", "ok": False, "missing": None})
    ContextualFilter().filter(record)

    output = formatter.format(record)

    assert output == 'INFO Test message event=sync.run.completed missing=null ok=false path="a b"'


def test_component_logger_merges_extra():
    """Test the adapter injects its component and keeps call-site extras."""
    adapter = get_logger("njgit.test", component="pipeline")

    msg, kwargs = adapter.process("hello", {"extra": {"event": "x", "component": "override"}})

    assert isinstance(adapter, ComponentLoggerAdapter)
    assert kwargs["extra"] == {"component": "override", "event": "x"}


def test_get_logger_without_component():
    assert isinstance(get_logger("njgit.test"), logging.Logger)


def test_configure_logging_invalid_level():
    with pytest.raises(ValueError, match="Invalid log level"):
        configure_logging(level="INVALID")


def test_configure_logging_invalid_format():
    with pytest.raises(ValueError, match="Invalid log format"):
        configure_logging(format_type="invalid")


def test_configure_logging_json_to_stream(restore_root_logger):
    """Test records reach the configured stream as JSON with context fields."""
    stream = io.StringIO()
    configure_logging(level="INFO", format_type="json", environment="test", stream=stream)

    with log_context(run_id="abc123"):
        get_logger("njgit.test", component="pipeline").info(
            "Sync run started", extra={"event": "sync.run.started"}
        )

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    started = [line for line in lines if line.get("event") == "sync.run.started"]
    assert started[0]["run_id"] == "abc123"
    assert started[0]["component"] == "pipeline"
    assert started[0]["environment"] == "test"
    assert started[0]["service"] == "njgit"


def test_configure_logging_key_value_format(restore_root_logger):
    configure_logging(level="WARNING", format_type="key-value", stream=io.StringIO())

    handler = restore_root_logger.handlers[0]

    assert isinstance(handler.formatter, KeyValueFormatter)
    assert restore_root_logger.level == logging.WARNING
    assert logging.getLogger("urllib3").level == logging.WARNING
