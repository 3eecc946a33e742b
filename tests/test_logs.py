# tests/test_logs.py
from __future__ import annotations

import json
import logging

import pytest

from pollwise.config import PollwiseConfig, SystemConfig
from pollwise.core import logging as core_logging
from pollwise.core.env import reload_config
from pollwise.core.logging import JsonFormatter, init_logging, resolve_format
from pollwise.core.logs import (
    EventType,
    LogLevel,
    get_event_logger,
    get_logs,
    log_calls,
    log_message,
)


def test_events_are_buffered_and_filterable():
    logger = get_event_logger()
    logger.info("first", event_type=EventType.ANALYSIS_START, user_id="u1")
    logger.warning("second", event_type=EventType.SPAN_DROPPED, metadata={"substring": "x"})

    dropped = logger.get_events(event_type=EventType.SPAN_DROPPED)
    assert [e.message for e in dropped] == ["second"]
    assert dropped[0].metadata == {"substring": "x"}
    assert [e.message for e in logger.get_events(min_level=LogLevel.WARNING)] == ["second"]


def test_get_logs_returns_json_lines():
    log_message("hello")

    (line,) = get_logs()
    payload = json.loads(line)
    assert payload["message"] == "hello"
    assert payload["event_type"] == "system"


def test_retry_helpers_record_metadata():
    logger = get_event_logger()
    logger.log_retry_attempt(1, 3, 500.0, component="test")
    logger.log_retry_exhausted(3)
    logger.log_error_classification("ValueError", "validation")

    attempt = logger.get_events(event_type=EventType.RETRY_ATTEMPT)[0]
    assert attempt.metadata == {"attempt": 1, "max_attempts": 3, "delay_ms": 500.0}
    assert attempt.component == "test"
    assert logger.get_events(event_type=EventType.RETRY_EXHAUSTED)[0].level is LogLevel.ERROR
    classified = logger.get_events(event_type=EventType.ERROR_CLASSIFICATION)[0]
    assert classified.metadata["classification"] == "validation"
    assert logger.get_metrics()["events_by_type"]["retry_attempt"] >= 1


@pytest.mark.asyncio
async def test_log_calls_records_errors_and_reraises():
    @log_calls
    async def boom():
        raise KeyError("missing")

    with pytest.raises(KeyError):
        await boom()

    errors = get_event_logger().get_events(event_type=EventType.ERROR)
    assert errors[-1].metadata["error_type"] == "KeyError"


def test_log_calls_wraps_sync_functions():
    @log_calls
    def add(a, b):
        return a + b

    assert add(1, 2) == 3
    assert add.__name__ == "add"


def test_json_formatter_includes_extras():
    record = logging.LogRecord("pollwise.test", logging.INFO, __file__, 1, "hi %s", ("there",), None)
    record.user_id = "u1"
    record.blob = object()

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "hi there"
    assert payload["logger"] == "pollwise.test"
    assert payload["user_id"] == "u1"
    assert isinstance(payload["blob"], str)


def test_reload_config_reads_environment(monkeypatch):
    monkeypatch.setenv("POLL_ANALYSIS_MAX_ATTEMPTS", "7")

    cfg = reload_config()

    assert isinstance(cfg, PollwiseConfig)
    assert cfg.analysis.max_attempts == 7


@pytest.fixture
def restore_logging(monkeypatch):
    root = logging.getLogger()
    pollwise_logger = logging.getLogger("pollwise")
    event_logger = get_event_logger()
    saved = (list(root.handlers), root.level, pollwise_logger.level, event_logger.console_handler)
    monkeypatch.setattr(core_logging, "_installed_handler", None)
    yield
    handlers, root_level, pollwise_level, console_handler = saved
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(root_level)
    event_logger.set_console_handler(console_handler, pollwise_level)


def test_init_logging_applies_system_settings(restore_logging, capsys):
    settings = SystemConfig.model_validate({"LOG_LEVEL": "warning", "LOG_FORMAT": "json"})

    handler = init_logging(settings)

    assert isinstance(handler.formatter, JsonFormatter)
    assert handler in logging.getLogger().handlers
    assert get_event_logger().console_handler is handler
    assert logging.getLogger("pollwise").level == logging.WARNING

    get_event_logger().info("quiet")
    get_event_logger().warning(
        "Dropped finding",
        event_type=EventType.SPAN_DROPPED,
        component="pollwise.analysis.spans",
        metadata={"substring": "x"},
    )

    (line,) = capsys.readouterr().out.splitlines()
    payload = json.loads(line)
    assert payload["level"] == "WARNING"
    assert payload["event_type"] == "span_dropped"
    assert payload["component"] == "pollwise.analysis.spans"
    assert payload["metadata"] == {"substring": "x"}
    assert payload["message"].endswith("Dropped finding")


def test_init_logging_runs_once_unless_forced(restore_logging):
    first = init_logging(SystemConfig.model_validate({"LOG_FORMAT": "plain"}))
    again = init_logging(SystemConfig.model_validate({"LOG_FORMAT": "json"}))
    forced = init_logging(SystemConfig.model_validate({"LOG_FORMAT": "json"}), force=True)

    assert again is first
    assert forced is not first
    assert first not in logging.getLogger().handlers
    assert isinstance(forced.formatter, JsonFormatter)


def test_unknown_level_falls_back_to_info(restore_logging):
    init_logging(SystemConfig.model_validate({"LOG_LEVEL": "chatty", "LOG_FORMAT": "plain"}))

    assert logging.getLogger("pollwise").level == logging.INFO


@pytest.mark.parametrize(
    "value, expected",
    [("JSON", "json"), (" plain ", "plain"), ("rich", "rich"), ("", "rich"), ("xml", "rich")],
)
def test_resolve_format(value, expected):
    assert resolve_format(value) == expected
