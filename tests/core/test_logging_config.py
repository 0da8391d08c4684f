"""Tests for logging configuration."""

from __future__ import annotations

import json
import logging

import pytest

from nodeloom.core import logging_config
from nodeloom.core.logging_config import JsonFormatter, configure_logging, get_logger, set_level


@pytest.fixture
def root_logger(monkeypatch):
    """Restore root handlers and level after a configure_logging() call."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    monkeypatch.setattr(logging_config, "_configured", False)
    for name in ("NODELOOM_LOG_LEVEL", "NODELOOM_LOG_FORMAT", "NODELOOM_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(msg: str = "node_started: id=%s", args=("n1",), **extra) -> logging.LogRecord:
    record = logging.LogRecord("nodeloom.test", logging.INFO, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def test_basic_fields(self):
        data = json.loads(JsonFormatter().format(make_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "nodeloom.test"
        assert data["message"] == "node_started: id=n1"
        assert "extra" not in data

    def test_extra_fields(self):
        data = json.loads(JsonFormatter().format(make_record(runner_id="r1")))
        assert data["extra"] == {"runner_id": "r1"}


class TestConfigureLogging:
    def test_sets_level_and_handler(self, root_logger):
        configure_logging(level="debug")
        assert root_logger.level == logging.DEBUG
        assert len(root_logger.handlers) == 1

    def test_second_call_ignored_without_force(self, root_logger):
        configure_logging(level="ERROR")
        configure_logging(level="DEBUG")
        assert root_logger.level == logging.ERROR
        configure_logging(level="DEBUG", force=True)
        assert root_logger.level == logging.DEBUG

    def test_json_format(self, root_logger):
        configure_logging(format="json")
        assert isinstance(root_logger.handlers[0].formatter, JsonFormatter)

    def test_environment_defaults(self, root_logger, monkeypatch, tmp_path):
        log_file = tmp_path / "engine.log"
        monkeypatch.setenv("NODELOOM_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("NODELOOM_LOG_FILE", str(log_file))
        configure_logging()

        assert root_logger.level == logging.WARNING
        assert len(root_logger.handlers) == 2
        get_logger("nodeloom.test").warning("graph_ended: reason=%s", "completed")
        for handler in root_logger.handlers:
            handler.flush()
        root_logger.handlers[1].close()
        assert "graph_ended: reason=completed" in log_file.read_text()


def test_set_level():
    logger = get_logger("nodeloom.core.runner.runner")
    previous = logger.level
    try:
        set_level("debug", "nodeloom.core.runner.runner")
        assert logger.level == logging.DEBUG
    finally:
        logger.setLevel(previous)
