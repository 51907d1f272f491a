"""
Tests for zenvpush.logging_config — formatters and setup.
"""

from __future__ import annotations

import json
import logging

import pytest

from zenvpush.logging_config import HumanFormatter, JSONFormatter, setup_logging


def _record(msg="hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("zenvpush.publisher", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "zenvpush.publisher"
        assert entry["message"] == "hello"
        assert "ts" in entry

    def test_extra_fields(self):
        entry = json.loads(JSONFormatter().format(
            _record(secret_key="API_KEY", repository="owner/repo", stage="publishing")
        ))
        assert entry["secret_key"] == "API_KEY"
        assert entry["repository"] == "owner/repo"
        assert entry["stage"] == "publishing"

    def test_timestamp_is_record_time(self):
        record = _record()
        record.created = 0.0
        entry = json.loads(JSONFormatter().format(record))
        assert entry["ts"].startswith("1970-01-01T00:00:00")


class TestHumanFormatter:

    def test_short_module_name(self):
        line = HumanFormatter().format(_record())
        assert "[publisher" in line
        assert line.endswith("hello")


class TestSetupLogging:

    @pytest.fixture(autouse=True)
    def _restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_format(self):
        setup_logging(level="debug", format_type="json")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_env_defaults(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("LOG_FORMAT", "text")
        setup_logging()
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, HumanFormatter)

    def test_unknown_level_falls_back(self):
        setup_logging(level="chatty")
        assert logging.getLogger().level == logging.WARNING
