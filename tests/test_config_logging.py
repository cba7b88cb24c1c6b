# tests/test_config_logging.py

"""Unit tests for settings and logging setup"""

import io
import json
import logging
import sys

import pytest

from jsonrpc_invoker.core.config import Settings
from jsonrpc_invoker.core.logging import (
    JSONFormatter,
    SimpleFormatter,
    call_context,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way the test found it"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


def make_record(msg="hello %s", args=("world",), exc_info=None, extra=None):
    record = logging.LogRecord(
        "jsonrpc_invoker.test", logging.INFO, __file__, 10, msg, args, exc_info
    )
    for key, value in (extra or {}).items():
        setattr(record, key, value)
    return record


class TestSettings:
    """Test suite for Settings"""

    def test_defaults(self):
        cfg = Settings(_env_file=None)

        assert cfg.HTTP_TIMEOUT == 30.0
        assert cfg.CONTENT_TYPE == "application/json"
        assert cfg.LOG_FORMAT == "simple"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("JSONRPC_HTTP_TIMEOUT", "5")
        monkeypatch.setenv("JSONRPC_LOG_LEVEL", "DEBUG")

        cfg = Settings(_env_file=None)

        assert cfg.HTTP_TIMEOUT == 5.0
        assert cfg.LOG_LEVEL == "DEBUG"


class TestCallContext:
    """Test suite for call_context"""

    def test_method_and_url(self):
        assert call_context("ping", "http://h/rpc") == {
            "rpc_method": "ping", "rpc_url": "http://h/rpc"
        }

    def test_optional_fields(self):
        context = call_context("ping", "http://h/rpc", code=42, status=500)

        assert context["rpc_code"] == 42
        assert context["http_status"] == 500

    def test_code_zero_is_kept(self):
        assert call_context("ping", "http://h/rpc", code=0)["rpc_code"] == 0


class TestFormatters:
    """Test suite for JSONFormatter and SimpleFormatter"""

    def test_json_formatter(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["logger"] == "jsonrpc_invoker.test"
        assert "call" not in data
        assert "exception" not in data

    def test_json_formatter_renders_call_context(self):
        record = make_record(extra=call_context("add", "http://h/rpc", code=42))

        data = json.loads(JSONFormatter().format(record))

        assert data["call"] == {"method": "add", "url": "http://h/rpc", "code": 42}

    def test_json_formatter_includes_exception(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = make_record("failed", (), sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad" in data["exception"]

    def test_simple_formatter(self):
        line = SimpleFormatter().format(make_record())

        assert "INFO" in line
        assert line.endswith("hello world")

    def test_simple_formatter_renders_call_context(self):
        record = make_record(extra=call_context("add", "http://h/rpc", status=502))

        line = SimpleFormatter().format(record)

        assert line.endswith("hello world | method=add url=http://h/rpc http_status=502")


class TestSetupLogging:
    """Test suite for setup_logging"""

    @pytest.mark.parametrize("fmt,formatter_cls", [
        ("json", JSONFormatter),
        ("simple", SimpleFormatter),
        ("JSON", JSONFormatter),
    ])
    def test_installs_single_handler(self, restore_root_logger, fmt, formatter_cls):
        handler = setup_logging(level="debug", fmt=fmt)

        root = restore_root_logger
        assert root.level == logging.DEBUG
        assert root.handlers == [handler]
        assert isinstance(handler.formatter, formatter_cls)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        setup_logging(level="chatty", fmt="simple")

        assert restore_root_logger.level == logging.INFO

    def test_writes_to_given_stream(self, restore_root_logger):
        stream = io.StringIO()
        setup_logging(level="info", fmt="json", stream=stream)

        logging.getLogger("jsonrpc_invoker.test").info(
            "call failed", extra=call_context("add", "http://h/rpc", code=7)
        )

        data = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert data["message"] == "call failed"
        assert data["call"]["code"] == 7
