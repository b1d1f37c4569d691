"""Tests for unified logging format.

Target format: 2026-01-06T14:05:52Z [source] LEVEL message
"""

from __future__ import annotations

import io
import logging
import re
from unittest.mock import patch

from grouping.logging_config import (
    TRACE,
    HealthCheckFilter,
    ISO8601Formatter,
    configure_logging,
    get_logger,
)


def make_record(msg: str, level: int = logging.INFO, args: tuple = (), name: str = "test") -> logging.LogRecord:
    return logging.LogRecord(name=name, level=level, pathname="", lineno=0, msg=msg, args=args, exc_info=None)


class TestISO8601Formatter:
    """Test the custom ISO8601 formatter produces correct output."""

    def test_format(self):
        """Verify output matches: 2026-01-06T14:05:52Z [source] LEVEL message"""
        output = ISO8601Formatter(source="engine").format(make_record("Generated partition"))

        pattern = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z \[engine\] INFO Generated partition$"
        assert re.match(pattern, output), f"Output '{output}' doesn't match expected format"

    def test_timestamp_from_record_creation_time(self):
        record = make_record("x")
        record.created = 1767708352.0  # 2026-01-06T14:05:52Z

        assert ISO8601Formatter().format(record).startswith("2026-01-06T14:05:52Z [grouping]")

    def test_levels(self):
        formatter = ISO8601Formatter(source="test")
        for level, level_name in [(TRACE, "TRACE"), (logging.DEBUG, "DEBUG"), (logging.WARNING, "WARNING")]:
            assert f"] {level_name} " in formatter.format(make_record("Message", level=level))

    def test_message_args(self):
        output = ISO8601Formatter().format(make_record("Seed %s for %s", args=(42, "balanced")))
        assert output.endswith("Seed 42 for balanced")

    def test_exception_appended(self):
        try:
            raise ValueError("bad capacity")
        except ValueError:
            import sys

            record = make_record("Run failed", level=logging.ERROR)
            record.exc_info = sys.exc_info()

        output = ISO8601Formatter().format(record)
        assert "Run failed\nTraceback" in output
        assert "ValueError: bad capacity" in output


class TestHealthCheckFilter:
    """Test health check log filtering."""

    def test_suppresses_health_check(self):
        record = make_record('127.0.0.1:56948 - "GET /health HTTP/1.1" 200 OK', name="uvicorn.access")
        assert HealthCheckFilter().filter(record) is False

    def test_allows_engine_endpoints(self):
        record = make_record('127.0.0.1:56948 - "POST /api/engine/partition HTTP/1.1" 200 OK', name="uvicorn.access")
        assert HealthCheckFilter().filter(record) is True

    def test_allows_health_at_debug_level(self):
        record = make_record('127.0.0.1:56948 - "GET /health HTTP/1.1" 200 OK', level=logging.DEBUG)
        assert HealthCheckFilter().filter(record) is True


class TestConfigureLogging:
    """Test the configure_logging function."""

    def test_default_level_is_info(self):
        with patch.dict("os.environ", {}, clear=True):
            assert configure_logging(source="test").level == logging.INFO

    def test_debug_flag(self):
        with patch.dict("os.environ", {}, clear=True):
            assert configure_logging(source="test", debug=True).level == logging.DEBUG

    def test_trace_from_environment(self):
        with patch.dict("os.environ", {"LOG_LEVEL": "trace"}):
            assert configure_logging(source="test").level == TRACE

    def test_uvicorn_shares_root_handler(self):
        root = configure_logging(source="api", level=logging.INFO)
        access = logging.getLogger("uvicorn.access")

        assert access.handlers == root.handlers
        assert access.propagate is False

    def test_get_logger_returns_named_logger(self):
        assert get_logger("grouping.engine").name == "grouping.engine"

    def test_trace_method_on_loggers(self):
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(ISO8601Formatter(source="test"))
        logger = get_logger("grouping.test_trace")
        logger.addHandler(handler)
        logger.setLevel(TRACE)
        logger.propagate = False

        logger.trace("swap trial 7")  # type: ignore[attr-defined]

        assert stream.getvalue().rstrip().endswith("[test] TRACE swap trial 7")
