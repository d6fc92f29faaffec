"""Tests for JSON and console log formatters."""

import json
import logging

import pytest

from sniffrelay.logging.context import set_log_context
from sniffrelay.logging.formatters import ConsoleFormatter, JSONFormatter
from sniffrelay.types import ErrorCategory


def make_record(msg="Transfer complete", level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord(
        name="sniffrelay.download.relay",
        level=level,
        pathname="relay.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    @pytest.fixture
    def formatter(self):
        return JSONFormatter()

    def test_base_fields(self, formatter):
        entry = json.loads(formatter.format(make_record()))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "sniffrelay.download.relay"
        assert entry["message"] == "Transfer complete"
        assert entry["ts"].endswith("Z")
        assert "file" not in entry

    def test_debug_includes_location(self, formatter):
        entry = json.loads(formatter.format(make_record(level=logging.DEBUG)))

        assert entry["file"] == "relay.py:42"

    def test_context_injected(self, formatter):
        set_log_context(transfer_id="abc123", stage="relay", download_url="https://x.test/f")

        entry = json.loads(formatter.format(make_record()))

        assert entry["transfer_id"] == "abc123"
        assert entry["stage"] == "relay"
        assert entry["download_url"] == "https://x.test/f"

    def test_empty_context_omitted(self, formatter):
        entry = json.loads(formatter.format(make_record()))

        assert "transfer_id" not in entry
        assert "stage" not in entry

    def test_extra_fields(self, formatter):
        record = make_record(
            bytes_downloaded="2048",
            status_code=200,
            mime="image/png",
            error_category=ErrorCategory.TRANSIENT,
            unrelated="dropped",
        )

        entry = json.loads(formatter.format(record))

        assert entry["bytes_downloaded"] == 2048
        assert entry["status_code"] == 200
        assert entry["mime"] == "image/png"
        assert entry["error_category"] == "transient"
        assert "unrelated" not in entry

    def test_bad_numeric_becomes_null(self, formatter):
        entry = json.loads(formatter.format(make_record(duration_ms="fast")))

        assert entry["duration_ms"] is None

    def test_sensitive_query_params_redacted(self, formatter):
        set_log_context(download_url="https://cdn.test/f.png?sig=secret123&size=large&token=t0k")

        entry = json.loads(formatter.format(make_record()))

        assert "secret123" not in entry["download_url"]
        assert "t0k" not in entry["download_url"]
        assert "sig=[REDACTED]" in entry["download_url"]
        assert "size=large" in entry["download_url"]

    def test_exception_info(self, formatter):
        try:
            raise ValueError("boom")
        except ValueError as e:
            record = make_record(level=logging.ERROR, exc_info=(type(e), e, e.__traceback__))

        entry = json.loads(formatter.format(record))

        assert entry["exception"]["type"] == "ValueError"
        assert entry["exception"]["message"] == "boom"
        assert "Traceback" in entry["exception"]["stacktrace"]


class TestConsoleFormatter:
    @pytest.fixture
    def formatter(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = False
        return formatter

    def test_plain_line(self, formatter):
        line = formatter.format(make_record())

        assert line.endswith(" - INFO - Transfer complete")

    def test_stage_and_transfer_prefix(self, formatter):
        set_log_context(transfer_id="0123456789abcdef", stage="relay")

        line = formatter.format(make_record())

        assert "[relay]" in line
        assert "[01234567] Transfer complete" in line

    def test_record_transfer_id_wins(self, formatter):
        set_log_context(transfer_id="aaaaaaaaaaaa")

        line = formatter.format(make_record(transfer_id="bbbbbbbbbbbb"))

        assert "[bbbbbbbb]" in line

    def test_colors(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = True

        line = formatter.format(make_record(level=logging.WARNING))

        assert "\033[33mWARNING\033[0m" in line
