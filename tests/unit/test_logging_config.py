"""Unit tests for logging formatters."""

import json
import logging

from pollstats.logging_config import DevelopmentFormatter, JSONFormatter, get_logger


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="pollstats.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="Recorded %d interactions",
        args=(3,),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for the production formatter."""

    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "pollstats.test"
        assert data["message"] == "Recorded 3 interactions"
        assert "timestamp" in data

    def test_extra_fields_included(self):
        data = json.loads(
            JSONFormatter().format(make_record(session_id="s1", event_count=3))
        )

        assert data["session_id"] == "s1"
        assert data["event_count"] == 3
        assert "args" not in data

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            import sys

            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in data["exception"]


class TestDevelopmentFormatter:
    """Tests for the development formatter."""

    def test_includes_level_and_message(self):
        output = DevelopmentFormatter().format(make_record())

        assert "INFO" in output
        assert "Recorded 3 interactions" in output

    def test_includes_session_id(self):
        output = DevelopmentFormatter().format(make_record(session_id="s1"))

        assert "[session_id=s1]" in output


def test_get_logger_returns_named_logger():
    assert get_logger("pollstats.example").name == "pollstats.example"
