"""Tests for the structured log formatter."""

import logging

from deposim.core.logging import StructuredFormatter


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("deposim.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_redacts_api_keys():
    line = StructuredFormatter().format(_record("Calling openai with sk-proj-AbC123xyz"))

    assert "sk-proj-AbC123xyz" not in line
    assert "[REDACTED]" in line


def test_formatter_adds_session_and_context_columns():
    record = _record("Turn complete", session_id="abc123", extra_data={"tokens": 120})

    line = StructuredFormatter().format(record)

    assert "level=INFO" in line
    assert "session_id=abc123" in line
    assert line.endswith("message=Turn complete tokens=120")


def test_formatter_omits_missing_session_id():
    assert "session_id" not in StructuredFormatter().format(_record("Startup"))
