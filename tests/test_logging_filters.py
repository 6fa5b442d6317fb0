"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from app.core.logging import JsonFormatter, RequestIdFilter, SensitiveDataFilter, clear_request_id, set_request_id


@pytest.fixture
def capture():
    """Yield (logger, stream) with the production filters and formatter."""

    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def test_sensitive_filter_redacts_upstream_credential(capture):
    logger, stream = capture

    logger.info(
        "config_event",
        extra={
            "api_key": "AIza-secret-123",
            "url": "https://generativelanguage.googleapis.com/v1beta/models/m:generateContent?key=AIza-secret-123",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()

    assert "AIza-secret-123" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_forwarded_prompts(capture):
    logger, stream = capture

    logger.info(
        "forward_event",
        extra={
            "payload": {"contents": [{"parts": [{"text": "my private question"}]}]},
            "upstream_status": 200,
        },
    )

    output = stream.getvalue()

    assert "my private question" not in output
    assert "upstream_status" in output


def test_sensitive_filter_redacts_nested_dicts(capture):
    logger, stream = capture

    logger.info(
        "nested_event",
        extra={
            "details": {
                "key": "secret-key",
                "upstream_message": "invalid API key",
            },
        },
    )

    record = json.loads(stream.getvalue())

    assert record["details"]["key"] == "[REDACTED]"
    assert record["details"]["upstream_message"] == "invalid API key"


def test_sensitive_filter_allows_safe_fields(capture):
    logger, stream = capture

    logger.info(
        "rate_limit.allowed",
        extra={
            "key_hash": "abc123",
            "limit": 10,
            "remaining": 9,
        },
    )

    record = json.loads(stream.getvalue())

    assert record["message"] == "rate_limit.allowed"
    assert record["key_hash"] == "abc123"
    assert record["remaining"] == 9
    assert "[REDACTED]" not in stream.getvalue()


def test_request_id_from_context_is_attached(capture):
    logger, stream = capture
    set_request_id("req-42")

    logger.warning("proxy.forwarded")

    record = json.loads(stream.getvalue())
    assert record["request_id"] == "req-42"
    assert record["level"] == "warning"
