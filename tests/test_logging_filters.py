"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

from app.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    hash_for_log,
    set_request_id,
)


def _capture(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_secrets():
    """Ensure SensitiveDataFilter redacts secret-bearing fields."""

    logger, stream = _capture("test_redaction")

    logger.info(
        "test_event",
        extra={
            "admin_secret": "adm-123",
            "x-signature": "sig-456",
            "webhook_secret": "hook-789",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()

    assert "adm-123" not in output
    assert "sig-456" not in output
    assert "hook-789" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_contact_pii():
    """Ensure submitted email and message text never reach the logs."""

    logger, stream = _capture("test_pii_redaction")

    logger.info(
        "contact_event",
        extra={
            "email": "ada@example.com",
            "contact_message": "Please call me on 555-0100",
            "record_id": 7,
        },
    )

    output = stream.getvalue()

    assert "ada@example.com" not in output
    assert "555-0100" not in output
    assert "record_id" in output


def test_sensitive_filter_allows_safe_fields():
    """Verify safe fields pass through unmodified."""

    logger, stream = _capture("test_safe_fields")

    logger.info(
        "rate_limit.allowed",
        extra={
            "request_id": "req-123",
            "request_path": "/api/contact",
            "count": 2,
            "remaining": 3,
        },
    )

    record = json.loads(stream.getvalue())

    assert record["message"] == "rate_limit.allowed"
    assert record["request_id"] == "req-123"
    assert record["request_path"] == "/api/contact"
    assert "[REDACTED]" not in stream.getvalue()


def test_sensitive_filter_redacts_nested_dicts():
    """Ensure nested sensitive fields are redacted."""

    logger, stream = _capture("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "x-admin-secret": "secret-key",
                "user-agent": "pytest",
            },
        },
    )

    output = stream.getvalue()

    assert "secret-key" not in output
    assert "[REDACTED]" in output
    assert "pytest" in output


def test_request_id_filter_uses_context():
    logger, stream = _capture("test_request_id")

    set_request_id("ctx-42")
    try:
        logger.info("with_context")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "ctx-42"


def test_hash_for_log_is_stable_and_short():
    assert hash_for_log("203.0.113.7") == hash_for_log("203.0.113.7")
    assert hash_for_log("203.0.113.7") != hash_for_log("203.0.113.8")
    assert len(hash_for_log("unknown")) == 16
