"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from app.core.logging import (
    JsonFormatter,
    RequestContextFilter,
    SensitiveDataFilter,
    clear_request_id,
    set_request_id,
    set_user_id,
)


@pytest.fixture
def log_stream() -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_credentials(log_stream):
    """Tokens and passwords never reach the log output."""
    logger, stream = log_stream

    logger.info(
        "auth_event",
        extra={
            "authorization": "Bearer eyJhbGciOi.secret",
            "password": "hunter22",
            "token": "tok-123",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()
    assert "eyJhbGciOi" not in output
    assert "hunter22" not in output
    assert "tok-123" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_allows_safe_fields(log_stream):
    logger, stream = log_stream

    logger.info(
        "safe_event",
        extra={
            "request_id": "req-123",
            "route": "/api/orders",
            "status": 201,
            "duration_ms": 12.5,
        },
    )

    output = stream.getvalue()
    assert "req-123" in output
    assert "/api/orders" in output
    assert "201" in output
    assert "[REDACTED]" not in output


def test_sensitive_filter_redacts_nested_dicts(log_stream):
    """Ensure nested sensitive fields are redacted."""
    logger, stream = log_stream

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "Authorization": "Bearer nested-secret",
                "user-agent": "pytest",
            },
            "config": {"jwt_secret": "signing-key", "window_ms": 900000},
        },
    )

    output = stream.getvalue()
    assert "nested-secret" not in output
    assert "signing-key" not in output
    assert "pytest" in output
    assert "900000" in output


def test_tokens_inside_free_text_are_scrubbed(log_stream):
    logger, stream = log_stream
    jwt_like = "eyJhbGciOiJIUzI1NiJ9.eyJpZCI6MX0.c2lnbmF0dXJl"

    logger.info(
        "rejected header %s",
        f"Bearer {jwt_like}",
        extra={"note": f"client sent {jwt_like} twice"},
    )

    output = stream.getvalue()
    assert jwt_like not in output
    assert "rejected header [REDACTED]" in output
    assert "client sent [REDACTED] twice" in output


def test_request_context_is_attached(log_stream):
    logger, stream = log_stream
    logger.handlers[0].addFilter(RequestContextFilter())

    set_request_id("req-ctx-1")
    set_user_id(42)
    try:
        logger.info("order.created")
    finally:
        clear_request_id()
    logger.info("after_request")

    first, second = (json.loads(line) for line in stream.getvalue().splitlines())
    assert first["request_id"] == "req-ctx-1"
    assert first["user_id"] == 42
    assert "request_id" not in second
    assert "user_id" not in second


def test_exceptions_are_formatted(log_stream):
    logger, stream = log_stream

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logger.exception("unhandled_exception")

    record = json.loads(stream.getvalue())
    assert record["level"] == "error"
    assert "RuntimeError: boom" in record["exception"]
