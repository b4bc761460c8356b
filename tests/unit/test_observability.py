"""Unit tests for the diagnostic logging helpers in ``observability``.

Validates the null handler, request-id binding, and event construction the
engine relies on when it reports flush outcomes.
"""

from __future__ import annotations

import logging

import pytest

from lib_devlogs import bind_request_id, get_logger
from lib_devlogs.observability import REQUEST_ID, log_error, log_info, make_event


def test_null_handler_present() -> None:
    """Package logger should always include a NullHandler to avoid surprises."""

    logger = get_logger()
    assert any(isinstance(handler, logging.NullHandler) for handler in logger.handlers)


def test_request_id_in_log(caplog: pytest.LogCaptureFixture) -> None:
    """Structured logs should include the bound request identifier and contextual fields."""

    caplog.set_level(logging.INFO, logger="lib_devlogs")
    bind_request_id("abc123")
    try:
        log_info("flush_completed", loggers=1)
    finally:
        bind_request_id(None)
    record = caplog.records[-1]
    assert getattr(record, "context") == {"request_id": "abc123", "loggers": 1}


def test_error_level_is_preserved(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger="lib_devlogs")
    log_error("flush_failed", **make_event("billing", {"error": "disk full"}))
    record = caplog.records[-1]
    assert record.levelno == logging.ERROR
    assert getattr(record, "context")["logger_name"] == "billing"


def test_bind_request_id_clears_context() -> None:
    """Clearing the request ID should reset the context variable to None."""

    bind_request_id("temp01")
    bind_request_id(None)
    assert REQUEST_ID.get() is None


def test_make_event_without_payload() -> None:
    assert make_event("billing") == {"logger_name": "billing"}
