"""Diagnostic logging helpers for the devlogs engine itself.

Purpose
    Keep the library's own diagnostics (policy denials, flush outcomes, storage
    failures) predictable and tagged with the active request identifier without
    forcing host applications to adopt a specific logging backend.

Contents
    - ``REQUEST_ID``: context variable storing the active request identifier.
    - ``get_logger``: returns the shared package logger (quiet by default).
    - ``bind_request_id``: binds or clears the active request identifier.
    - ``log_debug`` / ``log_info`` / ``log_warning`` / ``log_error``: emit
      structured entries via a single private emitter.
    - ``make_event``: convenience builder for per-logger event payloads.

System Integration
    The flusher reports per-logger storage failures through :func:`log_error`,
    which is the fallback channel when persisting debug lines fails. Records
    written by the engine never pass through this module; it only narrates
    what the engine does.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Final, Mapping

REQUEST_ID: ContextVar[str | None] = ContextVar("lib_devlogs_request_id", default=None)
"""Request identifier of the unit of work running in the current context.

Why
    Diagnostics emitted while flushing should be attributable to the same
    request that produced the buffered lines.
"""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_devlogs")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Expose the package logger so applications may attach handlers."""

    return _LOGGER


def bind_request_id(request_id: str | None) -> None:
    """Bind or clear the active request identifier.

    Examples
    --------
    >>> bind_request_id('a1b2c3')
    >>> REQUEST_ID.get()
    'a1b2c3'
    >>> bind_request_id(None)
    >>> REQUEST_ID.get() is None
    True
    """

    REQUEST_ID.set(request_id)


def log_debug(message: str, **fields: Any) -> None:
    """Emit a structured debug log entry that includes the request context."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Emit a structured info log entry that includes the request context."""

    _emit(logging.INFO, message, fields)


def log_warning(message: str, **fields: Any) -> None:
    """Emit a structured warning log entry that includes the request context."""

    _emit(logging.WARNING, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Emit a structured error log entry that includes the request context."""

    _emit(logging.ERROR, message, fields)


def make_event(logger_name: str, payload: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Build a structured payload describing an event for *logger_name*.

    Examples
    --------
    >>> make_event('billing', {'lines': 2})
    {'logger_name': 'billing', 'lines': 2}
    """

    event: dict[str, Any] = {"logger_name": logger_name}
    if payload:
        event |= dict(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    """Send a log entry through the shared logger with contextual metadata."""

    _LOGGER.log(level, message, extra={"context": _with_request(fields)})


def _with_request(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Attach the current request identifier to the provided structured fields."""

    context = {"request_id": REQUEST_ID.get()}
    context.update(fields)
    return context
