"""End-of-lifecycle flush of buffered log lines.

Purpose
-------
Guarantee that every unit of work writes its buffered lines exactly once, at
its end, no matter how many loggers or lines were buffered.

State machine
-------------
``IDLE`` → ``ARMED`` on the first buffered line (the optional scheduler is
called once at this transition), ``ARMED`` → ``FLUSHED`` when :meth:`flush`
runs. A flush outside ``ARMED`` is a no-op; buffering after ``FLUSHED`` arms a
new cycle.

Contents
--------
* :class:`FlushState` – the three states.
* :class:`FlushReport` – per-logger outcome of one flush.
* :class:`LifecycleFlusher` – drains a :class:`LogBuffer` through a
  :class:`LogStore`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from ..domain.errors import StorageError
from ..observability import log_debug, log_error, log_info, make_event
from .buffer import LogBuffer
from .store import LogStore

Scheduler = Callable[[Callable[[], object]], object]
"""Callable that arranges for its argument to run at end-of-lifecycle (e.g. ``atexit.register``)."""


class FlushState(Enum):
    IDLE = "idle"
    ARMED = "armed"
    FLUSHED = "flushed"


@dataclass(slots=True)
class FlushReport:
    """Outcome of one flush.

    Attributes
    ----------
    written:
        Number of lines persisted per logger name.
    failed:
        Error message per logger name whose lines could not be persisted.
    """

    written: dict[str, int] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def total_lines(self) -> int:
        return sum(self.written.values())


class LifecycleFlusher:
    """Arm once per unit of work and flush buffered lines at its end."""

    def __init__(self, buffer: LogBuffer, store: LogStore, *, scheduler: Optional[Scheduler] = None) -> None:
        self._buffer = buffer
        self._store = store
        self._scheduler = scheduler
        self._state = FlushState.IDLE

    @property
    def state(self) -> FlushState:
        return self._state

    def arm(self) -> None:
        """Schedule the flush; calling again while armed changes nothing."""

        if self._state is FlushState.ARMED:
            return
        self._state = FlushState.ARMED
        if self._scheduler is not None:
            self._scheduler(self.flush)
        log_debug("flush_armed", scheduled=self._scheduler is not None)

    def flush(self) -> FlushReport:
        """Persist every buffered line and return the per-logger outcome.

        Storage failures are logged and recorded in the report; they never stop
        the remaining loggers from being flushed.
        """

        report = FlushReport()
        if self._state is not FlushState.ARMED:
            log_debug("flush_skipped", state=self._state.value)
            return report
        self._state = FlushState.FLUSHED

        for logger_name, lines in self._buffer.drain().items():
            try:
                record = self._store.get_or_create_record(logger_name)
                self._store.append_body(record, lines)
            except StorageError as exc:
                report.failed[logger_name] = str(exc)
                log_error("flush_failed", **make_event(logger_name, {"lines": len(lines), "error": str(exc)}))
                continue
            report.written[logger_name] = len(lines)

        log_info("flush_completed", loggers=len(report.written), lines=report.total_lines, failed=len(report.failed))
        return report
