"""Application-layer ports describing collaborator responsibilities.

Purpose
-------
Define the structural contracts the engine needs from the hosting
application so the services in this layer never depend on a concrete storage
backend or environment probe.

Contents
--------
* :class:`RecordStore` – the persistence operations log records rely on.
* :class:`EnvironmentSource` – reports the environment mode the policy reads.

System Role
-----------
Adapters under :mod:`lib_devlogs.adapters` implement these protocols; the
contract tests in ``tests/adapters`` keep them honest.
"""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

from ..domain.records import LogRecord, NewRecord


@runtime_checkable
class RecordStore(Protocol):
    """Persist log records keyed by ``(record_type, slug)``.

    Why
    ----
    The engine only needs a handful of document operations; everything else
    about the hosting storage stays outside the library.

    Methods
    -------
    :meth:`find_by_slug`
        Return the record stored under *slug* or ``None``.
    :meth:`create_record`
        Insert a record if its slug is free, raising
        :class:`~lib_devlogs.domain.errors.RecordConflict` otherwise.
    :meth:`update_record_body`
        Replace the body of an existing record.
    :meth:`delete_record`
        Remove a record entirely.
    :meth:`list_records`
        Enumerate records of one type, ordered by title.
    """

    def find_by_slug(self, slug: str, record_type: str) -> LogRecord | None:
        """Return the record stored under *slug* within *record_type*."""

    def create_record(self, fields: NewRecord) -> LogRecord:
        """Insert-if-absent; raise ``RecordConflict`` when the slug exists."""

    def update_record_body(self, record_id: str, body: str) -> None:
        """Overwrite the body of record *record_id*."""

    def delete_record(self, record_id: str) -> None:
        """Delete record *record_id*."""

    def list_records(self, record_type: str) -> Iterable[LogRecord]:
        """Yield every record of *record_type*."""


@runtime_checkable
class EnvironmentSource(Protocol):
    """Report the environment mode of the running application.

    Why
    ----
    Hosts disagree on where the mode lives (a setting, an environment
    variable, a framework helper); the access policy asks through this port.
    """

    def environment_type(self) -> str:
        """Return the mode, e.g. ``"production"``, ``"staging"`` or ``"local"``."""
