"""Log record resolution and body persistence.

Purpose
-------
Map logger names to durable records and append flushed lines to their bodies,
on top of any :class:`~lib_devlogs.application.ports.RecordStore` adapter.

Contents
--------
* :class:`LogStore` – get-or-create, append, and the operator operations
  (find, list, empty, delete).
* :func:`join_body` – the body concatenation rule.

System Role
-----------
``LogStore`` is the only writer of record bodies. It wraps unexpected adapter
exceptions into :class:`StorageLookupFailure` / :class:`StorageWriteFailure` so
the flusher can isolate failures per logger.

Concurrency
-----------
Get-or-create relies on the adapter's insert-if-absent: when ``create_record``
raises :class:`RecordConflict` the winning record is looked up again. Appends
are read-modify-write with last-writer-wins; two processes flushing the same
logger at the same instant may lose one batch.
"""

from __future__ import annotations

from typing import Sequence

from ..domain.errors import (
    RecordConflict,
    RecordNotFound,
    StorageError,
    StorageLookupFailure,
    StorageWriteFailure,
)
from ..domain.records import RECORD_TYPE, LogRecord, logger_slug, new_record_for
from ..observability import log_debug, log_info
from .ports import RecordStore


def join_body(body: str, lines: Sequence[str]) -> str:
    """Return *body* with *lines* appended.

    The separator is omitted while the body is still empty so a fresh record
    holds exactly the flushed lines.

    Examples
    --------
    >>> join_body("", ["a", "b"])
    'a\\nb'
    >>> join_body("old", ["a", "b"])
    'old\\na\\nb'
    >>> join_body("old", [])
    'old'
    """

    if not lines:
        return body
    addition = "\n".join(lines)
    if not body:
        return addition
    return f"{body}\n{addition}"


class LogStore:
    """Resolve logger names to records and persist their bodies."""

    def __init__(self, records: RecordStore, *, record_type: str = RECORD_TYPE) -> None:
        self._records = records
        self._record_type = record_type

    @property
    def records(self) -> RecordStore:
        return self._records

    def get_or_create_record(self, logger_name: str) -> LogRecord:
        """Return the record for *logger_name*, creating it on first use.

        Raises
        ------
        StorageLookupFailure
            When the adapter cannot look up or create the record.
        """

        slug = logger_slug(logger_name)
        try:
            existing = self._records.find_by_slug(slug, self._record_type)
            if existing is not None:
                return existing
            fields = new_record_for(logger_name, record_type=self._record_type)
            try:
                created = self._records.create_record(fields)
            except RecordConflict:
                winner = self._records.find_by_slug(slug, self._record_type)
                if winner is None:
                    raise StorageLookupFailure(f"Record {slug} conflicted but could not be found") from None
                log_debug("record_create_conflict", logger_name=logger_name, slug=slug)
                return winner
        except StorageError as exc:
            if isinstance(exc, StorageLookupFailure):
                raise
            raise StorageLookupFailure(f"Failed to resolve record {slug}: {exc}") from exc
        except Exception as exc:  # noqa: BLE001 - translate adapter failures into the domain taxonomy
            raise StorageLookupFailure(f"Failed to resolve record {slug}: {exc}") from exc
        log_info("record_created", logger_name=logger_name, slug=slug, record_id=created.id)
        return created

    def append_body(self, record: LogRecord, lines: Sequence[str]) -> LogRecord:
        """Append *lines* to *record* and return the record with its new body.

        Raises
        ------
        StorageWriteFailure
            When the adapter cannot store the new body.
        """

        body = join_body(record.body, lines)
        self._write_body(record, body)
        return record.with_body(body)

    def find_record(self, logger_name: str) -> LogRecord:
        """Return the stored record for *logger_name* without creating one.

        Raises
        ------
        RecordNotFound
            When no record exists for the logger.
        """

        slug = logger_slug(logger_name)
        try:
            record = self._records.find_by_slug(slug, self._record_type)
        except StorageError:
            raise
        except Exception as exc:  # noqa: BLE001 - translate adapter failures into the domain taxonomy
            raise StorageLookupFailure(f"Failed to look up record {slug}: {exc}") from exc
        if record is None:
            raise RecordNotFound(f"No log record for logger {logger_name!r} ({slug})")
        return record

    def list_records(self) -> list[LogRecord]:
        try:
            return list(self._records.list_records(self._record_type))
        except StorageError:
            raise
        except Exception as exc:  # noqa: BLE001 - translate adapter failures into the domain taxonomy
            raise StorageLookupFailure(f"Failed to list records: {exc}") from exc

    def empty_record(self, logger_name: str) -> LogRecord:
        """Reset the body of *logger_name*'s record to an empty string."""

        record = self.find_record(logger_name)
        self._write_body(record, "")
        log_info("record_emptied", logger_name=logger_name, slug=record.slug)
        return record.with_body("")

    def delete_record(self, logger_name: str) -> LogRecord:
        """Delete *logger_name*'s record and return what was removed."""

        record = self.find_record(logger_name)
        try:
            self._records.delete_record(record.id)
        except StorageError:
            raise
        except Exception as exc:  # noqa: BLE001 - translate adapter failures into the domain taxonomy
            raise StorageWriteFailure(f"Failed to delete record {record.slug}: {exc}") from exc
        log_info("record_deleted", logger_name=logger_name, slug=record.slug)
        return record

    def _write_body(self, record: LogRecord, body: str) -> None:
        try:
            self._records.update_record_body(record.id, body)
        except StorageError:
            raise
        except Exception as exc:  # noqa: BLE001 - translate adapter failures into the domain taxonomy
            raise StorageWriteFailure(f"Failed to write record {record.slug}: {exc}") from exc
