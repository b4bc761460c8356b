"""SQLite record store.

Purpose
-------
Persist log records in a single SQLite table so several processes on one host
can share them. Implements :class:`lib_devlogs.application.ports.RecordStore`.

Key behaviours
--------------
* ``UNIQUE(record_type, slug)`` backs the insert-if-absent contract:
  ``INSERT ... ON CONFLICT DO NOTHING`` that affects no row raises
  :class:`~lib_devlogs.domain.errors.RecordConflict`.
* Every public method opens a short-lived connection (one per call) so the
  store is safe to share between threads.
* ``sqlite3.Error`` is translated into the domain storage errors.
"""

from __future__ import annotations

import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Iterator

from ...domain.errors import RecordConflict, StorageLookupFailure, StorageWriteFailure
from ...domain.records import LogRecord, NewRecord
from ...observability import log_debug, log_error

_SCHEMA = """
CREATE TABLE IF NOT EXISTS devlog_records (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    record_type TEXT NOT NULL,
    slug TEXT NOT NULL,
    title TEXT NOT NULL,
    body TEXT NOT NULL DEFAULT '',
    UNIQUE (record_type, slug)
)
"""

_COLUMNS = "id, record_type, slug, title, body"


class SqliteRecordStore:
    """Store records in the SQLite database at *path*."""

    def __init__(self, path: str | Path, *, timeout: float = 5.0) -> None:
        """Open (and if needed create) the database at *path*.

        Parameters
        ----------
        path:
            Database file. Parent directories are created on demand.
        timeout:
            Seconds SQLite waits on a locked database before failing.
        """

        self._path = Path(path)
        self._timeout = timeout
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect(StorageWriteFailure) as connection:
            connection.execute(_SCHEMA)
        log_debug("sqlite_store_ready", path=str(self._path))

    @property
    def path(self) -> Path:
        return self._path

    def find_by_slug(self, slug: str, record_type: str) -> LogRecord | None:
        with self._connect(StorageLookupFailure) as connection:
            row = connection.execute(
                f"SELECT {_COLUMNS} FROM devlog_records WHERE record_type = ? AND slug = ?",
                (record_type, slug),
            ).fetchone()
        return _to_record(row) if row is not None else None

    def create_record(self, fields: NewRecord) -> LogRecord:
        with self._connect(StorageLookupFailure) as connection:
            cursor = connection.execute(
                "INSERT INTO devlog_records (record_type, slug, title, body) VALUES (?, ?, ?, ?) "
                "ON CONFLICT (record_type, slug) DO NOTHING",
                (fields.record_type, fields.slug, fields.title, fields.body),
            )
            if cursor.rowcount == 0:
                raise RecordConflict(f"Record {fields.slug} already exists")
            record_id = cursor.lastrowid
        return LogRecord(
            id=str(record_id),
            record_type=fields.record_type,
            slug=fields.slug,
            title=fields.title,
            body=fields.body,
        )

    def update_record_body(self, record_id: str, body: str) -> None:
        with self._connect(StorageWriteFailure) as connection:
            cursor = connection.execute("UPDATE devlog_records SET body = ? WHERE id = ?", (body, int(record_id)))
            if cursor.rowcount == 0:
                raise StorageWriteFailure(f"Record {record_id} does not exist")

    def delete_record(self, record_id: str) -> None:
        with self._connect(StorageWriteFailure) as connection:
            cursor = connection.execute("DELETE FROM devlog_records WHERE id = ?", (int(record_id),))
            if cursor.rowcount == 0:
                raise StorageWriteFailure(f"Record {record_id} does not exist")

    def list_records(self, record_type: str) -> list[LogRecord]:
        with self._connect(StorageLookupFailure) as connection:
            rows = connection.execute(
                f"SELECT {_COLUMNS} FROM devlog_records WHERE record_type = ? ORDER BY title, id",
                (record_type,),
            ).fetchall()
        return [_to_record(row) for row in rows]

    @contextmanager
    def _connect(self, error_cls: type[Exception]) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside a transaction, translating ``sqlite3.Error`` into *error_cls*."""

        try:
            with closing(sqlite3.connect(self._path, timeout=self._timeout)) as connection:
                with connection:
                    yield connection
        except sqlite3.Error as exc:
            log_error("sqlite_error", path=str(self._path), error=str(exc))
            raise error_cls(f"SQLite operation failed on {self._path}: {exc}") from exc


def _to_record(row: tuple[object, ...]) -> LogRecord:
    record_id, record_type, slug, title, body = row
    return LogRecord(id=str(record_id), record_type=str(record_type), slug=str(slug), title=str(title), body=str(body))
