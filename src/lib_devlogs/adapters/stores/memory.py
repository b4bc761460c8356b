"""Process-local record store.

Purpose
-------
Implement :class:`lib_devlogs.application.ports.RecordStore` with a dictionary
guarded by a lock. Used for ``database=":memory:"`` settings, tests, and hosts
that only want logs for the lifetime of the process.
"""

from __future__ import annotations

import itertools
import threading
from typing import Iterable

from ...domain.errors import RecordConflict, StorageWriteFailure
from ...domain.records import LogRecord, NewRecord
from ...observability import log_debug


class InMemoryRecordStore:
    """Keep records in memory with an atomic insert-if-absent.

    Examples
    --------
    >>> store = InMemoryRecordStore()
    >>> record = store.create_record(NewRecord("devlogs", "logger-demo", "Logger: demo"))
    >>> store.find_by_slug("logger-demo", "devlogs") == record
    True
    """

    def __init__(self) -> None:
        self._records: dict[str, LogRecord] = {}
        self._index: dict[tuple[str, str], str] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def find_by_slug(self, slug: str, record_type: str) -> LogRecord | None:
        with self._lock:
            record_id = self._index.get((record_type, slug))
            return self._records.get(record_id) if record_id is not None else None

    def create_record(self, fields: NewRecord) -> LogRecord:
        key = (fields.record_type, fields.slug)
        with self._lock:
            if key in self._index:
                raise RecordConflict(f"Record {fields.slug} already exists")
            record = LogRecord(
                id=str(next(self._ids)),
                record_type=fields.record_type,
                slug=fields.slug,
                title=fields.title,
                body=fields.body,
            )
            self._records[record.id] = record
            self._index[key] = record.id
        log_debug("memory_record_created", slug=fields.slug, record_id=record.id)
        return record

    def update_record_body(self, record_id: str, body: str) -> None:
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise StorageWriteFailure(f"Record {record_id} does not exist")
            self._records[record_id] = record.with_body(body)

    def delete_record(self, record_id: str) -> None:
        with self._lock:
            record = self._records.pop(record_id, None)
            if record is None:
                raise StorageWriteFailure(f"Record {record_id} does not exist")
            self._index.pop((record.record_type, record.slug), None)

    def list_records(self, record_type: str) -> Iterable[LogRecord]:
        with self._lock:
            matching = [record for record in self._records.values() if record.record_type == record_type]
        return sorted(matching, key=lambda record: record.title)
