"""Shared test doubles for the devlogs test-suite.

The helpers keep clocks deterministic and let tests inject storage failures or
get-or-create races without touching real databases.
"""

from __future__ import annotations

from datetime import datetime

from lib_devlogs.adapters.stores.memory import InMemoryRecordStore
from lib_devlogs.domain.errors import StorageWriteFailure
from lib_devlogs.domain.records import LogRecord, NewRecord

FIXED_MOMENT = datetime(2024, 5, 1, 12, 30, 45)
FIXED_STAMP = "2024-05-01 12:30:45"


def fixed_clock() -> datetime:
    """Clock used wherever timestamps must be predictable."""

    return FIXED_MOMENT


class StaticMode:
    """Minimal EnvironmentSource whose mode can be flipped by tests."""

    def __init__(self, mode: str) -> None:
        self.mode = mode

    def environment_type(self) -> str:
        return self.mode


class CountingStore(InMemoryRecordStore):
    """In-memory store that counts creations and can fail selected slugs."""

    def __init__(self, *, fail_slugs: set[str] | None = None, broken_with: type[Exception] = StorageWriteFailure) -> None:
        super().__init__()
        self.fail_slugs = set(fail_slugs or ())
        self.broken_with = broken_with
        self.created = 0

    def create_record(self, fields: NewRecord) -> LogRecord:
        record = super().create_record(fields)
        self.created += 1
        return record

    def update_record_body(self, record_id: str, body: str) -> None:
        for record in self.list_records("devlogs"):
            if record.id == record_id and record.slug in self.fail_slugs:
                raise self.broken_with(f"refusing to write {record.slug}")
        super().update_record_body(record_id, body)


class RacingStore(InMemoryRecordStore):
    """Store whose first lookup misses a record another writer just created."""

    def __init__(self) -> None:
        super().__init__()
        self.lookups = 0

    def find_by_slug(self, slug: str, record_type: str) -> LogRecord | None:
        self.lookups += 1
        if self.lookups == 1:
            # another unit of work wins the insert between our lookup and create
            super().create_record(NewRecord(record_type=record_type, slug=slug, title="Logger: winner"))
            return None
        return super().find_by_slug(slug, record_type)
