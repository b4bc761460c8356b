"""End-to-end scenarios: log calls through a unit of work down to stored bodies.

These tests drive the public API (``create_devlogs``, ``begin``/``end``, the
module-level ``log``) the way a host application would, then read the stored
records back.
"""

from __future__ import annotations

from typing import Callable

import pytest

import lib_devlogs
from lib_devlogs import Settings, create_devlogs
from lib_devlogs.adapters.stores.memory import InMemoryRecordStore
from lib_devlogs.application.flusher import FlushState
from lib_devlogs.domain.errors import RecordNotFound
from lib_devlogs.domain.request import compute_request_id
from tests.support import FIXED_STAMP, CountingStore, StaticMode, fixed_clock

SNAPSHOT = {"REQUEST_URI": "/checkout", "REQUEST_TIME": 1}


def _engine(environment: str = "local", enabled: object = None, records=None):
    settings = Settings(environment=environment, enabled=enabled, database=":memory:")
    records = records if records is not None else InMemoryRecordStore()
    return create_devlogs(settings, records=records, clock=fixed_clock), records


def test_single_entry_is_the_sole_content() -> None:
    devlogs, _ = _engine()
    assert devlogs.can_log("billing") is True

    unit = devlogs.begin(SNAPSHOT)
    assert lib_devlogs.log("billing", "Order", {"id": 42}) is True
    unit.end()

    rid = compute_request_id(SNAPSHOT)
    record = devlogs.store.find_record("billing")
    assert record.slug == "logger-billing"
    assert record.body == f"[{FIXED_STAMP} {rid}] Order = Array\n(\n    [id] => 42\n)\n"


@pytest.mark.parametrize("count", [1, 3, 10])
def test_lines_are_appended_in_call_order(count: int) -> None:
    devlogs, _ = _engine()
    with devlogs.unit_of_work(SNAPSHOT) as unit:
        for index in range(count):
            unit.log("billing", f"Step {index}", index)

    rid = compute_request_id(SNAPSHOT)
    lines = devlogs.store.find_record("billing").body.split("\n")
    assert lines == [f"[{FIXED_STAMP} {rid}] Step {index} = {index}" for index in range(count)]


def test_production_with_false_override_stores_nothing() -> None:
    records = CountingStore()
    devlogs, _ = _engine("production", False, records)

    with devlogs.unit_of_work(SNAPSHOT) as unit:
        for name in ("billing", "shipping", "auth"):
            assert devlogs.can_log(name) is False
            assert unit.log(name, "Ignored", {"x": 1}) is False
        assert unit.pending == 0
        assert unit.state is FlushState.IDLE

    assert records.created == 0
    assert devlogs.store.list_records() == []


def test_production_with_named_override() -> None:
    devlogs, _ = _engine("production", "billing")
    assert devlogs.can_log("billing") is True
    assert devlogs.can_log("shipping") is False

    with devlogs.unit_of_work(SNAPSHOT) as unit:
        unit.log("billing", "Kept")
        unit.log("shipping", "Dropped")

    assert devlogs.store.find_record("billing").body.endswith("] Kept = ")
    with pytest.raises(RecordNotFound):
        devlogs.store.find_record("shipping")


def test_units_accumulate_into_one_record() -> None:
    devlogs, records = _engine(records=CountingStore())
    for uri in ("/a", "/b", "/c"):
        with devlogs.unit_of_work({"REQUEST_URI": uri}) as unit:
            unit.log("billing", "Hit", uri)

    body = devlogs.store.find_record("billing").body
    assert [line.rsplit(" = ", 1)[1] for line in body.split("\n")] == ["/a", "/b", "/c"]
    assert records.created == 1


def test_end_is_idempotent() -> None:
    devlogs, _ = _engine()
    unit = devlogs.begin(SNAPSHOT)
    unit.log("billing", "Once")
    first = unit.end()
    second = unit.end()
    assert first.written == {"billing": 1}
    assert second.written == {}
    assert len(devlogs.store.find_record("billing").body.split("\n")) == 1


def test_at_exit_registers_the_flush(monkeypatch: pytest.MonkeyPatch) -> None:
    registered: list[Callable[[], object]] = []
    monkeypatch.setattr("lib_devlogs.core.atexit.register", registered.append)
    devlogs, _ = _engine()

    unit = devlogs.begin(SNAPSHOT, at_exit=True)
    unit.log("billing", "One")
    unit.log("billing", "Two")
    assert len(registered) == 1

    registered[0]()
    assert len(devlogs.store.find_record("billing").body.split("\n")) == 2
    unit.unbind()


def test_log_without_unit_is_dropped() -> None:
    assert lib_devlogs.current_unit() is None
    assert lib_devlogs.log("billing", "Nowhere") is False


def test_mode_switch_between_calls() -> None:
    mode = StaticMode("local")
    devlogs = create_devlogs(
        Settings(database=":memory:"),
        records=InMemoryRecordStore(),
        environment=mode,
        clock=fixed_clock,
    )
    with devlogs.unit_of_work(SNAPSHOT) as unit:
        assert unit.log("billing", "Allowed") is True
        mode.mode = "production"
        assert unit.log("billing", "Denied") is False

    assert devlogs.store.find_record("billing").body.count("\n") == 0


def test_failing_logger_leaves_others_intact() -> None:
    devlogs, _ = _engine(records=CountingStore(fail_slugs={"logger-billing"}))
    unit = devlogs.begin(SNAPSHOT)
    unit.log("billing", "Lost")
    unit.log("shipping", "Kept")
    report = unit.end()

    assert set(report.failed) == {"billing"}
    assert devlogs.store.find_record("shipping").body.endswith("] Kept = ")
