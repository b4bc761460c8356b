from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from lib_devlogs.application.buffer import LogBuffer

ENTRIES = st.lists(st.tuples(st.sampled_from(["billing", "shipping", "auth"]), st.text(max_size=10)), max_size=20)


def test_empty_buffer() -> None:
    buffer = LogBuffer()
    assert not buffer
    assert len(buffer) == 0
    assert buffer.drain() == {}


@given(ENTRIES)
def test_drain_preserves_per_logger_order(entries) -> None:
    buffer = LogBuffer()
    for name, line in entries:
        buffer.append(name, line)

    drained = buffer.drain()

    for name in drained:
        assert drained[name] == [line for logger, line in entries if logger == name]
    assert list(drained) == list(dict.fromkeys(name for name, _ in entries))
    assert len(buffer) == 0 and buffer.drain() == {}


def test_loggers_lists_first_appearance_order() -> None:
    buffer = LogBuffer()
    buffer.append("shipping", "a")
    buffer.append("billing", "b")
    buffer.append("shipping", "c")
    assert list(buffer.loggers()) == ["shipping", "billing"]
    assert len(buffer) == 3
