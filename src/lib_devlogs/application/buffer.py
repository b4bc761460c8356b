"""In-memory buffer of formatted lines, keyed by logger name."""

from __future__ import annotations

from typing import Iterator


class LogBuffer:
    """Ordered, append-only line buffer owned by one unit of work.

    Lines are kept per logger name in the order they were appended; loggers
    are kept in the order they first appeared. Nothing here is persisted.

    Examples
    --------
    >>> buffer = LogBuffer()
    >>> buffer.append("billing", "one")
    >>> buffer.append("shipping", "two")
    >>> buffer.append("billing", "three")
    >>> buffer.drain()
    {'billing': ['one', 'three'], 'shipping': ['two']}
    >>> len(buffer)
    0
    """

    def __init__(self) -> None:
        self._lines: dict[str, list[str]] = {}

    def append(self, logger_name: str, line: str) -> None:
        self._lines.setdefault(logger_name, []).append(line)

    def drain(self) -> dict[str, list[str]]:
        """Return every buffered line and leave the buffer empty."""

        drained, self._lines = self._lines, {}
        return drained

    def loggers(self) -> Iterator[str]:
        return iter(list(self._lines))

    def __len__(self) -> int:
        return sum(len(lines) for lines in self._lines.values())

    def __bool__(self) -> bool:
        return bool(self._lines)
