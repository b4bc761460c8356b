"""Human-readable structure dumps for arbitrary payloads.

Purpose
-------
Turn whatever a caller hands to ``log()`` into deterministic, indented text.
The layout follows the familiar ``print_r`` shape (``Array`` / ``Object``
blocks with ``[key] => value`` rows) because debug readers scan it quickly.

Contents
--------
* :func:`render_payload` – public entry point; never raises.
* :func:`_render` / :func:`_render_block` – recursive rendering helpers.

System Role
-----------
Called by :func:`lib_devlogs.domain.request.format_message` for every log call.
Payloads that cannot be rendered degrade to ``<unrenderable TypeName>`` so a
broken ``__repr__`` never costs the caller its request.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Set
from typing import Any, Iterable

_INDENT = 8
RECURSION_MARKER = "*RECURSION*"


def render_payload(payload: Any) -> str:
    """Render *payload* as deterministic indented text.

    Scalars render inline (``True`` as ``1``, ``False`` and ``None`` as an
    empty string); mappings, sequences, sets, dataclasses and plain objects
    render as blocks.

    Examples
    --------
    >>> print(render_payload({"id": 42, "tags": ["a", "b"]}), end="")
    Array
    (
        [id] => 42
        [tags] => Array
            (
                [0] => a
                [1] => b
            )
    <BLANKLINE>
    )
    >>> render_payload("plain text")
    'plain text'
    >>> render_payload(None)
    ''
    """

    try:
        return _render(payload, 0, frozenset())
    except Exception:  # noqa: BLE001 - rendering must never fail the log call
        return f"<unrenderable {type(payload).__name__}>"


def _render(value: Any, depth: int, seen: frozenset[int]) -> str:
    """Render *value* at nesting *depth*, tracking containers already on the path."""

    if value is None or isinstance(value, (bool, int, float, str, bytes)):
        return _scalar(value)
    if id(value) in seen:
        return RECURSION_MARKER
    path = seen | {id(value)}

    if isinstance(value, Mapping):
        return _render_block("Array", value.items(), depth, path)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        items = ((field.name, getattr(value, field.name)) for field in dataclasses.fields(value))
        return _render_block(f"{type(value).__name__} Object", items, depth, path)
    if isinstance(value, Set):
        return _render_block("Array", enumerate(sorted(value, key=repr)), depth, path)
    if isinstance(value, (list, tuple)):
        return _render_block("Array", enumerate(value), depth, path)
    if hasattr(value, "__dict__") and not isinstance(value, type):
        return _render_block(f"{type(value).__name__} Object", vars(value).items(), depth, path)
    return str(value)


def _render_block(label: str, items: Iterable[tuple[Any, Any]], depth: int, seen: frozenset[int]) -> str:
    """Render a labelled ``( [key] => value )`` block indented for *depth*."""

    pad = " " * (depth * _INDENT)
    parts = [f"{label}\n{pad}(\n"]
    for key, item in items:
        parts.append(f"{pad}    [{_scalar(key)}] => {_render(item, depth + 1, seen)}\n")
    parts.append(f"{pad})\n")
    return "".join(parts)


def _scalar(value: Any) -> str:
    """Render a scalar the way the dump format prints it."""

    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)
