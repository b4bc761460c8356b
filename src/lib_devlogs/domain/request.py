"""Request fingerprints and log line formatting.

Purpose
-------
Derive the short identifier that groups every line written during one unit of
work, and render the ``[timestamp request-id] message`` lines that end up in a
record body. Everything here is pure so it can be reused by any lifecycle
adapter (WSGI, scripts, tests).

Contents
--------
* :data:`REQUEST_ID_LENGTH` / :data:`TIMESTAMP_FORMAT` – format constants.
* :func:`compute_request_id` – 6-character MD5 fingerprint of a snapshot.
* :func:`format_message` – ``"<title> = <rendered payload>"``.
* :func:`format_line` – prefix a message with timestamp and request id.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime
from typing import Any, Final, Mapping

from .dump import RECURSION_MARKER, render_payload

REQUEST_ID_LENGTH: Final[int] = 6
TIMESTAMP_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"


def compute_request_id(env_snapshot: Mapping[str, Any] | None) -> str:
    """Return the request fingerprint for *env_snapshot*.

    Why
    ----
    Lines from the same request must be recognisable when several requests
    write to the same logger. The identifier is for humans only; collisions are
    acceptable.

    What
    ----
    Serialises the snapshot canonically (sorted keys, ``repr`` for values JSON
    cannot express) and returns the first six hex characters of its MD5 digest.

    Examples
    --------
    >>> compute_request_id({"REQUEST_URI": "/checkout", "REQUEST_TIME": 1})
    'be5717'
    >>> compute_request_id({"REQUEST_TIME": 1, "REQUEST_URI": "/checkout"})
    'be5717'
    >>> len(compute_request_id(None))
    6
    """

    canonical = _canonical(env_snapshot or {})
    digest = hashlib.md5(canonical.encode("utf-8")).hexdigest()
    return digest[:REQUEST_ID_LENGTH]


def format_message(title: str, payload: Any) -> str:
    """Join *title* and the rendered *payload* the way every entry is written.

    Examples
    --------
    >>> format_message("Order", {"id": 42})
    'Order = Array\\n(\\n    [id] => 42\\n)\\n'
    """

    return f"{title} = {render_payload(payload)}"


def format_line(message: str, request_id: str, moment: datetime) -> str:
    """Prefix *message* with the second-precision timestamp and request id.

    Examples
    --------
    >>> format_line("hello", "abc123", datetime(2024, 5, 1, 9, 30, 5))
    '[2024-05-01 09:30:05 abc123] hello'
    """

    return f"[{moment.strftime(TIMESTAMP_FORMAT)} {request_id}] {message}"


def _canonical(snapshot: Mapping[str, Any]) -> str:
    """Serialise *snapshot* with stable key order and string keys at every depth."""

    return json.dumps(_normalise(snapshot, frozenset()), sort_keys=True, default=repr, separators=(",", ":"))


def _normalise(value: Any, seen: frozenset[int]) -> Any:
    """Return *value* with mapping keys turned into strings and cycles cut.

    >>> _normalise({"headers": {1: "a", "x": ("b",)}}, frozenset())
    {'headers': {'1': 'a', 'x': ['b']}}
    """

    if isinstance(value, (Mapping, list, tuple)):
        if id(value) in seen:
            return RECURSION_MARKER
        seen = seen | {id(value)}
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda item: (str(item[0]), type(item[0]).__name__))
        return {str(key): _normalise(item, seen) for key, item in items}
    if isinstance(value, (list, tuple)):
        return [_normalise(item, seen) for item in value]
    return value
