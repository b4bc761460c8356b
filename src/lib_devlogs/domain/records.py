"""Log record value objects and logger-name normalisation.

Purpose
-------
Describe the durable entity a logger name maps to, and the deterministic
derivation of its lookup slug and title. No I/O happens here.

Contents
--------
* :data:`RECORD_TYPE` – namespace every devlogs record is stored under.
* :class:`LogRecord` – a stored record as returned by a record store.
* :class:`NewRecord` – the fields passed to ``RecordStore.create_record``.
* :func:`logger_slug` / :func:`logger_title` / :func:`new_record_for`.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, replace
from typing import Final

RECORD_TYPE: Final[str] = "devlogs"
SLUG_PREFIX: Final[str] = "logger_"
TITLE_PREFIX: Final[str] = "Logger: "

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True, slots=True)
class LogRecord:
    """A persisted log record.

    Attributes
    ----------
    id:
        Opaque identifier assigned by the record store.
    record_type:
        Namespace of the record (always :data:`RECORD_TYPE` for this library).
    slug:
        Lookup key derived from the logger name (see :func:`logger_slug`).
    title:
        Human readable title, ``"Logger: <name>"``.
    body:
        Newline-joined log lines accumulated so far.
    """

    id: str
    record_type: str
    slug: str
    title: str
    body: str = ""

    def with_body(self, body: str) -> "LogRecord":
        """Return a copy of the record carrying *body*."""

        return replace(self, body=body)

    @property
    def filename(self) -> str:
        """Download file name for the record, ``<slug>.log``."""

        return f"{self.slug}.log"


@dataclass(frozen=True, slots=True)
class NewRecord:
    """Fields required to create a record."""

    record_type: str
    slug: str
    title: str
    body: str = ""


def logger_slug(logger_name: str) -> str:
    """Return the lookup slug for *logger_name*.

    Accents are folded, everything is lower-cased and every run of characters
    outside ``[a-z0-9]`` collapses to a single hyphen.

    Examples
    --------
    >>> logger_slug("billing")
    'logger-billing'
    >>> logger_slug("Café  Orders / EU")
    'logger-cafe-orders-eu'
    """

    folded = unicodedata.normalize("NFKD", SLUG_PREFIX + logger_name)
    ascii_only = folded.encode("ascii", "ignore").decode("ascii").lower()
    return _NON_ALNUM.sub("-", ascii_only).strip("-")


def logger_title(logger_name: str) -> str:
    """Return the record title for *logger_name*.

    >>> logger_title("billing")
    'Logger: billing'
    """

    return f"{TITLE_PREFIX}{logger_name}"


def new_record_for(logger_name: str, *, record_type: str = RECORD_TYPE) -> NewRecord:
    """Build the :class:`NewRecord` created on the first flush of *logger_name*."""

    return NewRecord(record_type=record_type, slug=logger_slug(logger_name), title=logger_title(logger_name))
