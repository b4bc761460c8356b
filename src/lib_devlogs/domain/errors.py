"""Domain-level exception hierarchy.

Purpose
-------
Expose the error taxonomy shared by the storage adapters, the application
services, and consuming applications. The hierarchy lives in the domain layer
so adapters can raise it without depending on application code.

Contents
--------
* :class:`DevLogsError` – umbrella base class for every library failure.
* :class:`StorageError` – the record store could not complete an operation.
* :class:`StorageLookupFailure` / :class:`StorageWriteFailure` – read and write
  flavours of :class:`StorageError`.
* :class:`RecordConflict` – an insert-if-absent found the slug already taken.
* :class:`RecordNotFound` – an operator action targeted an unknown logger.
* :class:`InvalidSetting` / :class:`InvalidFormat` – configuration problems.

System Role
-----------
The flusher catches :class:`StorageError` per logger name so that one failing
record never prevents the other loggers from being flushed. Policy denials are
not errors: a denied log call is dropped silently.
"""

from __future__ import annotations


class DevLogsError(Exception):
    """Base type for all exceptions emitted by ``lib_devlogs``."""


class StorageError(DevLogsError):
    """Raised when the record store fails to look up or persist a record."""


class StorageLookupFailure(StorageError):
    """Raised when resolving or creating a log record fails.

    Typical Sources
    ---------------
    ``LogStore.get_or_create_record`` and adapter ``find_by_slug`` /
    ``create_record`` calls.
    """


class StorageWriteFailure(StorageError):
    """Raised when writing a record body (append, empty, delete) fails."""


class RecordConflict(StorageError):
    """Signals that ``create_record`` lost an insert-if-absent race.

    Why
    ----
    Adapters with a uniqueness guarantee report the conflict instead of
    creating a duplicate; ``LogStore`` then resolves the existing record.
    """


class RecordNotFound(DevLogsError):
    """Raised when an operator action names a logger without a stored record."""


class InvalidSetting(DevLogsError):
    """Raised when a configuration value cannot be interpreted."""


class InvalidFormat(InvalidSetting):
    """Raised when a configuration file or ``.env`` file cannot be parsed."""
