"""Public package surface of ``lib_devlogs``.

Request-scoped debug logging: lines logged during one unit of work are
buffered per logger name and appended to a durable record when the unit of
work ends.
"""

from __future__ import annotations

from .adapters.wsgi import DevLogsMiddleware
from .core import DevLogs, UnitOfWork, create_devlogs, current_unit, log, read_settings
from .domain.errors import (
    DevLogsError,
    InvalidFormat,
    InvalidSetting,
    RecordConflict,
    RecordNotFound,
    StorageError,
    StorageLookupFailure,
    StorageWriteFailure,
)
from .domain.records import LogRecord, logger_slug
from .domain.settings import Settings
from .observability import bind_request_id, get_logger

__all__ = [
    "DevLogs",
    "DevLogsError",
    "DevLogsMiddleware",
    "InvalidFormat",
    "InvalidSetting",
    "LogRecord",
    "RecordConflict",
    "RecordNotFound",
    "Settings",
    "StorageError",
    "StorageLookupFailure",
    "StorageWriteFailure",
    "UnitOfWork",
    "bind_request_id",
    "create_devlogs",
    "current_unit",
    "get_logger",
    "log",
    "logger_slug",
    "read_settings",
]
