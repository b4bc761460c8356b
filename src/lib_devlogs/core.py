"""Composition root for ``lib_devlogs``.

Purpose
-------
Wire the access policy, buffer, record store and flusher into the objects
applications actually use, and read settings from their layered sources.

Contents
--------
* :func:`read_settings` – defaults → settings file → ``.env`` → environment.
* :func:`create_devlogs` – build a :class:`DevLogs` from :class:`Settings`.
* :class:`DevLogs` – process-wide engine; starts units of work.
* :class:`UnitOfWork` – one request or script run: request id, buffer, flusher.
* :func:`log` / :func:`current_unit` – ingestion through the unit of work bound
  to the current context.

System Role
-----------
A unit of work is begun by a lifecycle adapter (the WSGI middleware, the
``unit_of_work`` context manager, or ``begin(at_exit=True)`` for scripts),
receives any number of ``log`` calls, and is ended exactly once, which flushes
everything it buffered.
"""

from __future__ import annotations

import atexit
import os
from contextlib import contextmanager
from contextvars import ContextVar, Token
from datetime import datetime
from typing import Any, Callable, Iterator, Mapping, Optional

from .adapters.dotenv.default import DefaultDotEnvLoader
from .adapters.env.default import DefaultEnvLoader, StaticEnvironment, default_env_prefix
from .adapters.file_loaders.structured import loader_for
from .adapters.stores.memory import InMemoryRecordStore
from .adapters.stores.sqlite import SqliteRecordStore
from .application.buffer import LogBuffer
from .application.flusher import FlushReport, FlushState, LifecycleFlusher, Scheduler
from .application.policy import AccessPolicy, DecisionHook
from .application.ports import EnvironmentSource, RecordStore
from .application.store import LogStore
from .domain.settings import MEMORY_DATABASE, Settings
from .domain.request import compute_request_id, format_line, format_message
from .observability import bind_request_id, log_debug, log_info

Clock = Callable[[], datetime]

_CURRENT_UNIT: ContextVar[Optional["UnitOfWork"]] = ContextVar("lib_devlogs_unit_of_work", default=None)


def read_settings(
    *,
    start_dir: str | None = None,
    environ: Mapping[str, str] | None = None,
    config_file: str | None = None,
    slug: str = "devlogs",
) -> Settings:
    """Return settings merged from every layer, highest precedence last.

    Layers
    ------
    1. :class:`Settings` defaults.
    2. *config_file* (TOML/JSON/YAML), when given.
    3. The first ``.env`` found walking up from *start_dir* (``DEVLOGS_*`` keys).
    4. Process environment variables (``DEVLOGS_*``).

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> settings = read_settings(start_dir=tmp.name, environ={"DEVLOGS_ENABLED": "billing"})
    >>> settings.enabled, settings.environment
    ('billing', 'production')
    >>> tmp.cleanup()
    """

    prefix = default_env_prefix(slug)
    merged: dict[str, object] = {}
    if config_file:
        merged.update(loader_for(config_file).load(config_file))
    dotenv_loader = DefaultDotEnvLoader()
    merged.update(dotenv_loader.load(prefix, start_dir))
    merged.update(DefaultEnvLoader(environ=environ).load(prefix))
    settings = Settings.from_mapping(merged)
    log_debug(
        "settings_resolved",
        environment=settings.environment,
        enabled=settings.enabled,
        dotenv=dotenv_loader.last_loaded_path,
        config_file=config_file,
    )
    return settings


def create_devlogs(
    settings: Settings | None = None,
    *,
    records: RecordStore | None = None,
    environment: EnvironmentSource | None = None,
    hooks: tuple[DecisionHook, ...] = (),
    clock: Clock | None = None,
) -> "DevLogs":
    """Build a :class:`DevLogs` engine from *settings*.

    The SQLite store at ``settings.database`` is used unless *records* is given
    or the database is ``":memory:"``. The environment mode comes from the
    settings unless an *environment* source is injected.
    """

    settings = settings or read_settings()
    if records is None:
        records = InMemoryRecordStore() if settings.database == MEMORY_DATABASE else SqliteRecordStore(settings.database)
    policy = AccessPolicy(
        environment or StaticEnvironment(settings.environment),
        override=settings.enabled,
        hooks=hooks,
    )
    return DevLogs(records, policy, clock=clock)


class DevLogs:
    """Process-wide engine handing out units of work."""

    def __init__(self, records: RecordStore, policy: AccessPolicy, *, clock: Clock | None = None) -> None:
        self._store = LogStore(records)
        self._policy = policy
        self._clock = clock or datetime.now

    @property
    def store(self) -> LogStore:
        return self._store

    @property
    def policy(self) -> AccessPolicy:
        return self._policy

    def can_log(self, logger_name: str) -> bool:
        return self._policy.can_log(logger_name)

    def begin(
        self,
        env_snapshot: Mapping[str, Any] | None = None,
        *,
        at_exit: bool = False,
        scheduler: Scheduler | None = None,
    ) -> "UnitOfWork":
        """Start a unit of work and bind it to the current context.

        Parameters
        ----------
        env_snapshot:
            Request metadata the request id is derived from. Defaults to
            :data:`os.environ` (script mode).
        at_exit:
            Arm the flush through :func:`atexit.register` so a script does not
            need to call :meth:`UnitOfWork.end` itself.
        scheduler:
            Custom scheduler receiving the flush callback on the first line.
        """

        snapshot = os.environ if env_snapshot is None else env_snapshot
        if at_exit and scheduler is None:
            scheduler = atexit.register
        unit = UnitOfWork(
            request_id=compute_request_id(snapshot),
            policy=self._policy,
            store=self._store,
            clock=self._clock,
            scheduler=scheduler,
        )
        unit.bind()
        log_debug("unit_of_work_started", at_exit=at_exit)
        return unit

    @contextmanager
    def unit_of_work(self, env_snapshot: Mapping[str, Any] | None = None) -> Iterator["UnitOfWork"]:
        """Run a block as one unit of work, flushing when the block exits.

        Examples
        --------
        >>> devlogs = create_devlogs(Settings(environment="local", database=":memory:"))
        >>> with devlogs.unit_of_work({"REQUEST_URI": "/"}) as unit:
        ...     unit.log("billing", "Order", {"id": 42})
        True
        >>> devlogs.store.find_record("billing").body.splitlines()[1:]
        ['(', '    [id] => 42', ')']
        """

        unit = self.begin(env_snapshot)
        try:
            yield unit
        finally:
            unit.end()


class UnitOfWork:
    """Buffer of one request or script run, flushed once when it ends."""

    def __init__(
        self,
        *,
        request_id: str,
        policy: AccessPolicy,
        store: LogStore,
        clock: Clock,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.request_id = request_id
        self._policy = policy
        self._clock = clock
        self._buffer = LogBuffer()
        self._flusher = LifecycleFlusher(self._buffer, store, scheduler=scheduler)
        self._token: Token[Optional[UnitOfWork]] | None = None

    @property
    def state(self) -> FlushState:
        return self._flusher.state

    @property
    def pending(self) -> int:
        """Number of lines buffered and not yet flushed."""

        return len(self._buffer)

    def log(self, logger_name: str, title: str, payload: Any = None) -> bool:
        """Buffer ``"<title> = <payload dump>"`` for *logger_name*.

        Returns ``False`` when the access policy denies the logger; the call is
        then dropped without error.
        """

        if not self._policy.can_log(logger_name):
            log_debug("log_denied", logger_name=logger_name)
            return False
        line = format_line(format_message(title, payload), self.request_id, self._clock())
        self._buffer.append(logger_name, line)
        self._flusher.arm()
        return True

    def end(self) -> FlushReport:
        """Flush the buffered lines once and unbind the unit of work."""

        report = self._flusher.flush()
        self.unbind()
        if report.written or report.failed:
            log_info("unit_of_work_ended", loggers=sorted(report.written), failed=sorted(report.failed))
        return report

    def bind(self) -> None:
        """Make this unit the target of :func:`lib_devlogs.log` in the current context."""

        self._token = _CURRENT_UNIT.set(self)
        bind_request_id(self.request_id)

    def unbind(self) -> None:
        if self._token is None:
            return
        try:
            _CURRENT_UNIT.reset(self._token)
        except ValueError:
            # Token created in another context (e.g. flushed from atexit).
            _CURRENT_UNIT.set(None)
        self._token = None
        bind_request_id(None)


def current_unit() -> UnitOfWork | None:
    """Return the unit of work bound to the current context, if any."""

    return _CURRENT_UNIT.get()


def log(logger_name: str, title: str, payload: Any = None) -> bool:
    """Log through the unit of work bound to the current context.

    Calls made outside a unit of work are dropped and return ``False``.
    """

    unit = _CURRENT_UNIT.get()
    if unit is None:
        log_debug("log_without_unit_of_work", logger_name=logger_name)
        return False
    return unit.log(logger_name, title, payload)


__all__ = [
    "DevLogs",
    "UnitOfWork",
    "create_devlogs",
    "current_unit",
    "log",
    "read_settings",
]
