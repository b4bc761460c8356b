"""Settings value object for the devlogs engine.

Purpose
-------
Hold the handful of knobs the engine reads: the tri-state ``enabled``
override, the environment mode, the database location and the operator flag.
The object is immutable and built from a flat mapping produced by the layered
settings reader in :mod:`lib_devlogs.core`.

Contents
--------
* :data:`PRODUCTION` / :data:`DEFAULT_DATABASE` – defaults.
* :class:`Settings` – frozen dataclass with :meth:`Settings.from_mapping`.
* :func:`normalize_override` – map raw configuration values to the tri-state.
* :func:`normalize_environment` – canonical environment mode string.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final, Mapping, Union

from .errors import InvalidSetting

PRODUCTION: Final[str] = "production"
DEFAULT_DATABASE: Final[str] = "devlogs.sqlite3"
MEMORY_DATABASE: Final[str] = ":memory:"

_TRUE_WORDS: Final[frozenset[str]] = frozenset({"true", "yes", "on", "1"})
_FALSE_WORDS: Final[frozenset[str]] = frozenset({"false", "no", "off", "0"})

Override = Union[bool, str, None]
"""``None`` (unset), a boolean, or the single logger name allowed to log."""


def normalize_override(raw: Any) -> Override:
    """Interpret a configured ``enabled`` value as the tri-state override.

    Examples
    --------
    >>> normalize_override(None) is None
    True
    >>> normalize_override(""), normalize_override("off"), normalize_override(1)
    (False, False, True)
    >>> normalize_override(" billing ")
    'billing'
    """

    if raw is None or isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        # only 0 and 1 read as flags; other numbers are logger names
        return bool(raw) if raw in (0, 1) else str(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return False
        lowered = text.lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        return text
    raise InvalidSetting(f"Unsupported value for 'enabled': {raw!r}")


def normalize_environment(raw: Any) -> str:
    """Return the lower-cased environment mode, defaulting to production.

    >>> normalize_environment(" Staging "), normalize_environment(None)
    ('staging', 'production')
    """

    if raw is None:
        return PRODUCTION
    if not isinstance(raw, str):
        raise InvalidSetting(f"Unsupported value for 'environment': {raw!r}")
    return raw.strip().lower() or PRODUCTION


def _normalize_flag(name: str, raw: Any) -> bool:
    """Interpret a boolean setting, rejecting values that are not flags."""

    value = normalize_override(raw)
    if value is None:
        return False
    if isinstance(value, str):
        raise InvalidSetting(f"Unsupported value for {name!r}: {raw!r}")
    return value


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable engine settings.

    Attributes
    ----------
    enabled:
        Tri-state logging override (see :func:`normalize_override`).
    environment:
        Environment mode; only ``"production"`` restricts logging by default.
    database:
        SQLite database path used by the default record store, or
        ``":memory:"`` for a process-local store.
    operator:
        Whether the caller may view, empty and delete logs in production.
    """

    enabled: Override = None
    environment: str = PRODUCTION
    database: str = DEFAULT_DATABASE
    operator: bool = False
    extras: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def is_production(self) -> bool:
        """Return ``True`` when the environment mode is production."""

        return normalize_environment(self.environment) == PRODUCTION

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Settings":
        """Build settings from a flat mapping with case-insensitive keys.

        Unknown keys are kept in :attr:`extras` so callers can inspect them.

        Examples
        --------
        >>> Settings.from_mapping({"ENABLED": "billing", "environment": "local"})
        Settings(enabled='billing', environment='local', database='devlogs.sqlite3', operator=False)
        """

        lowered = {str(key).lower(): value for key, value in data.items()}
        database = lowered.pop("database", DEFAULT_DATABASE)
        if database is None or not str(database).strip():
            database = DEFAULT_DATABASE
        return cls(
            enabled=normalize_override(lowered.pop("enabled", None)),
            environment=normalize_environment(lowered.pop("environment", None)),
            database=str(database).strip(),
            operator=_normalize_flag("operator", lowered.pop("operator", None)),
            extras=lowered,
        )
