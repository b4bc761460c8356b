"""Environment variable adapters.

Purpose
-------
Read devlogs settings and the environment mode from process environment
variables. Settings variables share the ``DEVLOGS_`` prefix
(``DEVLOGS_ENABLED``, ``DEVLOGS_ENVIRONMENT`` …) and form the highest
precedence layer of :func:`lib_devlogs.core.read_settings`.

Key behaviours
--------------
* Enforces a configurable prefix (``default_env_prefix``) so only relevant keys
  are captured.
* Performs light type coercion for common scalar types (bools, ints, floats,
  ``null``/``none``).
* Provides two :class:`~lib_devlogs.application.ports.EnvironmentSource`
  implementations: a fixed mode and a live lookup of an environment variable.
"""

from __future__ import annotations

import os
from typing import Final, Mapping

from ...domain.settings import PRODUCTION, normalize_environment
from ...observability import log_debug

DEFAULT_SLUG: Final[str] = "devlogs"
ENVIRONMENT_VARIABLE: Final[str] = "DEVLOGS_ENVIRONMENT"
RAW_KEYS: Final[frozenset[str]] = frozenset({"enabled", "environment"})
"""Keys kept as text: they may name a logger or a mode that looks numeric."""


def default_env_prefix(slug: str = DEFAULT_SLUG) -> str:
    """Return the canonical environment prefix for *slug*.

    Examples
    --------
    >>> default_env_prefix('dev-logs')
    'DEV_LOGS'
    """

    return slug.replace("-", "_").upper()


class DefaultEnvLoader:
    """Load environment variables that belong to the settings namespace."""

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialise the loader with a specific ``environ`` mapping for testability.

        Parameters
        ----------
        environ:
            Mapping to read from. Defaults to :data:`os.environ`.
        """

        self._environ = os.environ if environ is None else environ

    def load(self, prefix: str) -> dict[str, object]:
        """Return a flat mapping of variables that start with *prefix*.

        Keys lose the prefix and are lower-cased; values are coerced with
        :func:`_coerce` except for :data:`RAW_KEYS`, which stay strings like
        their ``.env`` counterparts.

        Examples
        --------
        >>> env = {'DEVLOGS_ENABLED': 'billing', 'DEVLOGS_OPERATOR': 'true', 'HOME': '/root'}
        >>> DefaultEnvLoader(environ=env).load('DEVLOGS')
        {'enabled': 'billing', 'operator': True}
        >>> DefaultEnvLoader(environ={'DEVLOGS_ENABLED': '2024'}).load('DEVLOGS')
        {'enabled': '2024'}
        """

        prefix = f"{prefix}_" if prefix and not prefix.endswith("_") else prefix
        collected: dict[str, object] = {}
        for key, value in self._environ.items():
            if prefix and not key.startswith(prefix):
                continue
            stripped = key[len(prefix) :] if prefix else key
            if not stripped:
                continue
            name = stripped.lower()
            collected[name] = value if name in RAW_KEYS else _coerce(value)
        log_debug("env_variables_loaded", layer="env", keys=sorted(collected))
        return collected


class StaticEnvironment:
    """Environment source that always reports the same mode.

    >>> StaticEnvironment("Local").environment_type()
    'local'
    """

    def __init__(self, mode: str = PRODUCTION) -> None:
        self._mode = normalize_environment(mode)

    def environment_type(self) -> str:
        return self._mode


class EnvironmentVariableSource:
    """Environment source reading a variable on every call.

    A missing or empty variable means production.

    >>> EnvironmentVariableSource(environ={}).environment_type()
    'production'
    >>> EnvironmentVariableSource(environ={'DEVLOGS_ENVIRONMENT': 'staging'}).environment_type()
    'staging'
    """

    def __init__(self, variable: str = ENVIRONMENT_VARIABLE, *, environ: Mapping[str, str] | None = None) -> None:
        self._variable = variable
        self._environ = os.environ if environ is None else environ

    def environment_type(self) -> str:
        return normalize_environment(self._environ.get(self._variable))


def _coerce(value: str) -> object:
    """Coerce textual environment values to Python primitives where possible.

    Examples
    --------
    >>> _coerce('true'), _coerce('10'), _coerce('3.5'), _coerce('hello'), _coerce('none')
    (True, 10, 3.5, 'hello', None)
    """

    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    try:
        if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
            return int(value)
        return float(value)
    except ValueError:
        return value
