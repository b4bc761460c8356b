"""`.env` adapter.

Purpose
-------
Read ``DEVLOGS_*`` settings from the first ``.env`` file found while walking
upwards from a start directory. Sits between the optional settings file and
the process environment in :func:`lib_devlogs.core.read_settings`.

Contents
--------
* :class:`DefaultDotEnvLoader` – entry point; remembers the loaded path.
* Helper functions (`_iter_candidates`, `_parse_dotenv`, `_strip_quotes`).
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from ...domain.errors import InvalidFormat
from ...observability import log_debug, log_error


class DefaultDotEnvLoader:
    """Load prefixed settings from a dotenv file."""

    def __init__(self, *, extras: Iterable[str] | None = None) -> None:
        """Initialise the loader with optional *extras* searched after the upward walk."""

        self._extras = [Path(p) for p in extras or []]
        self.last_loaded_path: str | None = None

    def load(self, prefix: str, start_dir: str | None = None) -> dict[str, str]:
        """Return the prefixed keys of the first dotenv file in the search order.

        Keys lose *prefix* and are lower-cased; values stay strings.

        Side Effects
        ------------
        Sets :attr:`last_loaded_path` and emits structured logging events.

        Examples
        --------
        >>> from tempfile import TemporaryDirectory
        >>> tmp = TemporaryDirectory()
        >>> path = Path(tmp.name) / '.env'
        >>> _ = path.write_text('DEVLOGS_ENABLED="billing"\\nOTHER=1\\n', encoding='utf-8')
        >>> loader = DefaultDotEnvLoader()
        >>> loader.load('DEVLOGS', tmp.name)
        {'enabled': 'billing'}
        >>> loader.last_loaded_path == str(path)
        True
        >>> tmp.cleanup()
        """

        candidates = list(_iter_candidates(start_dir)) + self._extras
        self.last_loaded_path = None
        for candidate in candidates:
            if candidate.is_file():
                self.last_loaded_path = str(candidate)
                data = _select_prefixed(_parse_dotenv(candidate), prefix)
                log_debug("dotenv_loaded", layer="dotenv", path=self.last_loaded_path, keys=sorted(data))
                return data
        log_debug("dotenv_not_found", layer="dotenv", path=None)
        return {}


def _iter_candidates(start_dir: str | None) -> Iterable[Path]:
    """Yield candidate dotenv paths walking from ``start_dir`` to filesystem root."""

    base = Path(start_dir) if start_dir else Path.cwd()
    for directory in [base, *base.parents]:
        yield directory / ".env"


def _select_prefixed(entries: dict[str, str], prefix: str) -> dict[str, str]:
    """Keep entries whose key starts with ``<prefix>_``, stripped and lower-cased."""

    marker = f"{prefix}_" if prefix and not prefix.endswith("_") else prefix
    selected: dict[str, str] = {}
    for key, value in entries.items():
        if marker and not key.upper().startswith(marker.upper()):
            continue
        stripped = key[len(marker) :]
        if stripped:
            selected[stripped.lower()] = value
    return selected


def _parse_dotenv(path: Path) -> dict[str, str]:
    """Parse ``path`` into a flat dictionary, raising ``InvalidFormat`` on malformed lines."""

    result: dict[str, str] = {}
    with path.open("r", encoding="utf-8") as handle:
        for line_number, raw_line in enumerate(handle, start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[len("export ") :].lstrip()
            if "=" not in line:
                log_error("dotenv_invalid_line", layer="dotenv", path=str(path), line=line_number)
                raise InvalidFormat(f"Malformed line {line_number} in {path}")
            key, value = line.split("=", 1)
            result[key.strip()] = _strip_quotes(value.strip())
    return result


def _strip_quotes(value: str) -> str:
    """Trim surrounding quotes and inline comments from ``value``.

    Examples
    --------
    >>> _strip_quotes('"billing"')
    'billing'
    >>> _strip_quotes("local # comment")
    'local'
    """

    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    if value.startswith("#"):
        return ""
    if " #" in value:
        return value.split(" #", 1)[0].strip()
    return value
