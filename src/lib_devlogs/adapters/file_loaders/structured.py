"""Structured settings file loaders.

Purpose
-------
Read an optional settings file (TOML, JSON or YAML) into the flat mapping the
settings reader expects. A file may either hold the keys at top level or
inside a ``devlogs`` table/section.

Contents
--------
* :class:`BaseFileLoader` – shared helpers for reading files and validating
  mapping outputs.
* :class:`TOMLFileLoader` / :class:`JSONFileLoader` / :class:`YAMLFileLoader`.
* :func:`loader_for` – pick the loader from a path suffix.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Mapping

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

import yaml

from ...domain.errors import InvalidFormat, InvalidSetting
from ...observability import log_debug, log_error

SECTION = "devlogs"


class BaseFileLoader(ABC):
    """Common utilities shared by the structured file loaders."""

    format_name = "file"

    def load(self, path: str) -> Mapping[str, object]:
        """Return the settings mapping stored in *path*."""

        data = self._parse(self._read(path), path)
        result = self._select_section(self._ensure_mapping(data, path=path), path=path)
        log_debug("settings_file_loaded", layer="file", path=path, format=self.format_name, keys=sorted(result))
        return result

    @abstractmethod
    def _parse(self, payload: bytes, path: str) -> object:
        """Decode *payload*, raising :class:`InvalidFormat` on syntax errors."""

    def _read(self, path: str) -> bytes:
        """Read *path* as bytes, raising :class:`InvalidSetting` when the file is missing."""

        file_path = Path(path)
        if not file_path.is_file():
            raise InvalidSetting(f"Settings file not found: {path}")
        return file_path.read_bytes()

    def _invalid(self, path: str, exc: Exception) -> InvalidFormat:
        log_error("settings_file_invalid", layer="file", path=path, format=self.format_name, error=str(exc))
        return InvalidFormat(f"Invalid {self.format_name.upper()} in {path}: {exc}")

    @staticmethod
    def _ensure_mapping(data: object, *, path: str) -> Mapping[str, object]:
        """Ensure *data* behaves like a mapping, otherwise raise ``InvalidFormat``.

        Examples
        --------
        >>> BaseFileLoader._ensure_mapping({"enabled": True}, path="demo")
        {'enabled': True}
        >>> BaseFileLoader._ensure_mapping(42, path="demo")
        Traceback (most recent call last):
        ...
        lib_devlogs.domain.errors.InvalidFormat: File demo did not produce a mapping
        """

        if not isinstance(data, Mapping):
            raise InvalidFormat(f"File {path} did not produce a mapping")
        return data

    @staticmethod
    def _select_section(data: Mapping[str, object], *, path: str) -> dict[str, object]:
        """Return the ``devlogs`` section when present, else the whole mapping.

        >>> BaseFileLoader._select_section({"devlogs": {"environment": "local"}, "other": 1}, path="demo")
        {'environment': 'local'}
        """

        section = data.get(SECTION, data)
        if not isinstance(section, Mapping):
            raise InvalidFormat(f"Section '{SECTION}' in {path} is not a table")
        return {str(key).lower(): value for key, value in section.items()}


class TOMLFileLoader(BaseFileLoader):
    """Load TOML documents using the standard library parser."""

    format_name = "toml"

    def _parse(self, payload: bytes, path: str) -> object:
        try:
            return tomllib.loads(payload.decode("utf-8"))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            raise self._invalid(path, exc) from exc


class JSONFileLoader(BaseFileLoader):
    """Load JSON documents."""

    format_name = "json"

    def _parse(self, payload: bytes, path: str) -> object:
        try:
            return json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise self._invalid(path, exc) from exc


class YAMLFileLoader(BaseFileLoader):
    """Load YAML documents with ``yaml.safe_load``."""

    format_name = "yaml"

    def _parse(self, payload: bytes, path: str) -> object:
        try:
            data = yaml.safe_load(payload)
        except yaml.YAMLError as exc:
            raise self._invalid(path, exc) from exc
        return {} if data is None else data


_LOADERS: dict[str, BaseFileLoader] = {
    ".toml": TOMLFileLoader(),
    ".json": JSONFileLoader(),
    ".yaml": YAMLFileLoader(),
    ".yml": YAMLFileLoader(),
}


def loader_for(path: str) -> BaseFileLoader:
    """Return the loader matching the suffix of *path*.

    >>> type(loader_for("settings.yml")).__name__
    'YAMLFileLoader'
    """

    suffix = Path(path).suffix.lower()
    try:
        return _LOADERS[suffix]
    except KeyError as exc:
        raise InvalidSetting(f"Unsupported settings file type {suffix or '(none)'}: {path}") from exc
