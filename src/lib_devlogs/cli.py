"""CLI adapter for ``lib_devlogs`` built on ``lib_cli_exit_tools``.

Purpose
-------
Give operators a terminal surface over stored debug logs (list, view,
download, empty, delete) and let scripts write a one-off entry without
embedding Python.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command collecting settings overrides and traceback
  handling.
* ``info`` / ``slug`` / ``can-log`` / ``log`` – diagnostics and ingestion.
* ``list`` / ``view`` / ``download`` / ``empty`` / ``delete`` – operator
  commands, refused in production unless ``--operator`` is set.
* :func:`main` – entry point used by the ``devlogs`` console script.

System Role
-----------
Outermost layer: it only talks to :mod:`lib_devlogs.core` and the
application services it returns. ``lib_cli_exit_tools`` centralises exit codes
and error printing.
"""

from __future__ import annotations

import dataclasses
import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .application.policy import can_view_logs
from .core import DevLogs, create_devlogs, read_settings
from .domain.records import logger_slug
from .domain.settings import Settings, normalize_override

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000
_DISTRIBUTION: Final[str] = "lib_devlogs"


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` when not installed."""

    try:
        return metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Request-scoped debug logs stored per logger name",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_DISTRIBUTION,
    message="lib_devlogs version %(version)s",
)
@click.option("--database", default=None, help="SQLite database path (or :memory:)")
@click.option("--environment", default=None, help="Environment mode, e.g. production, staging, local")
@click.option("--enabled", default=None, help="Logging override: true, false, or a single logger name")
@click.option("--operator/--no-operator", default=None, help="Allow operator commands in production")
@click.option(
    "--config",
    "config_file",
    type=click.Path(path_type=Path, exists=True, file_okay=True, dir_okay=False, readable=True),
    default=None,
    help="Settings file (TOML, JSON or YAML)",
)
@click.option(
    "--start-dir",
    type=click.Path(path_type=Path, exists=True, file_okay=False, dir_okay=True),
    default=None,
    help="Starting directory for the .env upward search (defaults to CWD)",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(
    ctx: click.Context,
    database: Optional[str],
    environment: Optional[str],
    enabled: Optional[str],
    operator: Optional[bool],
    config_file: Optional[Path],
    start_dir: Optional[Path],
    traceback: bool,
) -> None:
    """Root command storing settings overrides and the traceback preference."""

    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {
        "database": database,
        "environment": environment,
        "enabled": enabled,
        "operator": operator,
    }
    ctx.obj["config_file"] = str(config_file) if config_file is not None else None
    ctx.obj["start_dir"] = str(start_dir) if start_dir is not None else None
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


def _settings(ctx: click.Context) -> Settings:
    """Return layered settings with the root command's overrides applied."""

    obj = ctx.ensure_object(dict)
    if "settings" not in obj:
        base = read_settings(start_dir=obj.get("start_dir"), config_file=obj.get("config_file"))
        overrides = {key: value for key, value in obj.get("overrides", {}).items() if value is not None}
        obj["settings"] = Settings.from_mapping({**_as_mapping(base), **overrides}) if overrides else base
    return obj["settings"]


def _as_mapping(settings: Settings) -> dict[str, Any]:
    data = {f.name: getattr(settings, f.name) for f in dataclasses.fields(settings) if f.name != "extras"}
    data.update(settings.extras)
    return data


def _devlogs(ctx: click.Context) -> DevLogs:
    obj = ctx.ensure_object(dict)
    if "devlogs" not in obj:
        obj["devlogs"] = create_devlogs(_settings(ctx))
    return obj["devlogs"]


def _require_operator(ctx: click.Context) -> None:
    settings = _settings(ctx)
    if not can_view_logs(settings.environment, operator=settings.operator):
        raise click.ClickException("Stored logs are not accessible in production; pass --operator to override.")


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
@click.pass_context
def cli_info(ctx: click.Context) -> None:
    """Print distribution metadata and the effective settings."""

    try:
        meta = metadata.metadata(_DISTRIBUTION)
        click.echo(f"Info for {meta.get('Name', _DISTRIBUTION)}:")
        click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    except metadata.PackageNotFoundError:
        click.echo(f"{_DISTRIBUTION} (metadata unavailable)")
    settings = _settings(ctx)
    click.echo(f"  Environment     : {settings.environment}")
    click.echo(f"  Enabled         : {_describe_override(settings.enabled)}")
    click.echo(f"  Database        : {settings.database}")
    click.echo(f"  Operator        : {'yes' if settings.operator else 'no'}")


@cli.command("slug", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("logger_name")
def cli_slug(logger_name: str) -> None:
    """Print the record slug derived from LOGGER_NAME.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> CliRunner().invoke(cli, ["slug", "Billing API"]).output.strip()
    'logger-billing-api'
    """

    click.echo(logger_slug(logger_name))


@cli.command("can-log", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("logger_name")
@click.pass_context
def cli_can_log(ctx: click.Context, logger_name: str) -> None:
    """Print whether LOGGER_NAME may log under the effective settings."""

    click.echo("allowed" if _devlogs(ctx).can_log(logger_name) else "denied")


@cli.command("log", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("logger_name")
@click.argument("title")
@click.argument("payload", required=False, default=None)
@click.pass_context
def cli_log(ctx: click.Context, logger_name: str, title: str, payload: Optional[str]) -> None:
    """Write one entry to LOGGER_NAME; PAYLOAD is parsed as JSON when possible."""

    devlogs = _devlogs(ctx)
    with devlogs.unit_of_work() as unit:
        accepted = unit.log(logger_name, title, _parse_payload(payload))
    if not accepted:
        click.echo(f"denied: {logger_name}")
        return
    click.echo(f"logged: {logger_slug(logger_name)}")


@cli.command("list", context_settings=CLICK_CONTEXT_SETTINGS)
@click.pass_context
def cli_list(ctx: click.Context) -> None:
    """List stored log records as ``slug<TAB>title<TAB>lines``."""

    _require_operator(ctx)
    for record in _devlogs(ctx).store.list_records():
        lines = len(record.body.splitlines())
        click.echo(f"{record.slug}\t{record.title}\t{lines}")


@cli.command("view", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("logger_name")
@click.pass_context
def cli_view(ctx: click.Context, logger_name: str) -> None:
    """Print the stored body of LOGGER_NAME."""

    _require_operator(ctx)
    record = _devlogs(ctx).store.find_record(logger_name)
    click.echo(record.body)


@cli.command("download", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("logger_name")
@click.option(
    "--output",
    type=click.Path(path_type=Path, dir_okay=True, file_okay=True),
    default=None,
    help="Target file or directory (defaults to ./<slug>.log)",
)
@click.pass_context
def cli_download(ctx: click.Context, logger_name: str, output: Optional[Path]) -> None:
    """Write the body of LOGGER_NAME to ``<slug>.log`` and print the path."""

    _require_operator(ctx)
    record = _devlogs(ctx).store.find_record(logger_name)
    target = output or Path.cwd()
    if target.is_dir():
        target = target / record.filename
    target.write_text(record.body, encoding="utf-8")
    click.echo(str(target))


@cli.command("empty", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("logger_name")
@click.pass_context
def cli_empty(ctx: click.Context, logger_name: str) -> None:
    """Clear the body of LOGGER_NAME, keeping its record."""

    _require_operator(ctx)
    record = _devlogs(ctx).store.empty_record(logger_name)
    click.echo(f"emptied: {record.slug}")


@cli.command("delete", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("logger_name")
@click.pass_context
def cli_delete(ctx: click.Context, logger_name: str) -> None:
    """Delete the record of LOGGER_NAME."""

    _require_operator(ctx)
    record = _devlogs(ctx).store.delete_record(logger_name)
    click.echo(f"deleted: {record.slug}")


def _parse_payload(raw: Optional[str]) -> Any:
    """Decode *raw* as JSON, falling back to the raw text.

    >>> _parse_payload('{"id": 42}'), _parse_payload('plain'), _parse_payload(None)
    ({'id': 42}, 'plain', None)
    """

    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _describe_override(value: object) -> str:
    """Render the tri-state override for humans.

    >>> _describe_override(None), _describe_override(False), _describe_override("billing")
    ('unset', 'false', 'only billing')
    """

    value = normalize_override(value)
    if value is None:
        return "unset"
    if isinstance(value, str):
        return f"only {value}"
    return "true" if value else "false"


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_DISTRIBUTION,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
