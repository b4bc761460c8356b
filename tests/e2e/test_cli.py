"""End-to-end CLI coverage for the commands exposed by lib_devlogs.

These tests exercise the documented operator workflows (log, list, view,
download, empty, delete) against a throwaway SQLite database, plus the
production gate and the ``main`` wrapper's exit handling.
"""

from __future__ import annotations

import runpy
from pathlib import Path

import pytest
from click.testing import CliRunner, Result

import lib_cli_exit_tools

from lib_devlogs import cli

CLEAN_ENV = {
    "DEVLOGS_ENABLED": None,
    "DEVLOGS_ENVIRONMENT": None,
    "DEVLOGS_DATABASE": None,
    "DEVLOGS_OPERATOR": None,
}


def _invoke(tmp_path: Path, *args: str, environment: str = "local", env: dict[str, str | None] | None = None) -> Result:
    """Run the CLI against a database inside *tmp_path*."""

    database = tmp_path / "devlogs.sqlite3"
    base = [
        "--database",
        str(database),
        "--environment",
        environment,
        "--start-dir",
        str(tmp_path),
    ]
    return CliRunner().invoke(cli.cli, [*base, *args], env={**CLEAN_ENV, **(env or {})})


def test_cli_slug() -> None:
    result = CliRunner().invoke(cli.cli, ["slug", "Café Orders"])
    assert result.exit_code == 0
    assert result.output.strip() == "logger-cafe-orders"


def test_cli_log_then_view(tmp_path: Path) -> None:
    logged = _invoke(tmp_path, "log", "billing", "Order", '{"id": 42}')
    assert logged.exit_code == 0, logged.output
    assert logged.output.strip() == "logged: logger-billing"

    viewed = _invoke(tmp_path, "view", "billing")
    assert viewed.exit_code == 0
    assert "] Order = Array" in viewed.output
    assert "    [id] => 42" in viewed.output


def test_cli_log_denied_in_production(tmp_path: Path) -> None:
    result = _invoke(tmp_path, "log", "billing", "Order", environment="production")
    assert result.exit_code == 0
    assert result.output.strip() == "denied: billing"


def test_cli_can_log_respects_named_override(tmp_path: Path) -> None:
    allowed = _invoke(tmp_path, "--enabled", "billing", "can-log", "billing", environment="production")
    denied = _invoke(tmp_path, "--enabled", "billing", "can-log", "shipping", environment="production")
    assert allowed.output.strip() == "allowed"
    assert denied.output.strip() == "denied"


def test_cli_list_counts_lines(tmp_path: Path) -> None:
    _invoke(tmp_path, "log", "billing", "One")
    _invoke(tmp_path, "log", "billing", "Two")
    _invoke(tmp_path, "log", "auth", "Three")

    result = _invoke(tmp_path, "list")

    assert result.exit_code == 0
    assert result.output.splitlines() == [
        "logger-auth\tLogger: auth\t1",
        "logger-billing\tLogger: billing\t2",
    ]


def test_cli_download_to_directory(tmp_path: Path) -> None:
    _invoke(tmp_path, "log", "billing", "Order", "plain")
    target_dir = tmp_path / "out"
    target_dir.mkdir()

    result = _invoke(tmp_path, "download", "billing", "--output", str(target_dir))

    target = target_dir / "logger-billing.log"
    assert result.exit_code == 0
    assert result.output.strip() == str(target)
    assert target.read_text(encoding="utf-8").endswith("] Order = plain")


def test_cli_empty_and_delete(tmp_path: Path) -> None:
    _invoke(tmp_path, "log", "billing", "Order")

    emptied = _invoke(tmp_path, "empty", "billing")
    assert emptied.output.strip() == "emptied: logger-billing"
    assert _invoke(tmp_path, "view", "billing").output.strip() == ""

    deleted = _invoke(tmp_path, "delete", "billing")
    assert deleted.output.strip() == "deleted: logger-billing"
    assert _invoke(tmp_path, "view", "billing").exit_code != 0


def test_cli_operator_commands_refused_in_production(tmp_path: Path) -> None:
    refused = _invoke(tmp_path, "list", environment="production")
    assert refused.exit_code != 0

    allowed = _invoke(tmp_path, "--operator", "list", environment="production")
    assert allowed.exit_code == 0


def test_cli_reads_settings_file(tmp_path: Path) -> None:
    settings_file = tmp_path / "devlogs.toml"
    settings_file.write_text('[devlogs]\nenabled = "shipping"\n', encoding="utf-8")

    result = _invoke(tmp_path, "--config", str(settings_file), "can-log", "billing")

    assert result.output.strip() == "denied"


def test_cli_info_reports_effective_settings(tmp_path: Path) -> None:
    result = _invoke(tmp_path, "--enabled", "false", "info")
    assert result.exit_code == 0
    assert "Environment     : local" in result.output
    assert "Enabled         : false" in result.output


def test_main_restores_traceback_flag(tmp_path: Path) -> None:
    lib_cli_exit_tools.config.traceback = False
    exit_code = cli.main(["--traceback", "slug", "billing"])
    assert exit_code == 0
    assert lib_cli_exit_tools.config.traceback is False


def test_module_entry_point(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    """``python -m lib_devlogs`` should delegate to the CLI and exit cleanly."""

    monkeypatch.setattr("sys.argv", ["lib_devlogs", "slug", "billing"])
    with pytest.raises(SystemExit) as excinfo:
        runpy.run_module("lib_devlogs", run_name="__main__")
    assert excinfo.value.code == 0
    assert "logger-billing" in capsys.readouterr().out


def test_cli_numeric_logger_name_only_allows_that_logger(tmp_path: Path) -> None:
    via_option = _invoke(tmp_path, "--enabled", "2024", "can-log", "billing", environment="production")
    via_env = _invoke(tmp_path, "can-log", "billing", environment="production", env={"DEVLOGS_ENABLED": "2024"})
    named = _invoke(tmp_path, "can-log", "2024", environment="production", env={"DEVLOGS_ENABLED": "2024"})
    assert via_option.output.strip() == "denied"
    assert via_env.output.strip() == "denied"
    assert named.output.strip() == "allowed"
