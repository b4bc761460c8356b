"""Layered settings resolution: defaults < settings file < .env < environment."""

from __future__ import annotations

from pathlib import Path

import pytest

from lib_devlogs import InvalidSetting, read_settings
from lib_devlogs.domain.errors import InvalidFormat


def test_defaults_when_nothing_is_configured(tmp_path: Path) -> None:
    settings = read_settings(start_dir=str(tmp_path), environ={})
    assert settings.enabled is None
    assert settings.environment == "production"
    assert settings.database == "devlogs.sqlite3"
    assert settings.operator is False


def test_layers_override_in_order(tmp_path: Path) -> None:
    settings_file = tmp_path / "devlogs.yaml"
    settings_file.write_text(
        "devlogs:\n  enabled: shipping\n  environment: staging\n  database: file.sqlite3\n  operator: true\n",
        encoding="utf-8",
    )
    (tmp_path / ".env").write_text("DEVLOGS_ENVIRONMENT=local\nDEVLOGS_DATABASE=dotenv.sqlite3\n", encoding="utf-8")
    environ = {"DEVLOGS_DATABASE": "env.sqlite3"}

    settings = read_settings(start_dir=str(tmp_path), environ=environ, config_file=str(settings_file))

    assert settings.enabled == "shipping"
    assert settings.operator is True
    assert settings.environment == "local"
    assert settings.database == "env.sqlite3"


def test_environment_values_are_coerced(tmp_path: Path) -> None:
    environ = {"DEVLOGS_ENABLED": "false", "DEVLOGS_OPERATOR": "1", "DEVLOGS_ENVIRONMENT": "Staging"}
    settings = read_settings(start_dir=str(tmp_path), environ=environ)
    assert settings.enabled is False
    assert settings.operator is True
    assert settings.environment == "staging"


def test_unknown_keys_are_kept_as_extras(tmp_path: Path) -> None:
    settings = read_settings(start_dir=str(tmp_path), environ={"DEVLOGS_RETENTION": "7"})
    assert settings.extras == {"retention": 7}


def test_custom_slug_changes_prefix(tmp_path: Path) -> None:
    settings = read_settings(start_dir=str(tmp_path), environ={"MY_APP_ENABLED": "billing"}, slug="my-app")
    assert settings.enabled == "billing"


def test_invalid_operator_flag(tmp_path: Path) -> None:
    with pytest.raises(InvalidSetting):
        read_settings(start_dir=str(tmp_path), environ={"DEVLOGS_OPERATOR": "maybe"})


def test_malformed_settings_file(tmp_path: Path) -> None:
    settings_file = tmp_path / "devlogs.toml"
    settings_file.write_text("enabled = \n", encoding="utf-8")
    with pytest.raises(InvalidFormat):
        read_settings(start_dir=str(tmp_path), environ={}, config_file=str(settings_file))


@pytest.mark.parametrize("name", ["2024", "inf", "nan", "7"])
def test_numeric_looking_logger_name_is_kept_in_every_layer(tmp_path: Path, name: str) -> None:
    from_env = read_settings(start_dir=str(tmp_path), environ={"DEVLOGS_ENABLED": name, "DEVLOGS_ENVIRONMENT": "production"})

    (tmp_path / ".env").write_text(f"DEVLOGS_ENABLED={name}\n", encoding="utf-8")
    from_dotenv = read_settings(start_dir=str(tmp_path), environ={})

    assert from_env.enabled == name
    assert from_dotenv.enabled == name
