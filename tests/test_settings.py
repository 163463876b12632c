from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from otpmigrate.errors import SettingsError
from otpmigrate.settings import CONFIG_ENV, Settings, load_settings, settings_from_mapping


def test_defaults_without_file(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV, raising=False)

    settings = load_settings()

    assert settings == Settings()
    assert settings.authenticator.capacity == 10
    assert settings.lastpass.scheme == "lpaauth-migration"


def test_load_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "settings.yml"
    path.write_text(
        yaml.safe_dump({"authenticator": {"capacity": 5}, "lastpass": {"max_accounts": 3, "device_name": "phone"}}),
        encoding="utf-8",
    )

    settings = load_settings(path)

    assert settings.authenticator.capacity == 5
    assert settings.authenticator.version == 1
    assert settings.lastpass.max_accounts == 3
    assert settings.lastpass.device_name == "phone"
    assert settings.source_path == path


def test_env_variable_points_at_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "env.yml"
    path.write_text("authenticator:\n  capacity: 2\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV, str(path))

    assert load_settings().authenticator.capacity == 2


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")

    assert load_settings(path).lastpass.max_accounts == 10


@pytest.mark.parametrize(
    "data",
    [
        pytest.param({"authenticator": {"capacity": 0}}, id="capacity-below-one"),
        pytest.param({"authenticator": {"capacity": "ten"}}, id="wrong-type"),
        pytest.param({"lastpass": {"unknown": 1}}, id="unknown-key"),
        pytest.param({"extra": {}}, id="unknown-section"),
        pytest.param(["not", "a", "mapping"], id="not-a-mapping"),
    ],
)
def test_invalid_settings_are_rejected(data) -> None:
    with pytest.raises(SettingsError):
        settings_from_mapping(data)


def test_missing_and_unparsable_files(tmp_path: Path) -> None:
    with pytest.raises(SettingsError):
        load_settings(tmp_path / "missing.yml")

    broken = tmp_path / "broken.yml"
    broken.write_text("authenticator: [unclosed", encoding="utf-8")
    with pytest.raises(SettingsError):
        load_settings(broken)
