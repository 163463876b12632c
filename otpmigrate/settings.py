"""
Export settings loaded from an optional YAML file.

Holds the password-manager envelope parameters and the per-code capacity
limits of both export formats.

Deutsch:
    Export-Einstellungen aus einer optionalen YAML-Datei.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from jsonschema import Draft7Validator

from .errors import SettingsError
from .schemas import load_schema

log = logging.getLogger(__name__)

CONFIG_ENV = "OTPMIGRATE_CONFIG"

_SETTINGS_VALIDATOR = Draft7Validator(load_schema("settings.schema.json"))


@dataclass
class AuthenticatorSettings:
    capacity: int = 10
    version: int = 1


@dataclass
class LastPassSettings:
    scheme: str = "lpaauth-migration"
    max_accounts: int = 10
    version: int = 3
    device_name: str = "otpmigrate"
    time_step: int = 30


@dataclass
class Settings:
    authenticator: AuthenticatorSettings = field(default_factory=AuthenticatorSettings)
    lastpass: LastPassSettings = field(default_factory=LastPassSettings)
    source_path: Optional[Path] = None


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load settings from ``path`` (or ``$OTPMIGRATE_CONFIG``), falling back to defaults.

    Deutsch:
        Lädt die Einstellungen; ohne Datei gelten die Standardwerte.
    """

    if path is None:
        env_path = os.getenv(CONFIG_ENV)
        path = Path(env_path) if env_path else None
    if path is None:
        return Settings()

    path = Path(path)
    if not path.exists():
        raise SettingsError(f"settings file {path} not found")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise SettingsError(f"failed to parse settings {path}: {exc}") from exc
    settings = settings_from_mapping(data or {}, source=str(path))
    settings.source_path = path
    log.debug("loaded settings from %s", path)
    return settings


def settings_from_mapping(data: Any, source: str = "<mapping>") -> Settings:
    if not isinstance(data, dict):
        raise SettingsError(f"settings {source} must contain a mapping")
    errors = sorted(_SETTINGS_VALIDATOR.iter_errors(data), key=lambda err: list(err.path))
    if errors:
        messages = "; ".join(
            f"{'.'.join(str(part) for part in error.path) or '<root>'} -> {error.message}" for error in errors
        )
        raise SettingsError(f"invalid settings {source}: {messages}")
    authenticator: Dict[str, Any] = data.get("authenticator") or {}
    lastpass: Dict[str, Any] = data.get("lastpass") or {}
    return Settings(
        authenticator=AuthenticatorSettings(**authenticator),
        lastpass=LastPassSettings(**lastpass),
    )
