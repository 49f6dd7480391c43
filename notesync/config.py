"""Client configuration loaded from YAML with environment overrides."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT

LOG = logging.getLogger(__name__)

CONFIG_FILENAME = "config.yaml"
_VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}


def notesync_home() -> Path:
    p = os.environ.get("NOTESYNC_HOME")
    return Path(p).expanduser() if p else Path.home() / ".notesync"


class ClientSettings(BaseModel):
    """Settings shared by the CLI and any other front end."""

    api_base_url: str = DEFAULT_BASE_URL
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0.0)
    data_dir: Path = Field(default_factory=notesync_home)
    log_level: str = "INFO"

    @field_validator("api_base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        url = value.strip().rstrip("/")
        if not url.startswith(("http://", "https://")):
            raise ValueError(f"api_base_url must be an http(s) URL, got '{value}'")
        return url

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper().strip()
        if level not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"Unsupported logging level '{value}'. Valid levels: {sorted(_VALID_LOG_LEVELS)}"
            )
        return level

    @field_validator("data_dir", mode="after")
    @classmethod
    def _expand_data_dir(cls, value: Path) -> Path:
        return value.expanduser()

    @property
    def config_path(self) -> Path:
        return self.data_dir / CONFIG_FILENAME


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if environ.get("NOTESYNC_API_URL"):
        overrides["api_base_url"] = environ["NOTESYNC_API_URL"]
    if environ.get("NOTESYNC_TIMEOUT"):
        overrides["timeout"] = environ["NOTESYNC_TIMEOUT"]
    if environ.get("NOTESYNC_LOG_LEVEL"):
        overrides["log_level"] = environ["NOTESYNC_LOG_LEVEL"]
    return overrides


def read_config_file(path: Path) -> dict[str, Any]:
    """Return the mapping stored at ``path``; missing or unreadable files give ``{}``."""

    if not path.exists():
        return {}
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        LOG.warning("Failed to read %s: %s", path, exc)
        return {}
    if not isinstance(raw, dict):
        LOG.warning("Ignoring %s: expected a mapping", path)
        return {}
    return raw


def load_settings(path: Path | None = None, environ: Mapping[str, str] | None = None) -> ClientSettings:
    """Return settings from ``path`` (default ``<home>/config.yaml``) plus env overrides.

    A missing file yields defaults; an unreadable one is logged and skipped.
    Invalid values raise :class:`ValueError`.
    """

    environ = os.environ if environ is None else environ
    home = Path(environ["NOTESYNC_HOME"]).expanduser() if environ.get("NOTESYNC_HOME") else notesync_home()
    config_path = Path(path) if path is not None else home / CONFIG_FILENAME

    payload: dict[str, Any] = {"data_dir": home}
    payload.update(read_config_file(config_path))
    payload.update(_env_overrides(environ))

    try:
        return ClientSettings.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid notesync configuration: {exc}") from exc


def update_config_file(path: Path, changes: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``changes`` into the YAML file at ``path`` and return what was written.

    Only settings already in the file or named in ``changes`` are stored, so
    environment overrides and defaults never leak into it. The merged values
    are validated and normalised first; invalid ones raise :class:`ValueError`.
    """

    stored = read_config_file(path)
    stored.update(changes)
    try:
        validated = ClientSettings.model_validate(stored)
    except ValidationError as exc:
        raise ValueError(f"Invalid notesync configuration: {exc}") from exc

    data = validated.model_dump(mode="json", include=set(stored) & set(ClientSettings.model_fields))
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=True)
    return data


__all__ = [
    "CONFIG_FILENAME",
    "ClientSettings",
    "load_settings",
    "notesync_home",
    "read_config_file",
    "update_config_file",
]
