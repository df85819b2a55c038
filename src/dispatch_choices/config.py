"""Optional YAML configuration for the command line."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .inputs import DEFAULT_COMMIT_MESSAGE
from .tools.github_store import DEFAULT_API_URL
from .tools.stores import DEFAULT_WORKFLOWS_DIR

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_NAME",
    "DefaultsSettings",
    "GitHubSettings",
    "Settings",
    "load_settings",
]

DEFAULT_CONFIG_NAME = "dispatch-choices.yaml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be used."""


class SettingsModel(BaseModel):
    """Base model rejecting unknown configuration keys."""

    model_config = ConfigDict(extra="forbid")


class DefaultsSettings(SettingsModel):
    """Fallback values for options not given on the command line."""

    commit_message: str = DEFAULT_COMMIT_MESSAGE
    branch: Optional[str] = None
    workflows_dir: str = DEFAULT_WORKFLOWS_DIR


class GitHubSettings(SettingsModel):
    """Connection details for the GitHub contents API."""

    api_url: str = DEFAULT_API_URL
    token_env: str = "GITHUB_TOKEN"
    timeout: float = Field(default=30.0, gt=0)


class Settings(SettingsModel):
    """Top-level configuration document."""

    defaults: DefaultsSettings = Field(default_factory=DefaultsSettings)
    github: GitHubSettings = Field(default_factory=GitHubSettings)


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping from disk, guarding against unexpected types."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Failed to parse config {path}: {error}") from error
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a mapping at the top level: {path}")
    return data


def load_settings(path: Path | str | None = None) -> Settings:
    """Load settings from ``path``.

    Without an explicit path the default file is used when present, otherwise
    built-in defaults apply.  An explicit path that does not exist is an error.
    """

    if path is None:
        candidate = Path(DEFAULT_CONFIG_NAME)
        if not candidate.exists():
            return Settings()
    else:
        candidate = Path(path)
        if not candidate.exists():
            raise ConfigError(f"Config file not found: {candidate}")

    data = _load_yaml(candidate)
    try:
        return Settings.model_validate(data)
    except ValidationError as error:
        raise ConfigError(f"Invalid configuration in {candidate}: {error}") from error
