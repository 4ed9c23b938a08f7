"""Configuration management for linestage.

Settings are read from two YAML files, the second overriding the first:
- ~/.linestage/config.yaml: user-wide preferences
- <repo>/.linestage/config.yaml: per-repository preferences

Command-line options are applied on top as overrides. Missing files mean
defaults; nothing is written implicitly.
"""

import logging
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from linestage.view.intents import parse_intent


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or is invalid."""

    pass


_CONFIG_DIR_NAME = ".linestage"
_CONFIG_FILE_NAME = "config.yaml"


class LinestageConfig(BaseModel):
    """Validated settings."""

    model_config = ConfigDict(extra="forbid")

    context_lines: int = Field(default=3, ge=0)
    detect_renames: bool = True
    show_untracked: bool = True
    start_pane: Literal["working", "staged"] = "working"
    confirm_discard: bool = True
    keys: dict[str, str] = Field(default_factory=dict)
    log_file: Optional[Path] = None
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {v}")
        return level

    @field_validator("keys")
    @classmethod
    def check_keys(cls, v: dict[str, str]) -> dict[str, str]:
        unknown = [name for name in v.values() if parse_intent(name) is None]
        if unknown:
            raise ValueError(f"unknown actions: {', '.join(unknown)}")
        return v

    @field_validator("log_file")
    @classmethod
    def expand_log_file(cls, v: Optional[Path]) -> Optional[Path]:
        return v.expanduser() if v is not None else None


def get_global_config_file() -> Path:
    """Get path to the user-wide config file.

    Returns:
        Path to ~/.linestage/config.yaml
    """
    return Path.home() / _CONFIG_DIR_NAME / _CONFIG_FILE_NAME


def get_repo_config_file(repo_root: Path) -> Path:
    """Get path to the per-repository config file.

    Args:
        repo_root: The root directory of the git repository.

    Returns:
        Path to <repo_root>/.linestage/config.yaml
    """
    return repo_root / _CONFIG_DIR_NAME / _CONFIG_FILE_NAME


def _load_yaml(config_file: Path) -> dict[str, Any]:
    """Load one YAML config file, returning {} if it does not exist.

    Raises:
        ConfigError: If the file is unreadable or not a mapping.
    """
    if not config_file.exists():
        return {}

    try:
        with open(config_file, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config from {config_file}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"{config_file}: expected a mapping at the top level")
    return data


def load_config(
    repo_root: Optional[Path] = None, overrides: Optional[dict[str, Any]] = None
) -> LinestageConfig:
    """Load and validate the effective configuration.

    Args:
        repo_root: Repository whose config file is merged over the global one.
        overrides: Values set on the command line; None values are ignored.

    Returns:
        LinestageConfig with all layers merged.

    Raises:
        ConfigError: If a file is invalid or the merged values fail validation.
    """
    merged: dict[str, Any] = {}
    sources = [get_global_config_file()]
    if repo_root is not None:
        sources.append(get_repo_config_file(repo_root))

    for config_file in sources:
        data = _load_yaml(config_file)
        file_keys = data.get("keys") or {}
        if not isinstance(file_keys, dict):
            raise ConfigError(f"{config_file}: 'keys' must be a mapping of key names to actions")
        keys = {**merged.get("keys", {}), **file_keys}
        merged.update(data)
        merged["keys"] = keys

    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        return LinestageConfig(**merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}")
