"""Runtime settings and run options for pluginguard."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict

import yaml

from pluginguard import __version__

CONFIG_FILENAME = "pluginguard.yaml"
DEFAULT_LOG_FILE = "plugin-updates.log"
DEFAULT_REGISTRY_URL = "https://downloads.wordpress.org/plugin"


class ConfigError(ValueError):
    """Raised when a configuration file cannot be used."""


@dataclass(frozen=True)
class RuntimeSettings:
    home_dir: Path
    log_dir: Path
    cli_version: str = __version__


@dataclass(frozen=True)
class RunOptions:
    """Options recognised for a single check/update run."""

    dry_run: bool = False
    no_log: bool = False
    log_file: str = DEFAULT_LOG_FILE
    flush_cache: bool = False
    save_diffs_only: bool = False
    save_old_logs: bool = False
    allow_root: bool = False
    registry_url: str = DEFAULT_REGISTRY_URL
    http_timeout: float | None = None
    wp_executable: str = "wp"

    def to_dict(self) -> Dict[str, Any]:
        return {item.name: getattr(self, item.name) for item in fields(self)}


def _default_home_dir() -> Path:
    override = os.environ.get("PLUGINGUARD_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".pluginguard"


def load_settings() -> RuntimeSettings:
    base = _default_home_dir()
    return RuntimeSettings(
        home_dir=base,
        log_dir=base / "logs",
    )


def load_run_options(config_path: Path | None = None, overrides: Dict[str, Any] | None = None) -> RunOptions:
    """Build run options from an optional YAML file, then apply ``overrides``.

    ``None`` values in ``overrides`` are ignored so that unset CLI flags keep the
    file (or default) value.
    """

    options = RunOptions()
    if config_path is not None and config_path.exists():
        options = replace(options, **_read_config(config_path))
    if overrides:
        known = {item.name for item in fields(RunOptions)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigError(f"unknown run options: {', '.join(unknown)}")
        options = replace(options, **{key: value for key, value in overrides.items() if value is not None})
    return options


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: configuration must be a mapping")
    normalised = {str(key).replace("-", "_"): value for key, value in data.items()}
    known = {item.name: item for item in fields(RunOptions)}
    unknown = sorted(set(normalised) - set(known))
    if unknown:
        raise ConfigError(f"{path}: unknown keys: {', '.join(unknown)}")
    for key, value in normalised.items():
        default = getattr(RunOptions, key)
        if isinstance(default, bool) and not isinstance(value, bool):
            raise ConfigError(f"{path}: '{key}' must be true or false")
        if key == "http_timeout" and value is not None and not isinstance(value, (int, float)):
            raise ConfigError(f"{path}: 'http_timeout' must be a number")
        if isinstance(default, str) and not isinstance(value, str):
            raise ConfigError(f"{path}: '{key}' must be a string")
    return normalised


SETTINGS = load_settings()
