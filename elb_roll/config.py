"""Frozen dataclasses for configuration and YAML loader with env-var interpolation."""

from __future__ import annotations

import os
import re
import types
import typing
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")

DEFAULT_SHARED_CREDENTIALS_FILE = "~/.aws/credentials"
DEFAULT_PROFILE = "default"


def _interpolate_env(value: str) -> str:
    """Replace ${ENV_VAR} placeholders with environment variable values."""

    def _replace(match: re.Match) -> str:
        env_key = match.group(1)
        env_val = os.environ.get(env_key)
        if env_val is None:
            raise ConfigError(f"Environment variable '{env_key}' is not set")
        return env_val

    return _ENV_PATTERN.sub(_replace, value)


def _walk_and_interpolate(obj: Any) -> Any:
    """Recursively interpolate env vars in strings throughout a nested structure."""
    if isinstance(obj, str):
        return _interpolate_env(obj)
    if isinstance(obj, dict):
        return {k: _walk_and_interpolate(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_interpolate(v) for v in obj]
    return obj


def _env_or(name: str, default: str) -> str:
    return os.environ.get(name) or default


@dataclass(frozen=True)
class AWSConfig:
    region: str = ""  # empty = use the region reported by instance metadata
    credentials_file: str = field(
        default_factory=lambda: _env_or("AWS_SHARED_CREDENTIALS_FILE", DEFAULT_SHARED_CREDENTIALS_FILE)
    )
    profile: str = field(default_factory=lambda: _env_or("AWS_PROFILE", DEFAULT_PROFILE))
    metadata_timeout: float = 2.0


@dataclass(frozen=True)
class TagsConfig:
    lane_tag: str = "Lane"


@dataclass(frozen=True)
class PollingConfig:
    interval_seconds: float = 5
    timeout_seconds: float = 0  # 0 = wait forever
    max_workers: int = 1  # 1 = sequential fan-out


@dataclass(frozen=True)
class CommandConfig:
    shell: str = "bash"


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "json"  # "json" or "text"


@dataclass(frozen=True)
class AppConfig:
    aws: AWSConfig = field(default_factory=AWSConfig)
    tags: TagsConfig = field(default_factory=TagsConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    command: CommandConfig = field(default_factory=CommandConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _get_dataclass_type(ft: Any) -> type | None:
    """Return the underlying dataclass type from a type annotation (handles Optional/X|None)."""
    if isinstance(ft, type) and hasattr(ft, "__dataclass_fields__"):
        return ft
    # X | None (types.UnionType has __args__ but no __origin__)
    if isinstance(ft, types.UnionType):
        args = [a for a in ft.__args__ if a is not type(None)]
        if len(args) == 1 and isinstance(args[0], type) and hasattr(args[0], "__dataclass_fields__"):
            return args[0]
    origin = getattr(ft, "__origin__", None)
    if origin is typing.Union:
        args = [a for a in ft.__args__ if a is not type(None)]
        if len(args) == 1 and isinstance(args[0], type) and hasattr(args[0], "__dataclass_fields__"):
            return args[0]
    return None


def _build_nested(cls: type, data: dict[str, Any]) -> Any:
    """Construct a frozen dataclass, recursively building nested dataclass fields."""
    if not isinstance(data, dict):
        return data
    field_types = {f.name: f.type for f in cls.__dataclass_fields__.values()}
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in field_types:
            continue
        ft = field_types[key]
        # Resolve string annotations to actual types in the module scope
        if isinstance(ft, str):
            ft = eval(ft, globals(), {cls.__name__: cls})  # noqa: S307
        dc_type = _get_dataclass_type(ft)
        if dc_type is not None and isinstance(value, dict):
            kwargs[key] = _build_nested(dc_type, value)
        else:
            kwargs[key] = value
    return cls(**kwargs)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate configuration from a YAML file.

    With no path, the defaults (plus AWS_* environment variables) are used.
    """
    if path is None:
        config = AppConfig()
        _validate(config)
        return config

    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("Configuration file must be a YAML mapping")

    raw = _walk_and_interpolate(raw)
    config = _build_nested(AppConfig, raw)
    _validate(config)
    return config


def apply_overrides(
    config: AppConfig,
    interval_seconds: float | None = None,
    timeout_seconds: float | None = None,
    log_level: str | None = None,
    log_format: str | None = None,
) -> AppConfig:
    """Return a copy of config with command-line overrides applied, re-validated."""
    polling = config.polling
    if interval_seconds is not None:
        polling = replace(polling, interval_seconds=interval_seconds)
    if timeout_seconds is not None:
        polling = replace(polling, timeout_seconds=timeout_seconds)

    logging_cfg = config.logging
    if log_level is not None:
        logging_cfg = replace(logging_cfg, level=log_level)
    if log_format is not None:
        logging_cfg = replace(logging_cfg, format=log_format)

    config = replace(config, polling=polling, logging=logging_cfg)
    _validate(config)
    return config


def _validate(config: AppConfig) -> None:
    """Validate configuration values."""
    if not isinstance(config.polling.interval_seconds, (int, float)) or config.polling.interval_seconds <= 0:
        raise ConfigError("polling.interval_seconds must be a number > 0")

    if not isinstance(config.polling.timeout_seconds, (int, float)) or config.polling.timeout_seconds < 0:
        raise ConfigError("polling.timeout_seconds must be a number >= 0 (0 disables the timeout)")

    if not isinstance(config.polling.max_workers, int) or config.polling.max_workers < 1:
        raise ConfigError("polling.max_workers must be an integer >= 1")

    if not isinstance(config.aws.metadata_timeout, (int, float)) or config.aws.metadata_timeout <= 0:
        raise ConfigError("aws.metadata_timeout must be a number > 0")

    if not config.tags.lane_tag:
        raise ConfigError("tags.lane_tag must not be empty")

    if not config.command.shell:
        raise ConfigError("command.shell must not be empty")

    if not isinstance(config.logging.level, str) or not config.logging.level:
        raise ConfigError("logging.level must be a level name such as 'INFO'")

    if config.logging.format not in ("json", "text"):
        raise ConfigError("logging.format must be 'json' or 'text'")
