"""TOML config loading and profiles."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override values take precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir(config_dir: str | Path | None = None) -> Path:
    if config_dir is not None:
        return Path(config_dir)
    cwd_config = Path.cwd() / "config"
    if cwd_config.exists():
        return cwd_config
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: str | Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    directory = _find_config_dir(config_dir)
    default_path = directory / "default.toml"
    base = _load_toml(default_path) if default_path.exists() else {}
    if profile:
        profile_path = directory / f"{profile}.toml"
        if profile_path.exists():
            base = _deep_merge(base, _load_toml(profile_path))
    return base


def get_settings(profile: str | None = None, config_dir: str | Path | None = None) -> Settings:
    """Return Settings instance from merged config."""
    return Settings.from_dict(load_config(profile, config_dir))


class Settings:
    """Application settings from TOML config."""

    def __init__(
        self,
        *,
        api: dict[str, Any] | None = None,
        resolver: dict[str, Any] | None = None,
        cache: dict[str, Any] | None = None,
        storage: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.api = api or {}
        self.resolver = resolver or {}
        self.cache = cache or {}
        self.storage = storage or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            api=raw.get("api"),
            resolver=raw.get("resolver"),
            cache=raw.get("cache"),
            storage=raw.get("storage"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def api_base_url(self) -> str:
        return self.api.get("base_url", "https://api.limitless.exchange").rstrip("/")

    @property
    def request_timeout_sec(self) -> float:
        return float(self.api.get("request_timeout_sec", 15.0))

    @property
    def user_agent(self) -> str:
        return self.api.get("user_agent", "predresolve/0.1")

    @property
    def search_limit(self) -> int:
        return int(self.resolver.get("search_limit", 10))

    @property
    def similarity_threshold(self) -> float:
        return float(self.resolver.get("similarity_threshold", 0.5))

    @property
    def cache_refresh_interval_sec(self) -> int:
        return int(self.cache.get("refresh_interval_sec", 3600))

    @property
    def db_path(self) -> str:
        return self.storage.get("db_path", "data/predresolve.duckdb")

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)


def _stderr_logger(*args: Any) -> Any:
    import sys

    import structlog

    return structlog.PrintLogger(sys.stderr)


def configure_logging(settings: Settings) -> None:
    """Configure structlog with settings. Call once at application entry."""
    import structlog

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.logging_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        # Look up sys.stderr per call; test runners swap and close it between invocations.
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
