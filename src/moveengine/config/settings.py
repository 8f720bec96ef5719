"""TOML config loading and profiles."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from moveengine.errors import ConfigError
from moveengine.moves.windows import DEFAULT_WINDOWS, WINDOW_MS

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
_CWD_CONFIG = Path.cwd() / "config"


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


def _find_config_dir(config_dir: Path | None = None) -> Path:
    if config_dir is not None:
        return config_dir
    if _CWD_CONFIG.exists():
        return _CWD_CONFIG
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    directory = _find_config_dir(config_dir)
    default_path = directory / "default.toml"
    base = _load_toml(default_path) if default_path.exists() else {}
    if profile:
        profile_path = directory / f"{profile}.toml"
        if not profile_path.exists():
            raise ConfigError(f"Config profile not found: {profile_path}")
        base = _deep_merge(base, _load_toml(profile_path))
    return base


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    """Return Settings instance from merged config."""
    try:
        raw = load_config(profile, config_dir)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML config: {e}") from e
    return Settings.from_dict(raw)


class Settings:
    """Application settings from TOML config."""

    def __init__(
        self,
        *,
        storage: dict[str, Any] | None = None,
        polymarket: dict[str, Any] | None = None,
        engine: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.storage = storage or {}
        self.polymarket = polymarket or {}
        self.engine = engine or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            storage=raw.get("storage"),
            polymarket=raw.get("polymarket"),
            engine=raw.get("engine"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def db_path(self) -> str:
        return str(self.storage.get("db_path", "data/moves.duckdb") or "")

    @property
    def gamma_api_base(self) -> str:
        return str(self.polymarket.get("gamma_api_base", "https://gamma-api.polymarket.com") or "")

    @property
    def page_size(self) -> int:
        return int(self.polymarket.get("page_size", 200))

    @property
    def max_pages(self) -> int:
        return int(self.polymarket.get("max_pages", 5))

    @property
    def max_markets(self) -> int | None:
        value = self.polymarket.get("max_markets", 300)
        return int(value) if value else None

    @property
    def timeout_sec(self) -> float:
        return float(self.polymarket.get("timeout_sec", 30.0))

    @property
    def platform_id(self) -> str:
        return str(self.engine.get("platform_id", "polymarket"))

    @property
    def windows(self) -> list[str]:
        return list(self.engine.get("windows") or DEFAULT_WINDOWS)

    @property
    def lookback_hours(self) -> float:
        return float(self.engine.get("lookback_hours", 48))

    @property
    def lookback_ms(self) -> int:
        return int(self.lookback_hours * 60 * 60 * 1000)

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)

    def validate(self) -> Settings:
        """Raise ConfigError if a required value is missing or inconsistent."""
        if not self.db_path:
            raise ConfigError("storage.db_path is required")
        if not self.gamma_api_base:
            raise ConfigError("polymarket.gamma_api_base is required")
        if not self.platform_id:
            raise ConfigError("engine.platform_id is required")
        if self.page_size <= 0 or self.max_pages <= 0:
            raise ConfigError("polymarket.page_size and polymarket.max_pages must be positive")
        windows = self.windows
        if not windows:
            raise ConfigError("engine.windows must list at least one window key")
        unknown = [w for w in windows if w not in WINDOW_MS]
        if unknown:
            raise ConfigError(f"Unknown window keys: {unknown}; expected any of {list(WINDOW_MS)}")
        longest = max(WINDOW_MS[w] for w in windows)
        if self.lookback_ms <= longest:
            raise ConfigError(
                f"engine.lookback_hours ({self.lookback_hours}) must exceed the longest window"
            )
        return self


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
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
