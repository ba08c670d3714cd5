"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_DB_PATH = PROJECT_ROOT / "data" / "tasks.db"

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    tasks_db_path: Path = Field(..., description="SQLite file holding the task collection")
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins (from comma-separated CORS_ALLOW_ORIGINS)",
    )
    host: str = Field(default="0.0.0.0", description="Interface the HTTP server binds to")
    port: int = Field(default=5000, ge=1, le=65535, description="Port the HTTP server listens on")
    store_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=300,
        description="SQLite busy timeout applied to every store connection",
    )
    broadcast_send_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=300,
        description=(
            "Upper bound for delivering one message to one observer. "
            "A slower observer is reported as a delivery failure."
        ),
    )
    log_level: str = Field(default="INFO", description="Root log level for the server process")

    @field_validator("tasks_db_path", mode="before")
    @classmethod
    def _normalize_db_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            raise ValueError("TASKS_DB_PATH is required")
        path = value if isinstance(value, Path) else Path(value)
        return path.expanduser().resolve()

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: Optional[str]) -> str:
        if value is None:
            return "INFO"
        level = str(value).upper().strip()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}, got: {value!r}")
        return level


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


def _read_float(key: str, default: float) -> float:
    raw = _read_env(key, str(default))
    try:
        return float(raw)
    except (TypeError, ValueError):
        return default


def _read_int(key: str, default: int) -> int:
    raw = _read_env(key, str(default))
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    db_path = _read_env("TASKS_DB_PATH", str(DEFAULT_DB_PATH))

    origins_str = _read_env("CORS_ALLOW_ORIGINS", "*")
    cors_allow_origins = [o.strip() for o in origins_str.split(",") if o.strip()] or ["*"]

    config = AppConfig(
        tasks_db_path=db_path,
        cors_allow_origins=cors_allow_origins,
        host=_read_env("HOST", "0.0.0.0"),
        port=_read_int("PORT", 5000),
        store_timeout_seconds=_read_float("STORE_TIMEOUT_SECONDS", 5.0),
        broadcast_send_timeout_seconds=_read_float("BROADCAST_SEND_TIMEOUT_SECONDS", 5.0),
        log_level=_read_env("LOG_LEVEL", "INFO"),
    )
    return config


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = ["AppConfig", "get_config", "reload_config", "PROJECT_ROOT", "DEFAULT_DB_PATH"]
