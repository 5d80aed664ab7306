"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_DB_PATH = PROJECT_ROOT / "data" / "notegraph.db"
DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://localhost:5173")


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    database_path: Path = Field(
        default=DEFAULT_DB_PATH, description="SQLite file holding notes, topics and links"
    )
    default_user_id: str = Field(
        default="local-dev",
        min_length=1,
        description="Owner used when a request carries no X-User-Id header",
    )
    layout_node_spacing: float = Field(
        default=100.0, gt=0, description="Vertical distance between sibling nodes"
    )
    layout_level_spacing: float = Field(
        default=220.0, gt=0, description="Horizontal distance between tree levels"
    )
    cors_origins: tuple[str, ...] = Field(default=DEFAULT_CORS_ORIGINS)
    seed_demo_data: bool = Field(
        default=False, description="Create the demo topic graph on startup for the default user"
    )
    log_level: str = Field(default="INFO")

    @field_validator("database_path", mode="before")
    @classmethod
    def _normalize_db_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            return DEFAULT_DB_PATH
        path = value if isinstance(value, Path) else Path(value)
        return path.expanduser().resolve()

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        cleaned = value.strip().upper()
        if cleaned not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown LOG_LEVEL: {value}")
        return cleaned


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


def _read_flag(key: str, default: str) -> bool:
    return (_read_env(key, default) or "").lower() not in {"0", "false", "no", ""}


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    origins = _read_env("CORS_ORIGINS")
    cors_origins = (
        tuple(origin.strip() for origin in origins.split(",") if origin.strip())
        if origins
        else DEFAULT_CORS_ORIGINS
    )

    return AppConfig(
        database_path=_read_env("DATABASE_PATH", str(DEFAULT_DB_PATH)),
        default_user_id=_read_env("DEFAULT_USER_ID", "local-dev"),
        layout_node_spacing=_read_env("LAYOUT_NODE_SPACING", "100"),
        layout_level_spacing=_read_env("LAYOUT_LEVEL_SPACING", "220"),
        cors_origins=cors_origins,
        seed_demo_data=_read_flag("SEED_DEMO_DATA", "false"),
        log_level=_read_env("LOG_LEVEL", "INFO"),
    )


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = ["AppConfig", "get_config", "reload_config", "PROJECT_ROOT", "DEFAULT_DB_PATH"]
