"""Settings for the reelbase storage layer.

Values come from ``REELBASE_*`` environment variables or a ``.env`` file.
Only the ambient concerns live here (where the database is, how it is
opened, how loud the logs are); table and column names are never
configuration, they come from each entity's :class:`~reelbase.core.table.TableSchema`.

Examples:
    >>> from reelbase.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.database_url
    'memory'

Tags:
    settings, configuration, pydantic, environment, reelbase-core

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReelbaseSettings(BaseSettings):
    """Storage-layer settings.

    Fields
    ──────
    database_url : ``memory``, ``sqlite:///path`` or a bare file path
    data_dir     : Base directory for relative SQLite paths
    log_level    : Structlog log level
    log_json     : JSON logs (None = auto-detect from tty)
    busy_timeout : Seconds SQLite waits on a locked database
    foreign_keys : Enable ``PRAGMA foreign_keys``
    init_schema  : Apply the bundled DDL when a connection is created
    """

    model_config = SettingsConfigDict(
        env_prefix="REELBASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    database_url: str = "memory"
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".reelbase",
        description="Base directory for relative SQLite paths",
    )
    busy_timeout: float = Field(default=5.0, gt=0)
    foreign_keys: bool = True
    init_schema: bool = False

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {value!r}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> ReelbaseSettings:
    """Return the process-wide settings instance."""
    return ReelbaseSettings()


def reset_settings() -> None:
    """Drop the cached settings (tests, reconfiguration)."""
    get_settings.cache_clear()


__all__ = [
    "ReelbaseSettings",
    "get_settings",
    "reset_settings",
]
