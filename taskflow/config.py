"""Configuration settings management for taskflow.

This module provides hierarchical configuration using pydantic-settings with
field validation and environment variable support.

Features:
- Nested BaseSettings sections for the database and the CSV codec
- Environment variables with the TASKFLOW_ prefix and ``__`` nesting
  (e.g. ``TASKFLOW_DATABASE__PATH=/tmp/tasks.sqlite3``)
- ``.env`` file support
- Cached global settings instance
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


MEMORY_DATABASE = ":memory:"


class DatabaseSettings(BaseSettings):
    """SQLite record store configuration."""

    model_config = SettingsConfigDict(env_prefix="TASKFLOW_DATABASE_")

    path: Path = Field(
        Path("taskflow.sqlite3"),
        description="SQLite database file (':memory:' for a private in-memory store)",
    )
    echo_sql: bool = Field(False, description="Enable SQL query logging for debugging")
    busy_timeout_seconds: float = Field(
        30.0, ge=0.0, le=300.0, description="SQLite busy timeout (seconds)"
    )


class CsvSettings(BaseSettings):
    """CSV export/import configuration."""

    model_config = SettingsConfigDict(env_prefix="TASKFLOW_CSV_")

    legacy_format: bool = Field(
        False,
        description="Write and read the unquoted positional format of older exports",
    )


class TaskflowSettings(BaseSettings):
    """Root configuration combining all subsystem settings."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    csv: CsvSettings = Field(default_factory=CsvSettings)

    debug_mode: bool = Field(False, description="Enable debug logging")
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        env_prefix="TASKFLOW_",
        extra="ignore",
        validate_default=True,
        case_sensitive=False,
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the level name and reject unknown levels."""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def effective_log_level(self) -> str:
        """Log level after applying debug mode."""
        return "DEBUG" if self.debug_mode else self.log_level


@lru_cache(maxsize=1)
def get_settings() -> TaskflowSettings:
    """Get cached global settings instance.

    Returns:
        Global TaskflowSettings instance

    """
    return TaskflowSettings()


__all__ = [
    "MEMORY_DATABASE",
    "CsvSettings",
    "DatabaseSettings",
    "TaskflowSettings",
    "get_settings",
]
