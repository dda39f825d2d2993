"""Database types and configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from reelbase.core.errors import InvalidConfigError


class DatabaseType(str, Enum):
    """Supported database types."""

    SQLITE = "sqlite"


@dataclass
class DatabaseConfig:
    """
    Configuration for an embedded database connection.
    """

    db_type: DatabaseType = DatabaseType.SQLITE

    # SQLite
    path: str | None = None

    # Options
    timeout: float = 5.0
    readonly: bool = False
    foreign_keys: bool = True

    # Extra options (driver-specific)
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise InvalidConfigError("timeout", self.timeout)

    def to_connection_string(self) -> str:
        """Generate connection string for the database type."""
        return self.path or ":memory:"


__all__ = [
    "DatabaseType",
    "DatabaseConfig",
]
