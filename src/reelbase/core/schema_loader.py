"""SQL schema loading utilities.

Applies the bundled DDL files (``core/schema/*.sql``) to a connection.
Every statement is ``CREATE … IF NOT EXISTS``, so applying twice is a
no-op.  This is bootstrap for fresh databases and tests, not a migration
tool.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from pathlib import Path

from reelbase.core.logging import get_logger

logger = get_logger(__name__)

# Default schema directory
SCHEMA_DIR = Path(__file__).resolve().parent / "schema"


def _split_sql(sql: str) -> list[str]:
    """Split a SQL script into individual statements.

    Skips comment-only lines; statements end at a line ending in ``;``.
    """
    statements = []
    current = []
    for line in sql.splitlines():
        stripped = line.strip()
        if stripped.startswith("--") or not stripped:
            continue
        current.append(line)
        if stripped.endswith(";"):
            stmt = "\n".join(current).strip()
            if stmt and stmt != ";":
                statements.append(stmt)
            current = []
    if current:
        stmt = "\n".join(current).strip()
        if stmt:
            statements.append(stmt)
    return statements


def get_schema_files(schema_dir: Path | str | None = None) -> list[Path]:
    """Get sorted list of SQL schema files (``00_``, ``01_``, …)."""
    directory = Path(schema_dir) if schema_dir else SCHEMA_DIR
    if not directory.exists():
        return []
    return sorted(directory.glob("*.sql"))


def apply_all_schemas(
    conn: sqlite3.Connection,
    schema_dir: Path | str | None = None,
    *,
    skip_files: Sequence[str] | None = None,
) -> list[str]:
    """Apply all SQL schema files to a database connection.

    Parameters
    ----------
    conn
        Raw SQLite connection (not inside an open transaction).
    schema_dir
        Directory containing ``.sql`` files. Defaults to core/schema/.
    skip_files
        Optional list of filenames to skip.

    Returns
    -------
    list[str]
        List of applied schema filenames.
    """
    skip_set = set(skip_files or [])
    applied = []

    for sql_file in get_schema_files(schema_dir):
        if sql_file.name in skip_set:
            logger.debug("schema_skipped", file=sql_file.name)
            continue

        for statement in _split_sql(sql_file.read_text(encoding="utf-8")):
            conn.execute(statement)
        applied.append(sql_file.name)
        logger.debug("schema_applied", file=sql_file.name)

    conn.commit()
    logger.info("schema_all_applied", count=len(applied))
    return applied


def get_table_list(conn: sqlite3.Connection) -> list[str]:
    """Table names in the database, sorted alphabetically."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' "
        "AND name NOT LIKE 'sqlite_%' ORDER BY name"
    ).fetchall()
    return [row[0] for row in rows]


__all__ = [
    "SCHEMA_DIR",
    "apply_all_schemas",
    "get_schema_files",
    "get_table_list",
]
