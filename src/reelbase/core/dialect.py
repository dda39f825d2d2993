"""SQL dialect abstraction for the storage core.

Repositories render their statements through a ``Dialect`` so placeholder
style, identifier quoting and conflict handling live in one place.  SQLite
is the only backend the layer runs on; the protocol keeps the SQL fragments
out of repository code.

Examples:
    >>> d = SQLiteDialect()
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> d.in_binding(2)
    '(?, ?)'
    >>> d.quote("primary")
    '"primary"'

Tags:
    dialect, sql, sqlite, reelbase-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a SQL fragment (or full statement) valid for the
    target database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    def named_placeholder(self, name: str) -> str:
        """Named placeholder bound from a mapping (``:name``)."""
        ...

    def in_binding(self, count: int) -> str:
        """Parenthesised placeholder list for ``IN`` predicates."""
        ...

    def quote(self, identifier: str) -> str:
        """Quote an identifier that may collide with a keyword."""
        ...

    def insert_or_ignore(
        self, table: str, columns: Sequence[str], conflict_columns: Sequence[str]
    ) -> str:
        """``INSERT … ON CONFLICT (…) DO NOTHING``."""
        ...


class SQLiteDialect:
    """SQLite dialect — ``?`` placeholders, ``"`` quoted identifiers."""

    @property
    def name(self) -> str:
        return "sqlite"

    # -- Placeholders ------------------------------------------------------

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def named_placeholder(self, name: str) -> str:
        return f":{name}"

    def in_binding(self, count: int) -> str:
        return f"({self.placeholders(count)})"

    # -- Identifiers -------------------------------------------------------

    def quote(self, identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    # -- DML ---------------------------------------------------------------

    def insert_or_ignore(
        self, table: str, columns: Sequence[str], conflict_columns: Sequence[str]
    ) -> str:
        cols = ", ".join(columns)
        ph = self.placeholders(len(columns))
        keys = ", ".join(conflict_columns)
        return f"INSERT INTO {table} ({cols}) VALUES ({ph}) ON CONFLICT ({keys}) DO NOTHING"


# =========================================================================
# Registry / Factory
# =========================================================================

_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower()
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. Supported: {sorted(_DIALECTS)}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation (e.g. a test double)."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "get_dialect",
    "register_dialect",
]
