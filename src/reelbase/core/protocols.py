"""
Canonical protocol definitions for reelbase.

The storage core never touches a driver connection directly.  Everything it
needs from the ambient transaction is described here, so repositories can be
bound to a real :class:`~reelbase.core.adapters.sqlite.Transaction` or to a
test double with the same shape.

Architecture:
    ::

        protocols.py
        ├── Connection          — what a repository consumes from a transaction
        ├── PreparedStatement   — reusable statement returned by prepare()
        └── Joiner              — anything a table can be joined onto

    Consumers:
        query.py, repository.py, relations.py, query_builder.py

Guardrails:
    ❌ DON'T: Hold a pooled connection in a repository
    ✅ DO: Hold the transaction (a ``Connection``) for the call's duration

    ❌ DON'T: Commit or roll back from a repository
    ✅ DO: Leave the lifecycle to the caller's ``transaction()`` scope

Tags:
    protocol, connection, transaction, reelbase-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable

Params = Sequence[Any] | dict[str, Any]


@runtime_checkable
class PreparedStatement(Protocol):
    """A statement compiled once and executed with many argument sets."""

    sql: str

    def execute(self, *args: Any) -> Any:
        """Execute the statement with positional arguments."""
        ...

    def close(self) -> None:
        """Release the statement."""
        ...


@runtime_checkable
class Connection(Protocol):
    """
    The operations a repository consumes from the ambient transaction.

    Architecture:
        ::

            Connection Protocol:
            ┌────────────────────────────────────────────────────────┐
            │ execute(sql, params)     → cursor (DML / DDL)          │
            │ executemany(sql, list)   → cursor                      │
            │ query(sql, params)       → cursor over result rows     │
            │ query_one(sql, params)   → first row or None           │
            │ prepare(sql)             → PreparedStatement           │
            │ cancel()                 → interrupt the running stmt  │
            └────────────────────────────────────────────────────────┘

    Rows must support access by column name (``row["id"]``) and by index.
    """

    def execute(self, sql: str, params: Params = ()) -> Any:
        ...

    def executemany(self, sql: str, params: list[Sequence[Any]]) -> Any:
        ...

    def query(self, sql: str, params: Params = ()) -> Any:
        ...

    def query_one(self, sql: str, params: Params = ()) -> Any:
        ...

    def prepare(self, sql: str) -> PreparedStatement:
        ...

    def cancel(self) -> None:
        ...


class Joiner(Protocol):
    """Something a table can be LEFT or INNER joined onto."""

    def add_left_join(self, table: str, as_: str, on_clause: str) -> None:
        ...

    def add_inner_join(self, table: str, as_: str, on_clause: str) -> None:
        ...


__all__ = [
    "Params",
    "Connection",
    "PreparedStatement",
    "Joiner",
]
