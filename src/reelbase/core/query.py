"""Query execution engine shared by every repository.

:class:`QueryExecutor` binds a table name and identity column to the
ambient transaction and provides the statement primitives the repositories
are built from: fetch by identity, count wrapping, id projection, row
iteration, and the two-statement *find* query (COUNT + ids) used by paged
searches.

Architecture:
    ::

        ┌────────────────────────────────────────────────────────────────┐
        │                         QueryExecutor                          │
        │   tx: Connection      table: str      id_column: str           │
        ├────────────────────────────────────────────────────────────────┤
        │ query_func(q, args, fn, single)   ← every read goes through it │
        │   ├── get_by_id / get_all                                      │
        │   ├── query / query_struct / query_simple                      │
        │   └── run_ids_query                                            │
        │ run_count_query(build_count_query(q))                          │
        │ execute_find_query(body, ..., with_, recursive) → (ids, count) │
        │ new_query() → QueryBuilder      join / inner_join(joiner)      │
        └────────────────────────────────────────────────────────────────┘

    ``execute_find_query`` issues two statements against the caller's
    transaction: the COUNT-wrapped body and the body plus sort/pagination.
    They see the same snapshot only as far as the transaction's isolation
    gives it; nothing here adds a stronger guarantee.

Guardrails:
    ❌ DON'T: Iterate a cursor without closing it
    ✅ DO: Use :meth:`QueryExecutor.query_func`, which always closes it

    ❌ DON'T: Raise raw ``sqlite3`` errors
    ✅ DO: Let :func:`~reelbase.core.errors.translate_error` attach the SQL

Tags:
    query, executor, sqlite, pagination, reelbase-core

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable, Sequence
from typing import Any

from reelbase.core.dialect import Dialect, get_dialect
from reelbase.core.errors import (
    NotFoundError,
    StoreError,
    categorize_error,
    is_retryable,
    translate_error,
)
from reelbase.core.logging import get_logger
from reelbase.core.protocols import Connection, Joiner, Params
from reelbase.core.query_builder import QueryBuilder

logger = get_logger(__name__)

RowFunc = Callable[[Any], None]


def statement_failed(error: sqlite3.Error, sql: str, params: Any) -> StoreError:
    """Log a failed statement and return the translated error to raise."""
    translated = translate_error(error, sql, params)
    logger.warning(
        "query_failed",
        sql=sql,
        params=params,
        error=str(error),
        category=categorize_error(translated).value,
        retryable=is_retryable(translated),
    )
    return translated


_SCAN_ERRORS = (KeyError, IndexError, TypeError, ValueError)


class QueryExecutor:
    """Statement primitives bound to one table and the ambient transaction.

    Parameters:
        tx: The open transaction (anything satisfying :class:`Connection`).
        table: Table the executor reads and writes.
        id_column: Column holding the owning identity.  For entity tables
            this is ``id``; for relation tables it is the owner's foreign
            key (e.g. ``scene_id``).
        dialect: SQL dialect, or the name of a registered one; defaults to
            the registered ``sqlite`` dialect.
    """

    def __init__(
        self,
        tx: Connection,
        table: str,
        id_column: str = "id",
        dialect: Dialect | str | None = None,
    ) -> None:
        self.tx = tx
        self.table = table
        self.id_column = id_column
        if dialect is None or isinstance(dialect, str):
            dialect = get_dialect(dialect or "sqlite")
        self.dialect: Dialect = dialect

    # -- statement execution -------------------------------------------------

    def execute(self, sql: str, params: Params = ()) -> Any:
        """Run one statement, translating driver errors."""
        try:
            cursor = self.tx.execute(sql, params)
        except sqlite3.Error as e:
            raise statement_failed(e, sql, params) from e
        logger.debug("query_executed", sql=sql, params=params)
        return cursor

    def query_func(
        self,
        query: str,
        args: Params,
        fn: RowFunc,
        single: bool = False,
    ) -> None:
        """Run ``query`` and call ``fn`` for each row.

        Stops after the first row when ``single``.  Errors raised by the
        driver while iterating are surfaced like statement errors; errors
        raised by ``fn`` converting a row become :class:`StoreError`.  The
        cursor is closed on every path.
        """
        cursor = self.execute(query, args)
        try:
            for row in cursor:
                fn(row)
                if single:
                    break
        except sqlite3.Error as e:
            raise statement_failed(e, query, args) from e
        except _SCAN_ERRORS as e:
            raise StoreError(
                f"scanning row: {query}: {e}", statement=query, params=args, cause=e
            ) from e
        finally:
            cursor.close()

    # -- fetch by identity ---------------------------------------------------

    def get_by_id(self, id: Any, factory: Callable[[Any], Any] | None = None) -> Any:
        """Fetch the single row with identity ``id``.

        Raises:
            NotFoundError: No row has that identity.
        """
        query = f"SELECT * FROM {self.table} WHERE {self.table}.{self.id_column} = ? LIMIT 1"
        found: list[Any] = []

        def scan(row: Any) -> None:
            found.append(factory(row) if factory is not None else row)

        self.query_func(query, (id,), scan, single=True)
        if not found:
            raise NotFoundError.for_id(self.table, self.id_column, id)
        return found[0]

    def get_all(self, id: Any, fn: RowFunc) -> None:
        """Feed every row owned by ``id`` to ``fn``."""
        query = f"SELECT * FROM {self.table} WHERE {self.table}.{self.id_column} = ?"
        self.query_func(query, (id,), fn)

    # -- counting and id projection --------------------------------------------

    @staticmethod
    def build_count_query(query: str) -> str:
        return f"SELECT COUNT(*) AS count FROM ({query}) AS temp"

    def run_count_query(self, query: str, args: Params) -> int:
        """Run a COUNT statement; no row counts as zero."""
        result = self.query_simple(query, args)
        return int(result) if result is not None else 0

    def run_ids_query(self, query: str, args: Params) -> list[int]:
        """Run a statement projecting ``id``; returns the ids in row order."""
        ids: list[int] = []
        self.query_func(query, args, lambda row: ids.append(row["id"]))
        return ids

    # -- scan shapes ---------------------------------------------------------

    def query(
        self,
        query: str,
        args: Params,
        factory: Callable[[Any], Any],
        out: list[Any] | None = None,
    ) -> list[Any]:
        """Build one element per row with ``factory`` and append it to ``out``."""
        result = out if out is not None else []
        self.query_func(query, args, lambda row: result.append(factory(row)))
        return result

    def query_struct(self, query: str, args: Params, factory: Callable[[Any], Any]) -> Any:
        """Build a value from exactly one row; ``None`` when there is no row."""
        found: list[Any] = []
        self.query_func(query, args, lambda row: found.append(factory(row)), single=True)
        return found[0] if found else None

    def query_simple(self, query: str, args: Params) -> Any:
        """First column of the first row; ``None`` when there is no row."""
        return self.query_struct(query, args, lambda row: row[0])

    # -- find queries ----------------------------------------------------------

    def build_query_body(
        self,
        body: str,
        where_clauses: Sequence[str],
        having_clauses: Sequence[str],
    ) -> str:
        if where_clauses:
            body += " WHERE " + " AND ".join(where_clauses)
        if having_clauses:
            body += f" GROUP BY {self.table}.{self.id_column}"
            body += " HAVING " + " AND ".join(having_clauses)
        return body

    def execute_find_query(
        self,
        body: str,
        args: Params,
        sort_and_pagination: str,
        where_clauses: Sequence[str] = (),
        having_clauses: Sequence[str] = (),
        with_clauses: Sequence[str] = (),
        recursive_with: bool = False,
    ) -> tuple[list[int], int]:
        """Run a search; returns ``(ids for the page, total matching rows)``."""
        body = self.build_query_body(body, where_clauses, having_clauses)

        with_clause = ""
        if with_clauses:
            recursive = "RECURSIVE " if recursive_with else ""
            with_clause = f"WITH {recursive}{', '.join(with_clauses)} "

        count_query = with_clause + self.build_count_query(body)
        ids_query = with_clause + body + sort_and_pagination

        count = self.run_count_query(count_query, args)
        ids = self.run_ids_query(ids_query, args)
        logger.debug("find_query_executed", table=self.table, count=count, page_ids=len(ids))
        return ids, count

    def new_query(self) -> QueryBuilder:
        """Start a search over this table."""
        return QueryBuilder(self)

    # -- joins -----------------------------------------------------------------

    def join(self, joiner: Joiner, as_: str, parent_id_col: str) -> None:
        """LEFT JOIN this table onto ``joiner`` by ``<table>.<id_column> = parent_id_col``."""
        t = as_ or self.table
        joiner.add_left_join(self.table, as_, f"{t}.{self.id_column} = {parent_id_col}")

    def inner_join(self, joiner: Joiner, as_: str, parent_id_col: str) -> None:
        t = as_ or self.table
        joiner.add_inner_join(self.table, as_, f"{t}.{self.id_column} = {parent_id_col}")


__all__ = [
    "QueryExecutor",
    "RowFunc",
]
