"""SQLite database adapter and transaction handle.

:class:`SQLiteAdapter` owns the single ``sqlite3.Connection`` and opens
transaction scopes on it.  The object yielded by :meth:`SQLiteAdapter.transaction`
is a :class:`Transaction`, which satisfies the
:class:`~reelbase.core.protocols.Connection` protocol and is what every
repository is bound to.

Usage::

    adapter = SQLiteAdapter(":memory:")
    with adapter.transaction() as tx:
        repo = EntityRepository(tx, SCENES)
        repo.insert(scene)
    # committed here, rolled back if the block raised
"""

from __future__ import annotations

import sqlite3
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Sequence

from reelbase.core.errors import DatabaseConnectionError, QueryCancelledError, StoreError
from reelbase.core.logging import LogContext, get_logger
from reelbase.core.protocols import Params

from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)


class SqlitePreparedStatement:
    """A statement executed repeatedly on one cursor.

    ``sqlite3`` compiles and caches statements per connection; keeping one
    cursor per prepared statement lets repeated executions reuse it.
    """

    def __init__(self, tx: Transaction, sql: str) -> None:
        self.sql = sql
        self._tx = tx
        self._cursor: sqlite3.Cursor | None = tx.raw.cursor()

    def execute(self, *args: Any) -> sqlite3.Cursor:
        if self._cursor is None:
            raise StoreError(f"prepared statement is closed: {self.sql}", statement=self.sql)
        self._tx.check_cancelled(self.sql, args)
        return self._cursor.execute(self.sql, args)

    def close(self) -> None:
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None

    def __enter__(self) -> SqlitePreparedStatement:
        return self

    def __exit__(self, *args) -> None:
        self.close()


class Transaction:
    """Adapter: one open SQLite transaction → ``Connection`` protocol.

    The transaction does not commit or roll back itself; that belongs to
    the ``transaction()`` scope that created it.
    """

    def __init__(self, conn: sqlite3.Connection, tx_id: str | None = None) -> None:
        self._conn = conn
        self.tx_id = tx_id or uuid.uuid4().hex[:12]
        self._cancelled = False

    # -- Connection protocol -----------------------------------------------

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        self.check_cancelled(sql, params)
        return self._conn.execute(sql, params)

    def executemany(self, sql: str, params: list[Sequence[Any]]) -> sqlite3.Cursor:
        self.check_cancelled(sql, params)
        return self._conn.executemany(sql, params)

    def query(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        return self.execute(sql, params)

    def query_one(self, sql: str, params: Params = ()) -> sqlite3.Row | None:
        cursor = self.execute(sql, params)
        try:
            return cursor.fetchone()
        finally:
            cursor.close()

    def prepare(self, sql: str) -> SqlitePreparedStatement:
        self.check_cancelled(sql, ())
        return SqlitePreparedStatement(self, sql)

    def cancel(self) -> None:
        """Interrupt the running statement and refuse further statements."""
        self._cancelled = True
        self._conn.interrupt()

    # -- convenience -------------------------------------------------------

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def check_cancelled(self, sql: str, params: Any) -> None:
        if self._cancelled:
            raise QueryCancelledError(
                f"transaction {self.tx_id} was cancelled", statement=sql, params=params
            )

    @property
    def raw(self) -> sqlite3.Connection:
        """Access the underlying ``sqlite3.Connection`` (e.g. for pragmas)."""
        return self._conn

    def __repr__(self) -> str:
        return f"Transaction(tx_id={self.tx_id!r})"


class SQLiteAdapter:
    """
    SQLite database adapter.

    Opens the connection in autocommit mode (``isolation_level=None``) and
    issues ``BEGIN`` / ``COMMIT`` / ``ROLLBACK`` explicitly, so the only
    transaction boundaries are the ones :meth:`transaction` draws.
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        readonly: bool = False,
        timeout: float = 5.0,
        foreign_keys: bool = True,
        **kwargs: Any,
    ):
        self._config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            timeout=timeout,
            readonly=readonly,
            foreign_keys=foreign_keys,
            options=kwargs,
        )
        self._conn: sqlite3.Connection | None = None

    @property
    def db_type(self) -> DatabaseType:
        return self._config.db_type

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    def connect(self) -> None:
        """Connect to SQLite database."""
        path = self._config.to_connection_string()
        uri = path.startswith("file:")

        try:
            self._conn = sqlite3.connect(
                path,
                timeout=self._config.timeout,
                check_same_thread=False,
                isolation_level=None,
                uri=uri,
            )
            self._conn.row_factory = sqlite3.Row

            if self._config.foreign_keys:
                self._conn.execute("PRAGMA foreign_keys = ON")

            if self._config.readonly:
                self._conn.execute("PRAGMA query_only = ON")

        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ) from e

        logger.debug("database_connected", path=path)

    def disconnect(self) -> None:
        """Close SQLite connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def get_connection(self) -> sqlite3.Connection:
        """Get the SQLite connection, connecting on first use."""
        if self._conn is None:
            self.connect()
        assert self._conn is not None
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """Open a transaction scope.

        Commits when the block exits normally and rolls back when it raises.
        Nested scopes are refused; the layer assumes one transaction at a
        time per connection.
        """
        conn = self.get_connection()
        if conn.in_transaction:
            raise StoreError("a transaction is already open on this connection")

        tx = Transaction(conn)
        with LogContext(tx_id=tx.tx_id):
            conn.execute("BEGIN")
            try:
                yield tx
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                logger.warning("transaction_rolled_back", cancelled=tx.cancelled)
                raise
            else:
                if tx.cancelled:
                    if conn.in_transaction:
                        conn.execute("ROLLBACK")
                    raise QueryCancelledError(f"transaction {tx.tx_id} was cancelled")
                conn.execute("COMMIT")

    def __enter__(self) -> SQLiteAdapter:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()


__all__ = [
    "SQLiteAdapter",
    "SqlitePreparedStatement",
    "Transaction",
]
