"""Database adapters.

Only the embedded SQLite backend is supported; the adapter owns the
connection and draws transaction boundaries, repositories only ever see the
:class:`Transaction` it yields.
"""

from .sqlite import SQLiteAdapter, SqlitePreparedStatement, Transaction
from .types import DatabaseConfig, DatabaseType

__all__ = [
    "DatabaseConfig",
    "DatabaseType",
    "SQLiteAdapter",
    "SqlitePreparedStatement",
    "Transaction",
]
