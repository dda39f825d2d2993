"""Tests for ``reelbase.core.adapters.sqlite`` — adapter and transactions."""

from __future__ import annotations

import sqlite3
from unittest.mock import patch

import pytest

from reelbase.core.adapters.sqlite import SQLiteAdapter, Transaction
from reelbase.core.adapters.types import DatabaseConfig
from reelbase.core.errors import (
    DatabaseConnectionError,
    InvalidConfigError,
    QueryCancelledError,
    StoreError,
)
from reelbase.core.protocols import Connection


@pytest.fixture
def adapter():
    a = SQLiteAdapter(":memory:")
    a.connect()
    a.get_connection().execute("CREATE TABLE items (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
    yield a
    a.disconnect()


def _names(adapter: SQLiteAdapter) -> list[str]:
    return [r[0] for r in adapter.get_connection().execute("SELECT name FROM items ORDER BY id")]


class TestSQLiteAdapterConnect:
    def test_default_memory(self):
        a = SQLiteAdapter()
        assert a.db_type.value == "sqlite"
        assert a.is_connected is False

    def test_connect_sets_row_factory_and_foreign_keys(self):
        with SQLiteAdapter() as a:
            conn = a.get_connection()
            assert conn.row_factory is sqlite3.Row
            assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        assert a.is_connected is False

    def test_foreign_keys_off(self):
        with SQLiteAdapter(foreign_keys=False) as a:
            assert a.get_connection().execute("PRAGMA foreign_keys").fetchone()[0] == 0

    def test_readonly(self):
        with SQLiteAdapter(readonly=True) as a:
            with pytest.raises(sqlite3.OperationalError):
                a.get_connection().execute("CREATE TABLE x (id INTEGER)")

    def test_connect_failure_wrapped(self):
        with patch("reelbase.core.adapters.sqlite.sqlite3.connect", side_effect=sqlite3.OperationalError("nope")):
            with pytest.raises(DatabaseConnectionError):
                SQLiteAdapter().connect()

    def test_get_connection_connects_lazily(self):
        a = SQLiteAdapter()
        a.get_connection()
        assert a.is_connected
        a.disconnect()

    def test_invalid_timeout(self):
        with pytest.raises(InvalidConfigError):
            DatabaseConfig(timeout=0)


class TestTransaction:
    def test_satisfies_connection_protocol(self, adapter):
        with adapter.transaction() as tx:
            assert isinstance(tx, Connection)

    def test_commit_on_success(self, adapter):
        with adapter.transaction() as tx:
            tx.execute("INSERT INTO items (name) VALUES (?)", ("a",))
        assert _names(adapter) == ["a"]

    def test_rollback_on_exception(self, adapter):
        with pytest.raises(RuntimeError):
            with adapter.transaction() as tx:
                tx.execute("INSERT INTO items (name) VALUES (?)", ("a",))
                raise RuntimeError("abort")
        assert _names(adapter) == []
        assert adapter.get_connection().in_transaction is False

    def test_nested_refused(self, adapter):
        with adapter.transaction():
            with pytest.raises(StoreError):
                with adapter.transaction():
                    pass

    def test_query_one(self, adapter):
        with adapter.transaction() as tx:
            tx.execute("INSERT INTO items (name) VALUES (?)", ("a",))
            assert tx.query_one("SELECT name FROM items")["name"] == "a"
            assert tx.query_one("SELECT name FROM items WHERE id = ?", (99,)) is None

    def test_executemany(self, adapter):
        with adapter.transaction() as tx:
            tx.executemany("INSERT INTO items (name) VALUES (?)", [("a",), ("b",)])
        assert _names(adapter) == ["a", "b"]

    def test_prepared_statement_reused(self, adapter):
        with adapter.transaction() as tx:
            with tx.prepare("INSERT INTO items (name) VALUES (?)") as stmt:
                stmt.execute("a")
                stmt.execute("b")
        assert _names(adapter) == ["a", "b"]

    def test_closed_prepared_statement(self, adapter):
        with adapter.transaction() as tx:
            stmt = tx.prepare("SELECT 1")
            stmt.close()
            with pytest.raises(StoreError):
                stmt.execute()


class TestCancel:
    def test_cancel_refuses_further_statements(self, adapter):
        with pytest.raises(QueryCancelledError):
            with adapter.transaction() as tx:
                tx.execute("INSERT INTO items (name) VALUES (?)", ("a",))
                tx.cancel()
                assert tx.cancelled
                tx.execute("SELECT 1")
        assert _names(adapter) == []

    def test_cancel_without_further_statements_rolls_back(self, adapter):
        with pytest.raises(QueryCancelledError):
            with adapter.transaction() as tx:
                tx.execute("INSERT INTO items (name) VALUES (?)", ("a",))
                tx.cancel()
        assert _names(adapter) == []

    def test_repr(self):
        tx = Transaction(sqlite3.connect(":memory:"), tx_id="abc")
        assert repr(tx) == "Transaction(tx_id='abc')"
