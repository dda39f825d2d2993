"""Tests for ``reelbase.core.schema_loader``."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from reelbase.core.schema_loader import (
    SCHEMA_DIR,
    _split_sql,
    apply_all_schemas,
    get_schema_files,
    get_table_list,
)


class TestSplitSql:
    def test_skips_comments_and_blanks(self):
        sql = "-- header\n\nCREATE TABLE a (x INT);\n-- note\nCREATE TABLE b (\n  y INT\n);\n"
        assert _split_sql(sql) == ["CREATE TABLE a (x INT);", "CREATE TABLE b (\n  y INT\n);"]

    def test_trailing_statement_without_semicolon(self):
        assert _split_sql("SELECT 1") == ["SELECT 1"]


class TestSchemaFiles:
    def test_bundled_files_present(self):
        files = get_schema_files()
        assert files
        assert all(f.parent == SCHEMA_DIR for f in files)

    def test_missing_dir(self, tmp_path: Path):
        assert get_schema_files(tmp_path / "nope") == []


class TestApply:
    def test_apply_is_idempotent(self):
        conn = sqlite3.connect(":memory:")
        first = apply_all_schemas(conn)
        second = apply_all_schemas(conn)
        assert first == second == ["00_media.sql"]
        assert "scene_urls" in get_table_list(conn)

    def test_skip_files(self):
        conn = sqlite3.connect(":memory:")
        assert apply_all_schemas(conn, skip_files=["00_media.sql"]) == []
        assert get_table_list(conn) == []

    def test_custom_dir(self, tmp_path: Path):
        (tmp_path / "01_extra.sql").write_text("CREATE TABLE IF NOT EXISTS extra (id INTEGER);\n")
        conn = sqlite3.connect(":memory:")
        assert apply_all_schemas(conn, tmp_path) == ["01_extra.sql"]
        assert get_table_list(conn) == ["extra"]
