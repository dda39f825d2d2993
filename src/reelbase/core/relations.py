"""Relationship-table repositories.

Owned collections live in their own tables keyed by the owner's id: tag
links, file links with a *primary* flag, URL lists, external ids and
captions.  Each repository here is a :class:`BaseRepository` whose
``id_column`` is the owner column, so ``destroy([owner])`` clears the
owner's whole collection and ``replace`` is *delete all, then insert*.

Architecture:
    ::

        BaseRepository (table, id_column = owner column)
        ├── JoinRepository       owner ↔ foreign id           (scenes_tags)
        ├── FilesRepository      owner ↔ file id + primary    (scenes_files)
        ├── StringRepository     owner → strings              (scene_urls)
        ├── StashIDRepository    owner → (endpoint, stash_id) (scene_stash_ids)
        └── CaptionRepository    file  → captions             (video_captions)

Guardrails:
    ❌ DON'T: Use plain ``insert`` to link idempotently
    ✅ DO: Use ``insert_or_ignore``; it reports which links already existed

    ❌ DON'T: Mark two files primary for one owner
    ✅ DO: Use ``set_primary``; a partial unique index rejects the second

Tags:
    relations, join-table, repository, reelbase-core
"""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from enum import Enum
from typing import Any

from reelbase.core.dialect import Dialect
from reelbase.core.errors import NotExistError
from reelbase.core.logging import get_logger
from reelbase.core.models.files import VideoCaption
from reelbase.core.models.scenes import StashID
from reelbase.core.protocols import Connection
from reelbase.core.query import statement_failed
from reelbase.core.query_builder import in_binding
from reelbase.core.repository import BaseRepository, batched

logger = get_logger(__name__)


class InsertOutcome(str, Enum):
    """Result of linking one foreign id with ``insert_or_ignore``."""

    INSERTED = "INSERTED"
    ALREADY_EXISTS = "ALREADY_EXISTS"


class _RelationRepository(BaseRepository):
    def _execute_prepared(self, sql: str, rows: Sequence[Sequence[Any]]) -> list[int]:
        """Run ``sql`` once per row on one prepared statement; returns rowcounts."""
        counts: list[int] = []
        stmt = self.tx.prepare(sql)
        try:
            for args in rows:
                try:
                    cursor = stmt.execute(*args)
                except sqlite3.Error as e:
                    raise statement_failed(e, sql, args) from e
                counts.append(cursor.rowcount)
        finally:
            stmt.close()
        logger.debug("query_executed", sql=sql, rows=len(counts))
        return counts

    def _execute_many(self, sql: str, rows: list[Sequence[Any]]) -> None:
        if not rows:
            return
        try:
            self.tx.executemany(sql, rows)
        except sqlite3.Error as e:
            raise statement_failed(e, sql, rows) from e
        logger.debug("query_executed", sql=sql, rows=len(rows))


# =============================================================================
# JoinRepository
# =============================================================================


class JoinRepository(_RelationRepository):
    """Owner ↔ foreign-id link table.

    Parameters:
        fk_column: Column holding the foreign id.
        foreign_table: When set, ``get_ids`` inner-joins it so dangling
            links are skipped and ``order_by`` may reference its columns.
        order_by: ORDER BY expression for ``get_ids``.
    """

    def __init__(
        self,
        tx: Connection,
        table: str,
        id_column: str,
        fk_column: str,
        foreign_table: str | None = None,
        order_by: str | None = None,
        dialect: Dialect | str | None = None,
    ) -> None:
        super().__init__(tx, table, id_column, dialect)
        self.fk_column = fk_column
        self.foreign_table = foreign_table
        self.order_by = order_by

    def get_ids(self, id: Any) -> list[int]:
        join = ""
        if self.foreign_table:
            join = (
                f" INNER JOIN {self.foreign_table} "
                f"ON {self.foreign_table}.id = {self.table}.{self.fk_column}"
            )
        query = (
            f"SELECT {self.table}.{self.fk_column} AS id FROM {self.table}{join} "
            f"WHERE {self.table}.{self.id_column} = ?"
        )
        if self.order_by:
            query += f" ORDER BY {self.order_by}"
        return self.run_ids_query(query, (id,))

    def insert(self, id: Any, *foreign_ids: Any) -> None:
        """Link ``foreign_ids``; an existing link raises ConstraintViolationError."""
        sql = f"INSERT INTO {self.table} ({self.id_column}, {self.fk_column}) VALUES (?, ?)"
        self._execute_prepared(sql, [(id, fk) for fk in foreign_ids])

    def insert_or_ignore(self, id: Any, *foreign_ids: Any) -> list[InsertOutcome]:
        """Link ``foreign_ids``, skipping links that already exist."""
        sql = self.dialect.insert_or_ignore(
            self.table, [self.id_column, self.fk_column], [self.id_column, self.fk_column]
        )
        counts = self._execute_prepared(sql, [(id, fk) for fk in foreign_ids])
        return [
            InsertOutcome.INSERTED if count > 0 else InsertOutcome.ALREADY_EXISTS
            for count in counts
        ]

    add_joins = insert_or_ignore

    def destroy_joins(self, id: Any, *foreign_ids: Any) -> None:
        if not foreign_ids:
            return
        query = (
            f"DELETE FROM {self.table} WHERE {self.id_column} = ? "
            f"AND {self.fk_column} IN {in_binding(len(foreign_ids))}"
        )
        self.execute(query, (id, *foreign_ids))

    def replace(self, id: Any, foreign_ids: Sequence[Any]) -> None:
        self.destroy([id])
        self.insert(id, *foreign_ids)


# =============================================================================
# FilesRepository
# =============================================================================


class FilesRepository(_RelationRepository):
    """Owner ↔ file link table with a per-owner primary file."""

    fk_column = "file_id"
    primary_column = "primary"

    def _primary(self) -> str:
        return self.dialect.quote(self.primary_column)

    def get(self, id: Any, primary_only: bool = False) -> list[int]:
        """File ids of ``id``, the primary file first."""
        query = (
            f"SELECT {self.fk_column}, {self._primary()} FROM {self.table} "
            f"WHERE {self.id_column} = ?"
        )
        if primary_only:
            query += f" AND {self._primary()} = 1"

        ret: list[int] = []

        def scan(row: Any) -> None:
            if row[1]:
                ret.insert(0, row[0])
            else:
                ret.append(row[0])

        self.query_func(query, (id,), scan)
        return ret

    def get_many(self, ids: Sequence[Any], primary_only: bool = False) -> list[list[int]]:
        """File ids for each of ``ids``; output order follows ``ids``."""
        id_to_index: dict[Any, list[int]] = {}
        for index, id in enumerate(ids):
            id_to_index.setdefault(id, []).append(index)

        ret: list[list[int]] = [[] for _ in ids]

        def scan(row: Any) -> None:
            owner, file_id, primary = row[0], row[1], row[2]
            for index in id_to_index[owner]:
                if primary:
                    ret[index].insert(0, file_id)
                else:
                    ret[index].append(file_id)

        for batch in batched(list(id_to_index)):
            query = (
                f"SELECT {self.id_column}, {self.fk_column}, {self._primary()} "
                f"FROM {self.table} WHERE {self.id_column} IN {in_binding(len(batch))}"
            )
            if primary_only:
                query += f" AND {self._primary()} = 1"
            self.query_func(query, batch, scan)

        return ret

    def insert(self, id: Any, file_ids: Sequence[Any], first_primary: bool = False) -> None:
        sql = (
            f"INSERT INTO {self.table} ({self.id_column}, {self.fk_column}, {self._primary()}) "
            f"VALUES (?, ?, ?)"
        )
        rows = [(id, fid, first_primary and i == 0) for i, fid in enumerate(file_ids)]
        self._execute_prepared(sql, rows)

    def set_primary(self, id: Any, file_id: Any) -> None:
        """Make ``file_id`` the primary file of ``id`` and demote the others.

        Raises:
            NotExistError: ``file_id`` is not linked to ``id``.
        """
        check = self.build_count_query(
            f"SELECT 1 FROM {self.table} WHERE {self.id_column} = ? AND {self.fk_column} = ?"
        )
        if self.run_count_query(check, (id, file_id)) == 0:
            raise NotExistError.for_id(self.table, self.fk_column, file_id).with_context(
                owner_id=id
            )
        self.execute(
            f"UPDATE {self.table} SET {self._primary()} = 0 "
            f"WHERE {self.id_column} = ? AND {self._primary()} = 1",
            (id,),
        )
        self.execute(
            f"UPDATE {self.table} SET {self._primary()} = 1 "
            f"WHERE {self.id_column} = ? AND {self.fk_column} = ?",
            (id, file_id),
        )


# =============================================================================
# StringRepository
# =============================================================================


class StringRepository(_RelationRepository):
    """Owner → list of strings (URLs, aliases)."""

    def __init__(
        self,
        tx: Connection,
        table: str,
        id_column: str,
        string_column: str,
        dialect: Dialect | str | None = None,
    ) -> None:
        super().__init__(tx, table, id_column, dialect)
        self.string_column = string_column

    def get(self, id: Any) -> list[str]:
        query = (
            f"SELECT {self.string_column} FROM {self.table} "
            f"WHERE {self.id_column} = ? ORDER BY rowid"
        )
        return self.query(query, (id,), lambda row: row[0])

    def insert(self, id: Any, values: Sequence[str]) -> None:
        sql = f"INSERT INTO {self.table} ({self.id_column}, {self.string_column}) VALUES (?, ?)"
        self._execute_many(sql, [(id, v) for v in values])

    def replace(self, id: Any, values: Sequence[str]) -> None:
        self.destroy([id])
        self.insert(id, values)


# =============================================================================
# StashIDRepository
# =============================================================================


class StashIDRepository(_RelationRepository):
    """Owner → external endpoint identifiers."""

    def get(self, id: Any) -> list[StashID]:
        query = (
            f"SELECT endpoint, stash_id FROM {self.table} "
            f"WHERE {self.id_column} = ? ORDER BY rowid"
        )
        return self.query(query, (id,), lambda row: StashID(row["endpoint"], row["stash_id"]))

    def replace(self, id: Any, stash_ids: Sequence[StashID]) -> None:
        self.destroy([id])
        sql = f"INSERT INTO {self.table} ({self.id_column}, endpoint, stash_id) VALUES (?, ?, ?)"
        self._execute_many(sql, [(id, s.endpoint, s.stash_id) for s in stash_ids])


# =============================================================================
# CaptionRepository
# =============================================================================


class CaptionRepository(_RelationRepository):
    """File → caption files."""

    def get(self, id: Any) -> list[VideoCaption]:
        query = (
            f"SELECT language_code, filename, caption_type FROM {self.table} "
            f"WHERE {self.id_column} = ?"
        )
        return self.query(
            query,
            (id,),
            lambda row: VideoCaption(
                language_code=row["language_code"],
                filename=row["filename"],
                caption_type=row["caption_type"],
            ),
        )

    def insert(self, id: Any, caption: VideoCaption) -> None:
        sql = (
            f"INSERT INTO {self.table} ({self.id_column}, language_code, filename, caption_type) "
            f"VALUES (?, ?, ?, ?)"
        )
        self.execute(sql, (id, caption.language_code, caption.filename, caption.caption_type))

    def replace(self, id: Any, captions: Sequence[VideoCaption]) -> None:
        self.destroy([id])
        sql = (
            f"INSERT INTO {self.table} ({self.id_column}, language_code, filename, caption_type) "
            f"VALUES (?, ?, ?, ?)"
        )
        self._execute_many(
            sql,
            [(id, c.language_code, c.filename, c.caption_type) for c in captions],
        )


__all__ = [
    "CaptionRepository",
    "FilesRepository",
    "InsertOutcome",
    "JoinRepository",
    "StashIDRepository",
    "StringRepository",
]
