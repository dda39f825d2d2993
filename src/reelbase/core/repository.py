"""Generic repositories over the ambient transaction.

Provides :class:`BaseRepository` (existence checks and deletes keyed by
``(table, id_column)``, shared by entity and relation tables) and
:class:`EntityRepository`, which adds schema-driven insert, fetch and
update for one entity type described by a
:class:`~reelbase.core.table.TableSchema`.

Architecture::

    ┌────────────────────────────────────────────────────────────────────┐
    │ QueryExecutor            tx, table, id_column, dialect              │
    │   └── BaseRepository     exists, destroy, destroy_existing          │
    │         ├── EntityRepository   insert, insert_object, find,         │
    │         │                      find_many, update, count             │
    │         └── relations.*        join / files / string / stash id /   │
    │                                caption tables                       │
    └────────────────────────────────────────────────────────────────────┘

Usage:
    >>> repo = EntityRepository(tx, TAGS)
    >>> tag_id = repo.insert(Tag(name="outdoor"))
    >>> repo.update(tag_id, TagPartial(description=OptionalValue.of("x")), partial=True)
    >>> repo.find(tag_id).description
    'x'

Guardrails:
    ❌ DON'T: Treat ``destroy_existing`` as atomic
    ✅ DO: Know it checks every id, then deletes one id at a time; a
       concurrent delete between the two steps is not detected

Tags:
    repository, crud, partial-update, reelbase-core
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from reelbase.core.dialect import Dialect
from reelbase.core.errors import NotExistError, NotFoundError, ValidationError
from reelbase.core.logging import get_logger
from reelbase.core.partial import OptionalValue
from reelbase.core.protocols import Connection
from reelbase.core.query import QueryExecutor
from reelbase.core.query_builder import in_binding
from reelbase.core.table import TableSchema

logger = get_logger(__name__)

# Keeps IN lists well below SQLite's bound-variable limit.
BATCH_SIZE = 500


def batched(values: Sequence[Any], size: int = BATCH_SIZE) -> Iterable[Sequence[Any]]:
    for start in range(0, len(values), size):
        yield values[start : start + size]


class BaseRepository(QueryExecutor):
    """Existence and delete primitives for any table keyed by ``id_column``."""

    def exists(self, id: Any) -> bool:
        query = self.build_count_query(
            f"SELECT {self.id_column} FROM {self.table} WHERE {self.id_column} = ? LIMIT 1"
        )
        return self.run_count_query(query, (id,)) == 1

    def destroy(self, ids: Iterable[Any]) -> None:
        """Delete every row keyed by each id, one statement per id."""
        query = f"DELETE FROM {self.table} WHERE {self.id_column} = ?"
        destroyed = 0
        for id in ids:
            self.execute(query, (id,))
            destroyed += 1
        logger.debug("entities_destroyed", table=self.table, count=destroyed)

    def destroy_existing(self, ids: Sequence[Any]) -> None:
        """Delete ``ids`` after checking that every one of them exists.

        Raises:
            NotExistError: For the first missing id; nothing is deleted.
        """
        for id in ids:
            if not self.exists(id):
                raise NotExistError.for_id(self.table, self.id_column, id)
        self.destroy(ids)


class EntityRepository(BaseRepository):
    """Schema-driven CRUD for one entity table."""

    def __init__(
        self,
        tx: Connection,
        schema: TableSchema,
        dialect: Dialect | str | None = None,
    ) -> None:
        super().__init__(tx, schema.table, schema.id_column, dialect)
        self.schema = schema

    # -- create ----------------------------------------------------------------

    def insert(self, obj: Any) -> int:
        """Insert ``obj``; returns the identity the store assigned.

        Non-nullable columns given as ``None`` are left out so the column
        default applies.
        """
        nullable = {col.name: col.nullable for col in self.schema.insert_columns}
        params = {
            name: value
            for name, value in self.schema.to_params(obj).items()
            if value is not None or nullable[name]
        }

        if params:
            columns = ", ".join(self.dialect.quote(name) for name in params)
            values = ", ".join(self.dialect.named_placeholder(name) for name in params)
            query = f"INSERT INTO {self.table} ({columns}) VALUES ({values})"
        else:
            query = f"INSERT INTO {self.table} DEFAULT VALUES"

        cursor = self.execute(query, params)
        new_id = cursor.lastrowid
        logger.debug("entity_inserted", table=self.table, id=new_id)
        return new_id

    def insert_object(self, obj: Any) -> Any:
        """Insert ``obj`` and return it re-read from the store."""
        return self.find(self.insert(obj))

    # -- read ------------------------------------------------------------------

    def find(self, id: Any) -> Any:
        """Fetch one entity.

        Raises:
            NotFoundError: No row has that identity.
        """
        return self.get_by_id(id, self.schema.from_row)

    def find_many(self, ids: Sequence[Any]) -> list[Any]:
        """Fetch entities in the order of ``ids``.

        Raises:
            NotFoundError: For the first id with no row.
        """
        found: dict[Any, Any] = {}
        for batch in batched(list(dict.fromkeys(ids))):
            query = (
                f"SELECT * FROM {self.table} "
                f"WHERE {self.table}.{self.id_column} IN {in_binding(len(batch))}"
            )
            for entity in self.query(query, batch, lambda row: row):
                found[entity[self.id_column]] = self.schema.from_row(entity)

        result = []
        for id in ids:
            if id not in found:
                raise NotFoundError.for_id(self.table, self.id_column, id)
            result.append(found[id])
        return result

    def count(self) -> int:
        return self.run_count_query(
            self.build_count_query(f"SELECT {self.id_column} FROM {self.table}"), ()
        )

    # -- update ----------------------------------------------------------------

    def update(self, id: Any, obj: Any, partial: bool = False) -> None:
        """Write ``obj`` over the row with identity ``id``.

        A full update writes every updatable column.  A partial update
        writes only fields that are present: absent :class:`OptionalValue`
        fields and plain ``None`` are skipped, ``OptionalValue.none()``
        writes NULL.  A partial update with nothing present still runs (as
        a statement that changes nothing) once the row is known to exist.

        Raises:
            ValidationError: Explicit NULL for a non-nullable column.
            NotExistError: No row has that identity.
        """
        params = self._partial_params(obj) if partial else self._full_params(obj)

        if not self.exists(id):
            raise NotExistError.for_id(self.table, self.id_column, id)

        id_col = self.dialect.quote(self.id_column)
        if params:
            assignments = ", ".join(
                f"{self.dialect.quote(name)} = {self.dialect.named_placeholder(name)}"
                for name in params
            )
        else:
            assignments = f"{id_col} = {id_col}"

        query = (
            f"UPDATE {self.table} SET {assignments} "
            f"WHERE {self.table}.{id_col} = {self.dialect.named_placeholder('_entity_id')}"
        )
        self.execute(query, {**params, "_entity_id": id})
        logger.debug("entity_updated", table=self.table, id=id, columns=list(params))

    def _full_params(self, obj: Any) -> dict[str, Any]:
        return self.schema.to_params(obj, self.schema.update_columns)

    def _partial_params(self, obj: Any) -> dict[str, Any]:
        params: dict[str, Any] = {}
        for col in self.schema.update_columns:
            if not col.partial:
                continue
            value = getattr(obj, col.field, None) if not isinstance(obj, dict) else obj.get(col.field)
            if isinstance(value, OptionalValue):
                if not value.present:
                    continue
                if value.null and not col.nullable:
                    raise ValidationError(
                        f"{self.table}.{col.name} cannot be set to NULL",
                        field=col.field,
                    )
                params[col.name] = value.get()
            elif value is not None:
                params[col.name] = value
        return params


__all__ = [
    "BATCH_SIZE",
    "BaseRepository",
    "EntityRepository",
    "batched",
]
