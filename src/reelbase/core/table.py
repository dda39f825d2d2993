"""Schema descriptors — static column maps for entity tables.

Each entity type declares one :class:`TableSchema` at import time: the
table name, its identity column, and an ordered list of :class:`Column`
entries mapping model attributes to storage columns.  Everything the
generic repository needs (insert column list, row → model conversion,
model → bind parameters) is derived from it once, never by inspecting the
model at call time.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │ TableSchema("scenes", [Column("title"), ...], model=Scene)│
        │                                                          │
        │   insert_columns   → non-identity columns, in order      │
        │   column(field)    → Column (ValidationError if unknown) │
        │   to_params(obj)   → {"title": ..., "rating": ...}       │
        │   from_row(row)    → Scene(id=..., title=..., ...)       │
        └──────────────────────────────────────────────────────────┘

Examples:
    >>> schema = TableSchema("tags", [Column("name", nullable=False)])
    >>> [c.name for c in schema.insert_columns]
    ['name']
    >>> schema.to_params({"name": "outdoor"})
    {'name': 'outdoor'}

Tags:
    schema, descriptor, mapping, reelbase-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from reelbase.core.errors import ValidationError
from reelbase.core.partial import OptionalValue


@dataclass(frozen=True)
class Column:
    """One model attribute ↔ one storage column.

    Attributes:
        field: Attribute name on the model
        name: Column name in the table (defaults to ``field``)
        nullable: Whether NULL may be written
        partial: Whether partial updates may write the column
        insert_only: Written on insert, never by updates (e.g. ``created_at``)
        decode: Optional converter applied to the stored value on read
    """

    field: str
    name: str = ""
    nullable: bool = True
    partial: bool = True
    insert_only: bool = False
    decode: Callable[[Any], Any] | None = None

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.field)


@dataclass(frozen=True)
class TableSchema:
    """Immutable description of an entity table."""

    table: str
    columns: Sequence[Column]
    id_column: str = "id"
    model: type | None = None
    id_field: str = "id"

    _by_field: dict[str, Column] = field(init=False, repr=False, compare=False)
    _insert_columns: tuple[Column, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        columns = tuple(self.columns)
        object.__setattr__(self, "columns", columns)
        object.__setattr__(self, "_by_field", {c.field: c for c in columns})
        object.__setattr__(
            self,
            "_insert_columns",
            tuple(c for c in columns if c.name != self.id_column),
        )

    @property
    def insert_columns(self) -> tuple[Column, ...]:
        """All non-identity columns, in declaration order."""
        return self._insert_columns

    @property
    def update_columns(self) -> tuple[Column, ...]:
        """Columns a full update writes."""
        return tuple(c for c in self._insert_columns if not c.insert_only)

    def column(self, field_name: str) -> Column:
        try:
            return self._by_field[field_name]
        except KeyError:
            raise ValidationError(
                f"unknown field {field_name!r} for table {self.table}",
                field=field_name,
            ) from None

    def to_params(self, obj: Any, columns: Sequence[Column] | None = None) -> dict[str, Any]:
        """Bind values keyed by column name; the identity is excluded.

        ``obj`` may be a model instance or a mapping keyed by field name.
        :class:`OptionalValue` wrappers are unwrapped to their value.
        """
        params: dict[str, Any] = {}
        for col in columns if columns is not None else self._insert_columns:
            value = _get_field(obj, col.field, self.table)
            if isinstance(value, OptionalValue):
                value = value.get()
            params[col.name] = value
        return params

    def from_row(self, row: Any) -> Any:
        """Build the model from a row, or a plain dict when there is no model."""
        keys = set(row.keys())
        values: dict[str, Any] = {}
        if self.id_column in keys:
            values[self.id_field] = row[self.id_column]
        for col in self.columns:
            if col.name not in keys:
                continue
            value = row[col.name]
            if col.decode is not None and value is not None:
                value = col.decode(value)
            values[col.field] = value
        if self.model is None:
            return values
        return self.model(**values)


def _get_field(obj: Any, name: str, table: str) -> Any:
    if isinstance(obj, Mapping):
        if name not in obj:
            raise ValidationError(f"missing field {name!r} for table {table}", field=name)
        return obj[name]
    if dataclasses.is_dataclass(obj) or hasattr(obj, name):
        try:
            return getattr(obj, name)
        except AttributeError:
            raise ValidationError(
                f"missing field {name!r} for table {table}", field=name
            ) from None
    raise ValidationError(f"missing field {name!r} for table {table}", field=name)


__all__ = [
    "Column",
    "TableSchema",
]
