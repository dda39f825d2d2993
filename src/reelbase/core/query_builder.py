"""Search-query state: builder, paging filter, and criteria.

A :class:`QueryBuilder` accumulates the pieces of one paged search
(``SELECT DISTINCT <table>.id FROM <table>`` plus joins, WHERE/HAVING
clauses, CTEs and bind arguments) and hands them to
:meth:`~reelbase.core.query.QueryExecutor.execute_find_query`.

Bind arguments are kept in three ordered buckets (CTE, WHERE, HAVING)
because that is the order their placeholders appear in the rendered SQL;
callers can add clauses in any order.

Examples:
    >>> qb = executor.new_query()
    >>> qb.add_where("scenes.title LIKE ?", args=["%beach%"])
    >>> qb.sort_and_pagination = FindFilter(page=2, per_page=10).sort_and_pagination(
    ...     "scenes", {"title": "scenes.title"})
    >>> ids, count = qb.find_ids()

Tags:
    query-builder, pagination, filter, criteria, reelbase-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from reelbase.core.dialect import get_dialect
from reelbase.core.errors import ValidationError

if TYPE_CHECKING:
    from reelbase.core.query import QueryExecutor

_DIALECT = get_dialect("sqlite")


def in_binding(count: int) -> str:
    """``(?, ?, …)`` for an ``IN`` predicate with ``count`` values."""
    if count < 1:
        raise ValidationError("IN list needs at least one value", field="count", value=count)
    return _DIALECT.in_binding(count)


# =============================================================================
# QueryBuilder
# =============================================================================


@dataclass
class _Join:
    kind: str
    table: str
    as_: str
    on_clause: str

    @property
    def alias(self) -> str:
        return self.as_ or self.table

    def render(self) -> str:
        alias = f" AS {self.as_}" if self.as_ else ""
        return f" {self.kind} JOIN {self.table}{alias} ON {self.on_clause}"


class QueryBuilder:
    """Append-only state of one paged search over ``executor.table``."""

    def __init__(self, executor: QueryExecutor) -> None:
        self.executor = executor
        self.body = f"SELECT DISTINCT {executor.table}.{executor.id_column} FROM {executor.table}"
        self.joins: list[_Join] = []
        self.where_clauses: list[str] = []
        self.having_clauses: list[str] = []
        self.with_clauses: list[str] = []
        self.recursive_with = False
        self.sort_and_pagination = ""
        self._with_args: list[Any] = []
        self._where_args: list[Any] = []
        self._having_args: list[Any] = []

    @property
    def args(self) -> list[Any]:
        """Bind arguments in placeholder order (CTEs, WHERE, HAVING)."""
        return [*self._with_args, *self._where_args, *self._having_args]

    def add_where(self, *clauses: str, args: Sequence[Any] = ()) -> None:
        self.where_clauses.extend(c for c in clauses if c)
        self._where_args.extend(args)

    def add_having(self, *clauses: str, args: Sequence[Any] = ()) -> None:
        self.having_clauses.extend(c for c in clauses if c)
        self._having_args.extend(args)

    def add_with(self, *clauses: str, args: Sequence[Any] = (), recursive: bool = False) -> None:
        self.with_clauses.extend(c for c in clauses if c)
        self._with_args.extend(args)
        if recursive:
            self.recursive_with = True

    def add_arg(self, *args: Any) -> None:
        """Append WHERE arguments for clauses added without them."""
        self._where_args.extend(args)

    def add_left_join(self, table: str, as_: str, on_clause: str) -> None:
        self._add_join("LEFT", table, as_, on_clause)

    def add_inner_join(self, table: str, as_: str, on_clause: str) -> None:
        self._add_join("INNER", table, as_, on_clause)

    def _add_join(self, kind: str, table: str, as_: str, on_clause: str) -> None:
        join = _Join(kind, table, as_, on_clause)
        if any(j.alias == join.alias for j in self.joins):
            return
        self.joins.append(join)

    def body_sql(self) -> str:
        return self.body + "".join(j.render() for j in self.joins)

    def find_ids(self) -> tuple[list[int], int]:
        """Run the search; returns ``(page ids, total count)``."""
        return self.executor.execute_find_query(
            self.body_sql(),
            self.args,
            self.sort_and_pagination,
            self.where_clauses,
            self.having_clauses,
            self.with_clauses,
            self.recursive_with,
        )


# =============================================================================
# Paging
# =============================================================================

_DIRECTIONS = ("ASC", "DESC")


@dataclass(frozen=True)
class FindFilter:
    """Page, page size and sort of a search.

    ``per_page=-1`` returns every row on one page.  The identity column is
    always appended as a tie-breaker so rows with equal sort values land on
    exactly one page.
    """

    page: int = 1
    per_page: int = 25
    sort: str | None = None
    direction: str = "ASC"

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValidationError("page must be >= 1", field="page", value=self.page)
        if self.per_page == 0 or self.per_page < -1:
            raise ValidationError(
                "per_page must be positive or -1", field="per_page", value=self.per_page
            )
        direction = self.direction.upper()
        if direction not in _DIRECTIONS:
            raise ValidationError(
                "direction must be ASC or DESC", field="direction", value=self.direction
            )
        object.__setattr__(self, "direction", direction)

    @property
    def all_pages(self) -> bool:
        return self.per_page == -1

    def sort_and_pagination(
        self,
        table: str,
        sortable: Mapping[str, str],
        id_column: str = "id",
    ) -> str:
        """Render `` ORDER BY … LIMIT … OFFSET …``.

        ``sortable`` maps accepted sort names to SQL expressions.
        """
        tie_breaker = f"{table}.{id_column} {self.direction}"
        if self.sort is None:
            order = f" ORDER BY {tie_breaker}"
        else:
            if self.sort not in sortable:
                raise ValidationError(
                    f"invalid sort {self.sort!r} for {table}", field="sort", value=self.sort
                )
            order = f" ORDER BY {sortable[self.sort]} {self.direction}, {tie_breaker}"

        if self.all_pages:
            return order
        offset = (self.page - 1) * self.per_page
        return f"{order} LIMIT {self.per_page} OFFSET {offset}"


# =============================================================================
# Criteria
# =============================================================================


class CriterionModifier(str, Enum):
    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"
    BETWEEN = "BETWEEN"
    IS_NULL = "IS_NULL"
    NOT_NULL = "NOT_NULL"
    INCLUDES = "INCLUDES"
    INCLUDES_ALL = "INCLUDES_ALL"
    EXCLUDES = "EXCLUDES"


_INT_OPERATORS = {
    CriterionModifier.EQUALS: "=",
    CriterionModifier.NOT_EQUALS: "!=",
    CriterionModifier.GREATER_THAN: ">",
    CriterionModifier.LESS_THAN: "<",
}


@dataclass(frozen=True)
class IntCriterion:
    """Comparison of an integer expression against ``value`` (and ``value2``)."""

    value: int
    modifier: CriterionModifier = CriterionModifier.EQUALS
    value2: int | None = None

    def to_sql(self, expression: str) -> tuple[str, list[Any]]:
        if self.modifier in _INT_OPERATORS:
            return f"{expression} {_INT_OPERATORS[self.modifier]} ?", [self.value]
        if self.modifier is CriterionModifier.BETWEEN:
            if self.value2 is None:
                raise ValidationError("BETWEEN needs value2", field="value2")
            return f"{expression} BETWEEN ? AND ?", [self.value, self.value2]
        if self.modifier is CriterionModifier.IS_NULL:
            return f"{expression} IS NULL", []
        if self.modifier is CriterionModifier.NOT_NULL:
            return f"{expression} IS NOT NULL", []
        raise ValidationError(
            f"modifier {self.modifier.value} is not valid for an integer",
            field="modifier",
            value=self.modifier,
        )


_MULTI_MODIFIERS = (
    CriterionModifier.INCLUDES,
    CriterionModifier.INCLUDES_ALL,
    CriterionModifier.EXCLUDES,
)


@dataclass(frozen=True)
class MultiCriterion:
    """Match against a set of related ids, optionally through a hierarchy.

    ``depth`` counts levels below the given ids: ``0`` is the ids alone,
    ``-1`` is every descendant.
    """

    value: Sequence[int] = field(default_factory=tuple)
    modifier: CriterionModifier = CriterionModifier.INCLUDES
    depth: int = 0

    def __post_init__(self) -> None:
        if self.modifier not in _MULTI_MODIFIERS:
            raise ValidationError(
                f"modifier {self.modifier.value} is not valid for a multi criterion",
                field="modifier",
                value=self.modifier,
            )
        if self.depth < -1:
            raise ValidationError("depth must be >= -1", field="depth", value=self.depth)
        object.__setattr__(self, "value", tuple(self.value))


def hierarchy_cte(
    name: str,
    ids: Sequence[int],
    depth: int,
    relations_table: str,
    parent_column: str = "parent_id",
    child_column: str = "child_id",
) -> tuple[str, list[Any]]:
    """Recursive CTE ``name(root_id, id)`` over a parent/child relation.

    Each row pairs one of ``ids`` (``root_id``) with itself or a
    descendant (``id``) at most ``depth`` levels down, every level when
    ``depth`` is ``-1``.  Must be rendered with ``WITH RECURSIVE``.
    """
    if not ids:
        raise ValidationError("hierarchy needs at least one root id", field="ids")
    args: list[Any] = list(ids)
    roots = "VALUES " + ", ".join("(?)" for _ in ids)
    if depth == -1:
        sql = (
            f"{name}(root_id, id) AS ("
            f"SELECT column1, column1 FROM ({roots}) "
            f"UNION "
            f"SELECT {name}.root_id, r.{child_column} FROM {relations_table} r "
            f"INNER JOIN {name} ON r.{parent_column} = {name}.id)"
        )
        return sql, args

    sql = (
        f"{name}(root_id, id, depth) AS ("
        f"SELECT column1, column1, 0 FROM ({roots}) "
        f"UNION "
        f"SELECT {name}.root_id, r.{child_column}, {name}.depth + 1 FROM {relations_table} r "
        f"INNER JOIN {name} ON r.{parent_column} = {name}.id "
        f"WHERE {name}.depth < ?)"
    )
    args.append(depth)
    return sql, args


__all__ = [
    "CriterionModifier",
    "FindFilter",
    "IntCriterion",
    "MultiCriterion",
    "QueryBuilder",
    "hierarchy_cte",
    "in_binding",
]
