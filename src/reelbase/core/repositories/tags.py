"""Tag repository — tags, aliases and the parent/child hierarchy.

The hierarchy is the self-referential ``tags_relations`` table.  Walks over
it (descendants, the ``parents`` search filter) are recursive CTEs built by
:func:`~reelbase.core.query_builder.hierarchy_cte`; ``UNION`` de-duplicates
rows, so a cycle in the data does not loop forever.

Tags:
    reelbase, repository, tags, hierarchy, recursive-cte

Doc-Types:
    api-reference
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence

from reelbase.core.dialect import Dialect
from reelbase.core.models.tags import Tag, TagPartial
from reelbase.core.partial import OptionalValue
from reelbase.core.protocols import Connection
from reelbase.core.query_builder import (
    CriterionModifier,
    FindFilter,
    MultiCriterion,
    hierarchy_cte,
)
from reelbase.core.relations import JoinRepository, StringRepository
from reelbase.core.repository import EntityRepository
from reelbase.core.table import Column, TableSchema
from reelbase.core.timestamps import sql_timestamp

TAGS = TableSchema(
    "tags",
    [
        Column("name", nullable=False),
        Column("description"),
        Column("favorite", nullable=False, decode=bool),
        Column("ignore_auto_tag", nullable=False, decode=bool),
        Column("created_at", nullable=False, insert_only=True),
        Column("updated_at", nullable=False),
    ],
    model=Tag,
)

RELATIONS_TABLE = "tags_relations"
ALIASES_TABLE = "tag_aliases"

SORTABLE = {
    "name": "tags.name",
    "created_at": "tags.created_at",
    "updated_at": "tags.updated_at",
}


class TagRepository(EntityRepository):
    """CRUD for ``tags`` plus aliases and parent/child links."""

    def __init__(self, tx: Connection, dialect: Dialect | str | None = None) -> None:
        super().__init__(tx, TAGS, dialect)
        self.parents = JoinRepository(tx, RELATIONS_TABLE, "child_id", "parent_id", dialect=self.dialect)
        self.children = JoinRepository(tx, RELATIONS_TABLE, "parent_id", "child_id", dialect=self.dialect)
        self.aliases = StringRepository(tx, ALIASES_TABLE, "tag_id", "alias", self.dialect)

    # -- entity ------------------------------------------------------------

    def create(self, tag: Tag) -> Tag:
        return self.insert_object(tag)

    def update_tag(self, tag: Tag) -> Tag:
        """Full update of ``tag`` (by ``tag.id``); returns the stored row."""
        tag = dataclasses.replace(tag, updated_at=sql_timestamp())
        self.update(tag.id, tag)
        return self.find(tag.id)

    def update_partial(self, id: int, partial: TagPartial) -> Tag:
        if not partial.updated_at.present:
            partial = dataclasses.replace(partial, updated_at=OptionalValue.of(sql_timestamp()))
        self.update(id, partial, partial=True)
        return self.find(id)

    def destroy_tags(self, ids: Sequence[int]) -> None:
        self.destroy_existing(ids)

    def find_by_name(self, name: str) -> Tag | None:
        """Case-insensitive lookup by name, then by alias.

        A tag whose name matches wins over another tag carrying that alias.
        """
        by_name = "SELECT tags.* FROM tags WHERE tags.name = ? COLLATE NOCASE LIMIT 1"
        tag = self.query_struct(by_name, (name,), self.schema.from_row)
        if tag is not None:
            return tag
        by_alias = (
            "SELECT tags.* FROM tags "
            f"INNER JOIN {ALIASES_TABLE} a ON a.tag_id = tags.id "
            "WHERE a.alias = ? COLLATE NOCASE ORDER BY tags.id LIMIT 1"
        )
        return self.query_struct(by_alias, (name,), self.schema.from_row)

    # -- aliases -----------------------------------------------------------

    def get_aliases(self, id: int) -> list[str]:
        return self.aliases.get(id)

    def update_aliases(self, id: int, aliases: Sequence[str]) -> None:
        self.aliases.replace(id, aliases)

    # -- hierarchy ---------------------------------------------------------

    def get_parent_ids(self, id: int) -> list[int]:
        return self.parents.get_ids(id)

    def get_child_ids(self, id: int) -> list[int]:
        return self.children.get_ids(id)

    def update_parent_ids(self, id: int, parent_ids: Sequence[int]) -> None:
        self.parents.replace(id, parent_ids)

    def update_child_ids(self, id: int, child_ids: Sequence[int]) -> None:
        self.children.replace(id, child_ids)

    def find_all_descendant_ids(self, ids: Sequence[int], depth: int = -1) -> list[int]:
        """``ids`` plus every tag below them, at most ``depth`` levels down.

        ``depth=-1`` walks the whole hierarchy.
        """
        if not ids:
            return []
        cte, args = hierarchy_cte("descendants", ids, depth, RELATIONS_TABLE)
        query = f"WITH RECURSIVE {cte} SELECT DISTINCT id FROM descendants ORDER BY id"
        return self.run_ids_query(query, args)

    # -- search --------------------------------------------------------------

    def query_tags(
        self,
        name: str | None = None,
        parents: MultiCriterion | None = None,
        find_filter: FindFilter | None = None,
    ) -> tuple[list[int], int]:
        """Search tags; returns ``(page ids, total count)``.

        ``name`` matches a substring of the name.  ``parents`` matches
        tags below the given tags; its ``depth`` counts extra levels under
        the direct children (``-1`` for all).
        """
        find_filter = find_filter or FindFilter()
        qb = self.new_query()

        if name:
            qb.add_where("tags.name LIKE ?", args=[f"%{name}%"])

        if parents is not None and parents.value:
            cte, cte_args = hierarchy_cte("parent_tree", parents.value, parents.depth, RELATIONS_TABLE)
            qb.add_with(cte, args=cte_args, recursive=True)
            below = (
                f"SELECT r.child_id FROM {RELATIONS_TABLE} r "
                "INNER JOIN parent_tree ON r.parent_id = parent_tree.id"
            )
            if parents.modifier is CriterionModifier.EXCLUDES:
                qb.add_where(f"tags.id NOT IN ({below})")
            elif parents.modifier is CriterionModifier.INCLUDES_ALL:
                qb.add_where(
                    f"tags.id IN (SELECT r.child_id FROM {RELATIONS_TABLE} r "
                    "INNER JOIN parent_tree ON r.parent_id = parent_tree.id "
                    "GROUP BY r.child_id HAVING COUNT(DISTINCT parent_tree.root_id) = ?)",
                    args=[len(set(parents.value))],
                )
            else:
                qb.add_where(f"tags.id IN ({below})")

        qb.sort_and_pagination = find_filter.sort_and_pagination("tags", SORTABLE)
        return qb.find_ids()
