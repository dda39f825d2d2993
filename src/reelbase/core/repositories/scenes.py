"""Scene repository — scenes and their owned collections.

A scene owns file links (one primary), tag links, URLs and external ids;
each lives in its own relation table and is managed through the matching
repository in :mod:`reelbase.core.relations`.

Search (:meth:`SceneRepository.query_scenes`) composes a
:class:`~reelbase.core.query_builder.QueryBuilder`:

=================  ==========================================================
Filter             SQL
=================  ==========================================================
``title``          ``scenes.title LIKE %title%``
``rating``         :class:`IntCriterion` on ``scenes.rating``
``organized``      ``scenes.organized = ?``
``tags``           recursive CTE over ``tags_relations`` + ``scenes_tags``
``tag_count``      ``LEFT JOIN scenes_tags`` … ``HAVING COUNT(DISTINCT …)``
=================  ==========================================================

Tags:
    reelbase, repository, scenes, search

Doc-Types:
    api-reference
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from dataclasses import dataclass

from reelbase.core.dialect import Dialect
from reelbase.core.logging import get_logger
from reelbase.core.models.scenes import Scene, ScenePartial, StashID
from reelbase.core.partial import OptionalValue
from reelbase.core.protocols import Connection
from reelbase.core.query_builder import (
    CriterionModifier,
    FindFilter,
    IntCriterion,
    MultiCriterion,
    QueryBuilder,
    hierarchy_cte,
)
from reelbase.core.relations import (
    FilesRepository,
    InsertOutcome,
    JoinRepository,
    StashIDRepository,
    StringRepository,
)
from reelbase.core.repository import EntityRepository
from reelbase.core.table import Column, TableSchema
from reelbase.core.timestamps import sql_timestamp

logger = get_logger(__name__)

SCENES = TableSchema(
    "scenes",
    [
        Column("title"),
        Column("code"),
        Column("details"),
        Column("director"),
        Column("date"),
        Column("rating"),
        Column("organized", nullable=False, decode=bool),
        Column("o_counter", nullable=False),
        Column("created_at", nullable=False, insert_only=True),
        Column("updated_at", nullable=False),
    ],
    model=Scene,
)

FILES_TABLE = "scenes_files"
TAGS_TABLE = "scenes_tags"
URLS_TABLE = "scene_urls"
STASH_IDS_TABLE = "scene_stash_ids"
TAG_RELATIONS_TABLE = "tags_relations"

SORTABLE = {
    "title": "scenes.title",
    "date": "scenes.date",
    "rating": "scenes.rating",
    "o_counter": "scenes.o_counter",
    "created_at": "scenes.created_at",
    "updated_at": "scenes.updated_at",
}


@dataclass(frozen=True)
class SceneFilter:
    """Search filter for scenes; unset fields do not filter."""

    title: str | None = None
    rating: IntCriterion | None = None
    organized: bool | None = None
    tags: MultiCriterion | None = None
    tag_count: IntCriterion | None = None


class SceneRepository(EntityRepository):
    """CRUD and search for ``scenes``."""

    def __init__(self, tx: Connection, dialect: Dialect | str | None = None) -> None:
        super().__init__(tx, SCENES, dialect)
        self.files = FilesRepository(tx, FILES_TABLE, "scene_id", self.dialect)
        self.tags = JoinRepository(
            tx,
            TAGS_TABLE,
            "scene_id",
            "tag_id",
            foreign_table="tags",
            order_by="tags.name ASC",
            dialect=self.dialect,
        )
        self.urls = StringRepository(tx, URLS_TABLE, "scene_id", "url", self.dialect)
        self.stash_ids = StashIDRepository(tx, STASH_IDS_TABLE, "scene_id", self.dialect)

    # -- entity ------------------------------------------------------------

    def create(self, scene: Scene, file_ids: Sequence[int] = ()) -> Scene:
        """Insert ``scene`` and link ``file_ids``, the first one as primary."""
        created = self.insert_object(scene)
        if file_ids:
            self.files.insert(created.id, file_ids, first_primary=True)
        logger.debug("scene_created", id=created.id, files=len(file_ids))
        return created

    def update_scene(self, scene: Scene) -> Scene:
        """Full update of ``scene`` (by ``scene.id``); returns the stored row."""
        scene = dataclasses.replace(scene, updated_at=sql_timestamp())
        self.update(scene.id, scene)
        return self.find(scene.id)

    def update_partial(self, id: int, partial: ScenePartial) -> Scene:
        if not partial.updated_at.present:
            partial = dataclasses.replace(partial, updated_at=OptionalValue.of(sql_timestamp()))
        self.update(id, partial, partial=True)
        return self.find(id)

    def destroy_scenes(self, ids: Sequence[int]) -> None:
        """Delete scenes; every owned collection cascades."""
        self.destroy_existing(ids)

    # -- urls ----------------------------------------------------------------

    def get_urls(self, id: int) -> list[str]:
        return self.urls.get(id)

    def update_urls(self, id: int, urls: Sequence[str]) -> None:
        self.urls.replace(id, urls)

    # -- tags ----------------------------------------------------------------

    def get_tag_ids(self, id: int) -> list[int]:
        """Tag ids of the scene, ordered by tag name."""
        return self.tags.get_ids(id)

    def update_tag_ids(self, id: int, tag_ids: Sequence[int]) -> None:
        self.tags.replace(id, tag_ids)

    def add_tag_ids(self, id: int, tag_ids: Sequence[int]) -> list[InsertOutcome]:
        return self.tags.add_joins(id, *tag_ids)

    # -- stash ids -------------------------------------------------------------

    def get_stash_ids(self, id: int) -> list[StashID]:
        return self.stash_ids.get(id)

    def update_stash_ids(self, id: int, stash_ids: Sequence[StashID]) -> None:
        self.stash_ids.replace(id, stash_ids)

    # -- files -----------------------------------------------------------------

    def get_file_ids(self, id: int) -> list[int]:
        return self.files.get(id)

    def get_many_file_ids(self, ids: Sequence[int]) -> list[list[int]]:
        return self.files.get_many(ids)

    def get_primary_file_id(self, id: int) -> int | None:
        primary = self.files.get(id, primary_only=True)
        return primary[0] if primary else None

    def set_primary_file(self, id: int, file_id: int) -> None:
        self.files.set_primary(id, file_id)

    # -- search ------------------------------------------------------------

    def query_scenes(
        self,
        scene_filter: SceneFilter | None = None,
        find_filter: FindFilter | None = None,
    ) -> tuple[list[int], int]:
        """Search scenes; returns ``(page ids, total count)``."""
        scene_filter = scene_filter or SceneFilter()
        find_filter = find_filter or FindFilter()
        qb = self.new_query()

        if scene_filter.title:
            qb.add_where("scenes.title LIKE ?", args=[f"%{scene_filter.title}%"])

        if scene_filter.rating is not None:
            clause, args = scene_filter.rating.to_sql("scenes.rating")
            qb.add_where(clause, args=args)

        if scene_filter.organized is not None:
            qb.add_where("scenes.organized = ?", args=[int(scene_filter.organized)])

        if scene_filter.tags is not None and scene_filter.tags.value:
            self._add_tags_criterion(qb, scene_filter.tags)

        if scene_filter.tag_count is not None:
            self.tags.join(qb, "", "scenes.id")
            clause, args = scene_filter.tag_count.to_sql(f"COUNT(DISTINCT {TAGS_TABLE}.tag_id)")
            qb.add_having(clause, args=args)

        qb.sort_and_pagination = find_filter.sort_and_pagination("scenes", SORTABLE)
        return qb.find_ids()

    def _add_tags_criterion(self, qb: QueryBuilder, criterion: MultiCriterion) -> None:
        cte, args = hierarchy_cte(
            "tag_tree", criterion.value, criterion.depth, TAG_RELATIONS_TABLE
        )
        qb.add_with(cte, args=args, recursive=True)

        tagged = (
            f"SELECT st.scene_id FROM {TAGS_TABLE} st "
            "WHERE st.tag_id IN (SELECT id FROM tag_tree)"
        )
        if criterion.modifier is CriterionModifier.EXCLUDES:
            qb.add_where(f"scenes.id NOT IN ({tagged})")
        elif criterion.modifier is CriterionModifier.INCLUDES_ALL:
            qb.add_where(
                f"scenes.id IN (SELECT st.scene_id FROM {TAGS_TABLE} st "
                "INNER JOIN tag_tree ON st.tag_id = tag_tree.id "
                "GROUP BY st.scene_id HAVING COUNT(DISTINCT tag_tree.root_id) = ?)",
                args=[len(set(criterion.value))],
            )
        else:
            qb.add_where(f"scenes.id IN ({tagged})")
