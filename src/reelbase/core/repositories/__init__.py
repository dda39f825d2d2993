"""Repositories for the reelbase media tables.

Each repository extends :class:`~reelbase.core.repository.EntityRepository`
with the table's :class:`~reelbase.core.table.TableSchema` and the relation
repositories for the collections the entity owns.  They only supply table
and column names; every statement shape comes from the core.

Architecture::

    ┌────────────────────────────────────────────────────────────────┐
    │  application code (scene search, tag tree, file scanner ...)   │
    └────────────────────────────┬───────────────────────────────────┘
                                 │ uses, inside adapter.transaction()
                                 ▼
    ┌────────────────────────────────────────────────────────────────┐
    │  reelbase.core.repositories  (this package)                    │
    │                                                                │
    │  files.py   — FileRepository   (files, video_captions)         │
    │  tags.py    — TagRepository    (tags, tag_aliases,             │
    │                                 tags_relations)                │
    │  scenes.py  — SceneRepository  (scenes, scenes_files,          │
    │                                 scenes_tags, scene_urls,       │
    │                                 scene_stash_ids), SceneFilter  │
    └────────────────────────────────────────────────────────────────┘

Tags:
    repository, sql, domain, reelbase, data-access, crud

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from reelbase.core.repositories.files import FILES, FileRepository
from reelbase.core.repositories.scenes import SCENES, SceneFilter, SceneRepository
from reelbase.core.repositories.tags import TAGS, TagRepository

__all__ = [
    "FILES",
    "FileRepository",
    "SCENES",
    "SceneFilter",
    "SceneRepository",
    "TAGS",
    "TagRepository",
]
