"""Dataclass models for the reelbase schema tables.

Field names match column names, so ``TableSchema.from_row`` builds a model
straight from a query row.

Modules
-------
files
    ``files`` and ``video_captions`` -- VideoFile, VideoCaption.
tags
    ``tags`` -- Tag, TagPartial.
scenes
    ``scenes`` and ``scene_stash_ids`` -- Scene, ScenePartial, StashID.

Tags:
    reelbase, models, dataclasses, schema-mapping

Doc-Types:
    package-overview, module-index
"""

from reelbase.core.models.files import VideoCaption, VideoFile
from reelbase.core.models.scenes import Scene, ScenePartial, StashID
from reelbase.core.models.tags import Tag, TagPartial

__all__ = [
    "Scene",
    "ScenePartial",
    "StashID",
    "Tag",
    "TagPartial",
    "VideoCaption",
    "VideoFile",
]
