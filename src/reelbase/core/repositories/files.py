"""File repository — video files and their captions.

Tags:
    reelbase, repository, files, captions

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Sequence

from reelbase.core.dialect import Dialect
from reelbase.core.models.files import VideoCaption, VideoFile
from reelbase.core.protocols import Connection
from reelbase.core.relations import CaptionRepository
from reelbase.core.repository import EntityRepository
from reelbase.core.table import Column, TableSchema

FILES = TableSchema(
    "files",
    [
        Column("basename", nullable=False),
        Column("parent_folder", nullable=False),
        Column("size", nullable=False),
        Column("duration"),
        Column("width"),
        Column("height"),
        Column("created_at", nullable=False, insert_only=True),
        Column("updated_at", nullable=False),
    ],
    model=VideoFile,
)

CAPTIONS_TABLE = "video_captions"


class FileRepository(EntityRepository):
    """CRUD for ``files`` plus the file's caption list."""

    def __init__(self, tx: Connection, dialect: Dialect | str | None = None) -> None:
        super().__init__(tx, FILES, dialect)
        self.captions = CaptionRepository(tx, CAPTIONS_TABLE, "file_id", self.dialect)

    def create(self, file: VideoFile) -> VideoFile:
        """Insert ``file``; returns the stored row."""
        return self.insert_object(file)

    def destroy_files(self, ids: Sequence[int]) -> None:
        """Delete files; captions and scene links cascade."""
        self.destroy_existing(ids)

    def get_captions(self, file_id: int) -> list[VideoCaption]:
        return self.captions.get(file_id)

    def update_captions(self, file_id: int, captions: Sequence[VideoCaption]) -> None:
        self.captions.replace(file_id, captions)
