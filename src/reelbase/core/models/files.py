"""File table models (``files``, ``video_captions``).

Tags:
    reelbase, models, files, captions, dataclasses

Doc-Types:
    api-reference, data-model
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath

# ---------------------------------------------------------------------------
# files
# ---------------------------------------------------------------------------


@dataclass
class VideoFile:
    """Video file row (``files``)."""

    id: int | None = None
    basename: str = ""
    parent_folder: str = ""
    size: int = 0
    duration: float | None = None
    width: int | None = None
    height: int | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def path(self) -> str:
        return str(PurePath(self.parent_folder) / self.basename)


# ---------------------------------------------------------------------------
# video_captions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VideoCaption:
    """Caption file attached to a video file (``video_captions``)."""

    language_code: str
    filename: str
    caption_type: str

    def path(self, file_path: str) -> str:
        """Caption path, resolved next to the video at ``file_path``."""
        return str(PurePath(file_path).parent / self.filename)
