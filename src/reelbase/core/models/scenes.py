"""Scene table models (``scenes``, ``scene_stash_ids``).

Tags:
    reelbase, models, scenes, dataclasses

Doc-Types:
    api-reference, data-model
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from reelbase.core.partial import UNSET, OptionalValue

# ---------------------------------------------------------------------------
# scenes
# ---------------------------------------------------------------------------


@dataclass
class Scene:
    """Scene row (``scenes``)."""

    id: int | None = None
    title: str | None = None
    code: str | None = None
    details: str | None = None
    director: str | None = None
    date: str | None = None  # YYYY-MM-DD
    rating: int | None = None  # 1-100
    organized: bool = False
    o_counter: int = 0
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class ScenePartial:
    """Partial update of a ``scenes`` row."""

    title: OptionalValue[str] = UNSET
    code: OptionalValue[str] = UNSET
    details: OptionalValue[str] = UNSET
    director: OptionalValue[str] = UNSET
    date: OptionalValue[str] = UNSET
    rating: OptionalValue[int] = UNSET
    organized: OptionalValue[bool] = UNSET
    o_counter: OptionalValue[int] = UNSET
    updated_at: OptionalValue[str] = UNSET

    @classmethod
    def from_kwargs(cls, **values: Any) -> ScenePartial:
        """Build with every given keyword present (``None`` → explicit NULL)."""
        return cls(**{k: OptionalValue.of(v) for k, v in values.items()})


# ---------------------------------------------------------------------------
# scene_stash_ids
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StashID:
    """Identifier of a scene on an external metadata endpoint."""

    endpoint: str
    stash_id: str
