"""Tag table models (``tags``).

``TagPartial`` mirrors ``Tag`` with every field wrapped in
:class:`~reelbase.core.partial.OptionalValue` and defaulting to ``UNSET``,
so a partial update only writes what the caller set.

Tags:
    reelbase, models, tags, dataclasses

Doc-Types:
    api-reference, data-model
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from reelbase.core.partial import UNSET, OptionalValue


@dataclass
class Tag:
    """Tag row (``tags``)."""

    id: int | None = None
    name: str = ""
    description: str | None = None
    favorite: bool = False
    ignore_auto_tag: bool = False
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class TagPartial:
    """Partial update of a ``tags`` row."""

    name: OptionalValue[str] = UNSET
    description: OptionalValue[str] = UNSET
    favorite: OptionalValue[bool] = UNSET
    ignore_auto_tag: OptionalValue[bool] = UNSET
    updated_at: OptionalValue[str] = UNSET

    @classmethod
    def from_kwargs(cls, **values: Any) -> TagPartial:
        """Build with every given keyword present (``None`` → explicit NULL)."""
        return cls(**{k: OptionalValue.of(v) for k, v in values.items()})
