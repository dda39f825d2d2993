"""Partial update values.

An :class:`OptionalValue` wraps one field of an update so the statement only
touches columns the caller explicitly changed:

==============================  =========  ======  ===========================
Constructor                     present    null    Effect on partial update
==============================  =========  ======  ===========================
``OptionalValue.absent()``      False      False   column not written
``OptionalValue.of(v)``         True       False   ``SET col = v``
``OptionalValue.none()``        True       True    ``SET col = NULL``
==============================  =========  ======  ===========================

Examples:
    >>> title = OptionalValue.of("Intro")
    >>> title.present, title.value
    (True, 'Intro')
    >>> OptionalValue.from_pointer(None).present
    False
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class OptionalValue(Generic[T]):
    """A field value tagged present/absent, with an explicit-null marker."""

    value: T | None = None
    present: bool = False
    null: bool = False

    @classmethod
    def of(cls, value: T | None) -> OptionalValue[T]:
        """Present value; ``of(None)`` is an explicit null."""
        return cls(value=value, present=True, null=value is None)

    @classmethod
    def none(cls) -> OptionalValue[Any]:
        """Present, explicitly set to NULL."""
        return cls(value=None, present=True, null=True)

    @classmethod
    def absent(cls) -> OptionalValue[Any]:
        """Not present; never written."""
        return cls()

    @classmethod
    def from_pointer(cls, value: T | None) -> OptionalValue[T]:
        """``None`` means absent, anything else is present."""
        if value is None:
            return cls()
        return cls.of(value)

    def get(self, default: T | None = None) -> T | None:
        if not self.present or self.null:
            return default
        return self.value

    def __bool__(self) -> bool:
        return self.present


UNSET: OptionalValue[Any] = OptionalValue()
"""The absent value; use as the default of partial-model fields."""


__all__ = [
    "OptionalValue",
    "UNSET",
]
