"""
Structured error types for the reelbase storage layer.

Every failure that leaves the storage core is one of a small set of typed
errors.  Callers (scene search, tag trees, marker creation, the HTTP layer)
branch on the *type*, never on message text, and always have the offending
statement and bind arguments at hand for diagnosis.

Manifesto:
    - **Typed taxonomy:** NotFound, NotExist, ConstraintViolation and
      StoreError are distinct classes, not flags on one class
    - **Diagnosable:** Store errors carry the SQL text and arguments
    - **Never swallowed:** Errors propagate; only "no rows" in count, id and
      list queries is treated as an empty result
    - **Error chaining:** The driver exception is kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       ReelbaseError                              │
        │  (category, retryable, context, cause)                           │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  StoreError (DATABASE)          ValidationError (VALIDATION)     │
        │       │                                                          │
        │  NotFoundError                  ConfigError (CONFIG)             │
        │  NotExistError                       │                           │
        │  ConstraintViolationError       InvalidConfigError               │
        │  QueryCancelledError                                             │
        │  DatabaseConnectionError                                         │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> err = NotExistError.for_id("scenes", "id", 7)
    >>> err.context.entity_id
    7
    >>> err.to_dict()["error_type"]
    'NotExistError'

    Wrapping a driver failure:

    >>> try:
    ...     conn.execute("SELEC 1")
    ... except sqlite3.Error as e:
    ...     raise translate_error(e, "SELEC 1", ()) from e

Guardrails:
    ❌ DON'T: Raise bare ``sqlite3`` exceptions out of a repository
    ✅ DO: Pass them through :func:`translate_error`

    ❌ DON'T: Use NotFoundError for a failed update precondition
    ✅ DO: Use NotExistError; it is raised before the mutating statement

Tags:
    error-handling, exception-hierarchy, storage, sqlite, reelbase-core

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        DATABASE: Driver, statement, or constraint failures
        VALIDATION: Caller supplied a value the layer rejects up front
        CONFIG: Missing or invalid settings
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    DATABASE = "DATABASE"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only the fields that are set show up in :meth:`to_dict`, so a
    NotFoundError for a single id logs as ``{"table": ..., "entity_id": ...}``
    and a failed statement logs its SQL and parameters.

    Attributes:
        table: Table the operation targeted
        id_column: Identity column of that table
        entity_id: Identity value the operation targeted
        statement: SQL text of the failing statement
        params: Bind arguments of the failing statement
        metadata: Additional key-value pairs
    """

    table: str | None = None
    id_column: str | None = None
    entity_id: Any = None
    statement: str | None = None
    params: Any = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["table", "id_column", "entity_id", "statement", "params"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ReelbaseError(Exception):
    """
    Base exception for all reelbase errors.

    Subclasses set ``default_category`` and ``default_retryable``.  The
    storage layer itself never retries; ``retryable`` is advisory for the
    caller's transaction-retry wrapper.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ReelbaseError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StoreError("insert failed").with_context(table="scenes")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# STORE ERRORS
# =============================================================================


class StoreError(ReelbaseError):
    """
    A statement failed in the store.

    The failing statement and its arguments are part of the message and of
    the context, so a log line is enough to reproduce the failure.
    """

    default_category = ErrorCategory.DATABASE
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        statement: str | None = None,
        params: Sequence[Any] | dict[str, Any] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.statement = statement
        self.params = params
        if statement is not None:
            self.context.statement = statement
        if params is not None:
            self.context.params = params


class NotFoundError(StoreError):
    """A single-row fetch by identity returned zero rows."""

    @classmethod
    def for_id(cls, table: str, id_column: str, entity_id: Any) -> NotFoundError:
        return cls(
            f"{table}.{id_column} = {entity_id} not found",
            context=ErrorContext(table=table, id_column=id_column, entity_id=entity_id),
        )


class NotExistError(StoreError):
    """An existence precondition failed before a mutating statement ran."""

    @classmethod
    def for_id(cls, table: str, id_column: str, entity_id: Any) -> NotExistError:
        return cls(
            f"{id_column} {entity_id} does not exist in {table}",
            context=ErrorContext(table=table, id_column=id_column, entity_id=entity_id),
        )


class ConstraintViolationError(StoreError):
    """Uniqueness or foreign-key violation reported by the store."""

    pass


class QueryCancelledError(StoreError):
    """The ambient transaction was cancelled while a statement ran."""

    pass


class DatabaseConnectionError(StoreError):
    """The database could not be opened."""

    pass


# =============================================================================
# VALIDATION / CONFIGURATION ERRORS
# =============================================================================


class ValidationError(ReelbaseError):
    """
    Caller supplied a value the storage layer rejects.

    Raised before any statement is issued.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class ConfigError(ReelbaseError):
    """Configuration error."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def translate_error(
    error: Exception,
    statement: str,
    params: Sequence[Any] | dict[str, Any] | None,
) -> StoreError:
    """Map a driver exception onto the store error taxonomy.

    ``sqlite3.IntegrityError`` becomes :class:`ConstraintViolationError`,
    an interrupted statement becomes :class:`QueryCancelledError`, anything
    else a plain :class:`StoreError`.
    """
    if isinstance(error, StoreError):
        return error

    message = f"executing query: {statement} [{_format_params(params)}]: {error}"
    if isinstance(error, sqlite3.IntegrityError):
        cls: type[StoreError] = ConstraintViolationError
    elif isinstance(error, sqlite3.OperationalError) and "interrupted" in str(error):
        cls = QueryCancelledError
    else:
        cls = StoreError
    return cls(message, statement=statement, params=params, cause=error)


def _format_params(params: Any) -> str:
    if params is None:
        return ""
    if isinstance(params, dict):
        return ", ".join(f"{k}={v!r}" for k, v in params.items())
    return ", ".join(repr(p) for p in params)


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, ReelbaseError):
        return error.retryable
    return False


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, ReelbaseError):
        return error.category
    if isinstance(error, sqlite3.Error):
        return ErrorCategory.DATABASE
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ReelbaseError",
    "StoreError",
    "NotFoundError",
    "NotExistError",
    "ConstraintViolationError",
    "QueryCancelledError",
    "DatabaseConnectionError",
    "ValidationError",
    "ConfigError",
    "InvalidConfigError",
    "translate_error",
    "is_retryable",
    "categorize_error",
]
