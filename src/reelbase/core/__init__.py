"""Reelbase Core -- relational storage primitives for the media library.

Manifesto:
    Scenes, tags, files, captions and external ids are all stored the same
    way: an entity table keyed by an integer id plus relation tables keyed
    by the owner's id.  ``reelbase.core`` provides one generic repository
    for the entity side, one family of relation repositories for the
    owned collections, and one query engine both are built on, so the
    per-entity repositories only supply table and column names.

    - **Explicit schemas:** Column lists are declared once per entity, never
      discovered at call time
    - **Caller-owned transactions:** Repositories run on the transaction
      they are given and never commit
    - **Typed failures:** NotFound, NotExist, ConstraintViolation, Store
    - **Sync-only:** One embedded SQLite database, one transaction at a time

Architecture::

    Layer 1 -- Types, Errors, Ambient
        errors.py          Structured error hierarchy (ReelbaseError, StoreError)
        logging.py         structlog configuration and context binding
        settings.py        ReelbaseSettings (pydantic-settings, REELBASE_*)
        protocols.py       Connection, PreparedStatement, Joiner
        timestamps.py      UTC helpers in SQLite timestamp form

    Layer 2 -- Database
        dialect.py         SQL dialect (placeholders, quoting, insert-or-ignore)
        adapters/          SQLiteAdapter + Transaction
        connection.py      Connection factory (create_connection)
        schema/            SQL DDL files
        schema_loader.py   Apply bundled DDL (idempotent)

    Layer 3 -- Storage core
        table.py           Column / TableSchema descriptors
        partial.py         OptionalValue for partial updates
        query.py           QueryExecutor (fetch, count, ids, find queries)
        query_builder.py   QueryBuilder, FindFilter, criteria, hierarchy CTE
        repository.py      BaseRepository, EntityRepository
        relations.py       Join / Files / String / StashID / Caption repos

    Layer 4 -- Domain
        models/            Dataclass models for the media tables
        repositories/      SceneRepository, TagRepository, FileRepository

Tags:
    reelbase, core, storage, sqlite, repository

Doc-Types:
    - Package Overview
    - Module Index
"""

from reelbase.core.errors import (
    ConstraintViolationError,
    NotExistError,
    NotFoundError,
    QueryCancelledError,
    ReelbaseError,
    StoreError,
    ValidationError,
)
from reelbase.core.partial import UNSET, OptionalValue
from reelbase.core.query import QueryExecutor
from reelbase.core.query_builder import (
    CriterionModifier,
    FindFilter,
    IntCriterion,
    MultiCriterion,
    QueryBuilder,
)
from reelbase.core.relations import (
    CaptionRepository,
    FilesRepository,
    InsertOutcome,
    JoinRepository,
    StashIDRepository,
    StringRepository,
)
from reelbase.core.repository import BaseRepository, EntityRepository
from reelbase.core.table import Column, TableSchema

__all__ = [
    # errors
    "ConstraintViolationError",
    "NotExistError",
    "NotFoundError",
    "QueryCancelledError",
    "ReelbaseError",
    "StoreError",
    "ValidationError",
    # partial
    "OptionalValue",
    "UNSET",
    # query
    "CriterionModifier",
    "FindFilter",
    "IntCriterion",
    "MultiCriterion",
    "QueryBuilder",
    "QueryExecutor",
    # repositories
    "BaseRepository",
    "CaptionRepository",
    "EntityRepository",
    "FilesRepository",
    "InsertOutcome",
    "JoinRepository",
    "StashIDRepository",
    "StringRepository",
    # schema
    "Column",
    "TableSchema",
]
