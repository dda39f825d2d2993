"""Connection factory — create database adapters from URL strings.

This is the single entry point for opening the store.  Callers get back an
:class:`~reelbase.core.adapters.sqlite.SQLiteAdapter` (which draws
transaction boundaries) and a :class:`ConnectionInfo` describing it.

Supported URL schemes
---------------------

==================  ==========================================  ============
Scheme              Example                                     Backend
==================  ==========================================  ============
``memory``          ``memory`` or ``:memory:`` or ``None``       SQLite RAM
``sqlite``          ``sqlite:///path/to/file.db``                SQLite file
``(file path)``     ``./data/library.db``                        SQLite file
==================  ==========================================  ============

Anything else (``postgresql://``, ``mysql://``, …) is refused with
:class:`~reelbase.core.errors.InvalidConfigError`; the layer targets one
embedded database.

Usage
-----
::

    from reelbase.core.connection import create_connection

    adapter, info = create_connection("sqlite:///library.db", init_schema=True)
    with adapter.transaction() as tx:
        ...
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from reelbase.core.adapters.sqlite import SQLiteAdapter
from reelbase.core.errors import InvalidConfigError
from reelbase.core.logging import get_logger
from reelbase.core.settings import ReelbaseSettings

logger = get_logger(__name__)


# ── ConnectionInfo ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class ConnectionInfo:
    """Metadata about a database connection."""

    backend: str
    """Backend identifier: ``"sqlite"``."""

    persistent: bool
    """Whether data survives process exit."""

    url: str
    """The original URL or path used to create the connection."""

    resolved_path: str | None = None
    """For file-based SQLite, the resolved absolute path."""

    def __repr__(self) -> str:
        parts = [f"backend={self.backend!r}", f"persistent={self.persistent}"]
        if self.resolved_path:
            parts.append(f"path={self.resolved_path!r}")
        else:
            parts.append(f"url={self.url!r}")
        return f"ConnectionInfo({', '.join(parts)})"


# ── URL parsing ──────────────────────────────────────────────────────────


def _parse_url(db: str | None) -> tuple[str, str]:
    """Parse a database URL into ``(scheme, target)``.

    ``scheme`` is one of ``"memory"``, ``"sqlite"``, ``"file"``.
    """
    if db is None or db in ("", "memory", ":memory:"):
        return "memory", ":memory:"

    for prefix in ("sqlite:///", "sqlite://"):
        if db.startswith(prefix):
            path = db[len(prefix):]
            if not path or path == ":memory:":
                return "memory", ":memory:"
            return "sqlite", path

    if "://" in db:
        raise InvalidConfigError(
            "database_url", db, f"Unsupported database URL scheme: {db.split('://', 1)[0]!r}"
        )

    return "file", db


# ── Main factory ─────────────────────────────────────────────────────────


def create_connection(
    db: str | None = None,
    *,
    init_schema: bool = False,
    data_dir: str | Path | None = None,
    timeout: float = 5.0,
    foreign_keys: bool = True,
) -> tuple[SQLiteAdapter, ConnectionInfo]:
    """Create a connected adapter from a URL, path, or keyword.

    Parameters
    ----------
    db:
        ``None`` / ``"memory"`` for in-memory SQLite, a file path, or a
        ``sqlite:///`` URL.
    init_schema:
        Apply the bundled DDL (idempotent).
    data_dir:
        Directory that relative SQLite paths are resolved against.
    """
    scheme, target = _parse_url(db)

    if scheme == "memory":
        adapter = SQLiteAdapter(":memory:", timeout=timeout, foreign_keys=foreign_keys)
        info = ConnectionInfo(backend="sqlite", persistent=False, url=":memory:")
    else:
        path = Path(target)
        if data_dir and not path.is_absolute():
            path = Path(data_dir) / path
        path.parent.mkdir(parents=True, exist_ok=True)
        resolved = str(path.resolve())
        adapter = SQLiteAdapter(resolved, timeout=timeout, foreign_keys=foreign_keys)
        info = ConnectionInfo(
            backend="sqlite",
            persistent=True,
            url=db or target,
            resolved_path=resolved,
        )

    adapter.connect()

    if init_schema:
        from reelbase.core.schema_loader import apply_all_schemas

        apply_all_schemas(adapter.get_connection())

    logger.info("connection_created", info=repr(info))
    return adapter, info


def connect_from_settings(settings: ReelbaseSettings) -> tuple[SQLiteAdapter, ConnectionInfo]:
    """Create a connection using :class:`ReelbaseSettings` values."""
    return create_connection(
        settings.database_url,
        init_schema=settings.init_schema,
        data_dir=settings.data_dir,
        timeout=settings.busy_timeout,
        foreign_keys=settings.foreign_keys,
    )


__all__ = [
    "ConnectionInfo",
    "connect_from_settings",
    "create_connection",
]
