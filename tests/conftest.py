"""
Shared pytest fixtures for reelbase tests.

This module provides:
- An in-memory adapter with the bundled schema applied
- An open transaction bound to that adapter
- Sample rows (files, tags, scenes) for repository tests

Usage:
    Fixtures are auto-discovered by pytest; request them as arguments.

    def test_something(tx, scene_repo):
        ...
"""

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Ensure reelbase package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reelbase.core.adapters.sqlite import SQLiteAdapter, Transaction
from reelbase.core.connection import create_connection
from reelbase.core.models import Scene, Tag, VideoFile
from reelbase.core.repositories import FileRepository, SceneRepository, TagRepository
from reelbase.core.settings import reset_settings


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep REELBASE_* from the outer environment out of every test."""
    import os

    for key in list(os.environ):
        if key.startswith("REELBASE_"):
            monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def adapter() -> Iterator[SQLiteAdapter]:
    """Connected in-memory adapter with the bundled schema."""
    adapter, _ = create_connection("memory", init_schema=True)
    yield adapter
    adapter.disconnect()


@pytest.fixture
def tx(adapter: SQLiteAdapter) -> Iterator[Transaction]:
    """An open transaction; committed when the test passes."""
    with adapter.transaction() as tx:
        yield tx


@pytest.fixture
def file_repo(tx: Transaction) -> FileRepository:
    return FileRepository(tx)


@pytest.fixture
def tag_repo(tx: Transaction) -> TagRepository:
    return TagRepository(tx)


@pytest.fixture
def scene_repo(tx: Transaction) -> SceneRepository:
    return SceneRepository(tx)


@pytest.fixture
def files(file_repo: FileRepository) -> list[VideoFile]:
    """Three stored files: a.mp4, b.mp4, c.mp4."""
    return [
        file_repo.create(VideoFile(basename=name, parent_folder="/media", size=100 * (i + 1)))
        for i, name in enumerate(["a.mp4", "b.mp4", "c.mp4"])
    ]


@pytest.fixture
def tags(tag_repo: TagRepository) -> dict[str, Tag]:
    """Stored tags keyed by name: outdoor > beach > sunset, and indoor."""
    created = {name: tag_repo.create(Tag(name=name)) for name in ["outdoor", "beach", "sunset", "indoor"]}
    tag_repo.update_parent_ids(created["beach"].id, [created["outdoor"].id])
    tag_repo.update_parent_ids(created["sunset"].id, [created["beach"].id])
    return created


@pytest.fixture
def scene(scene_repo: SceneRepository) -> Scene:
    return scene_repo.create(Scene(title="Opening", rating=60))
