"""Tests for ``reelbase.core.relations`` — relationship-table repositories."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from reelbase.core.errors import ConstraintViolationError, NotExistError
from reelbase.core.models import StashID, VideoCaption
from reelbase.core.relations import (
    CaptionRepository,
    FilesRepository,
    InsertOutcome,
    JoinRepository,
    StashIDRepository,
    StringRepository,
)


@pytest.fixture
def scene_ids(tx) -> list[int]:
    return [tx.execute("INSERT INTO scenes (title) VALUES (?)", (t,)).lastrowid for t in "abcde"]


@pytest.fixture
def tag_ids(tx) -> list[int]:
    return [tx.execute("INSERT INTO tags (name) VALUES (?)", (n,)).lastrowid for n in ["zeta", "alpha", "mid"]]


@pytest.fixture
def file_ids(tx) -> list[int]:
    return [
        tx.execute("INSERT INTO files (basename) VALUES (?)", (f"{n}.mp4",)).lastrowid
        for n in ["a", "b", "c", "d"]
    ]


@pytest.fixture
def scene_tags(tx) -> JoinRepository:
    return JoinRepository(tx, "scenes_tags", "scene_id", "tag_id", foreign_table="tags", order_by="tags.name ASC")


def _count(tx, table: str) -> int:
    return tx.query_one(f"SELECT COUNT(*) FROM {table}")[0]


class TestJoinRepository:
    def test_get_ids_ordered_through_foreign_table(self, scene_tags, scene_ids, tag_ids):
        scene_tags.insert(scene_ids[0], *tag_ids)
        # zeta, alpha, mid → alpha, mid, zeta
        assert scene_tags.get_ids(scene_ids[0]) == [tag_ids[1], tag_ids[2], tag_ids[0]]
        assert scene_tags.get_ids(scene_ids[1]) == []

    def test_get_ids_without_foreign_table(self, tx, scene_ids, tag_ids):
        repo = JoinRepository(tx, "scenes_tags", "scene_id", "tag_id")
        repo.insert(scene_ids[0], tag_ids[2])
        assert repo.get_ids(scene_ids[0]) == [tag_ids[2]]

    def test_insert_duplicate_fails(self, scene_tags, scene_ids, tag_ids):
        scene_tags.insert(scene_ids[0], tag_ids[0])
        with pytest.raises(ConstraintViolationError) as exc:
            scene_tags.insert(scene_ids[0], tag_ids[0])
        assert exc.value.params == (scene_ids[0], tag_ids[0])

    def test_insert_unknown_foreign_id_fails(self, scene_tags, scene_ids):
        with pytest.raises(ConstraintViolationError):
            scene_tags.insert(scene_ids[0], 12345)

    def test_insert_or_ignore(self, tx, scene_tags, scene_ids, tag_ids):
        assert scene_tags.insert_or_ignore(scene_ids[0], tag_ids[0]) == [InsertOutcome.INSERTED]
        assert scene_tags.insert_or_ignore(scene_ids[0], tag_ids[0]) == [InsertOutcome.ALREADY_EXISTS]
        assert _count(tx, "scenes_tags") == 1

    def test_insert_or_ignore_mixed(self, scene_tags, scene_ids, tag_ids):
        scene_tags.insert(scene_ids[0], tag_ids[1])
        outcomes = scene_tags.add_joins(scene_ids[0], tag_ids[0], tag_ids[1])
        assert outcomes == [InsertOutcome.INSERTED, InsertOutcome.ALREADY_EXISTS]

    def test_destroy_joins(self, scene_tags, scene_ids, tag_ids):
        scene_tags.insert(scene_ids[0], *tag_ids)
        scene_tags.destroy_joins(scene_ids[0], tag_ids[0], tag_ids[1])
        assert scene_tags.get_ids(scene_ids[0]) == [tag_ids[2]]

    def test_destroy_joins_nothing(self, scene_tags, scene_ids):
        scene_tags.destroy_joins(scene_ids[0])

    def test_replace(self, scene_tags, scene_ids, tag_ids):
        scene_tags.insert(scene_ids[0], tag_ids[0], tag_ids[1])
        scene_tags.insert(scene_ids[1], tag_ids[0])
        scene_tags.replace(scene_ids[0], [tag_ids[2]])
        assert scene_tags.get_ids(scene_ids[0]) == [tag_ids[2]]
        assert scene_tags.get_ids(scene_ids[1]) == [tag_ids[0]]

    def test_replace_statement_count(self):
        tx = MagicMock()
        repo = JoinRepository(tx, "scenes_tags", "scene_id", "tag_id")
        repo.replace(1, [10, 11, 12])
        assert tx.execute.call_count == 1
        assert tx.prepare.return_value.execute.call_count == 3
        tx.prepare.return_value.close.assert_called_once()


class TestFilesRepository:
    @pytest.fixture
    def repo(self, tx) -> FilesRepository:
        return FilesRepository(tx, "scenes_files", "scene_id")

    def test_primary_first(self, tx, repo, scene_ids, file_ids):
        a, b, c = file_ids[:3]
        sql = 'INSERT INTO scenes_files (scene_id, file_id, "primary") VALUES (?, ?, ?)'
        tx.execute(sql, (scene_ids[0], a, False))
        tx.execute(sql, (scene_ids[0], b, True))
        tx.execute(sql, (scene_ids[0], c, False))
        got = repo.get(scene_ids[0])
        assert got[0] == b
        assert sorted(got[1:]) == sorted([a, c])

    def test_insert_first_primary(self, repo, scene_ids, file_ids):
        repo.insert(scene_ids[0], [file_ids[2], file_ids[0]], first_primary=True)
        assert repo.get(scene_ids[0], primary_only=True) == [file_ids[2]]
        assert repo.get(scene_ids[0])[0] == file_ids[2]

    def test_insert_without_primary(self, repo, scene_ids, file_ids):
        repo.insert(scene_ids[0], file_ids[:2])
        assert repo.get(scene_ids[0], primary_only=True) == []

    def test_at_most_one_primary(self, tx, repo, scene_ids, file_ids):
        repo.insert(scene_ids[0], [file_ids[0]], first_primary=True)
        with pytest.raises(ConstraintViolationError):
            repo.insert(scene_ids[0], [file_ids[1]], first_primary=True)

    def test_set_primary(self, repo, scene_ids, file_ids):
        repo.insert(scene_ids[0], file_ids[:3], first_primary=True)
        repo.set_primary(scene_ids[0], file_ids[2])
        assert repo.get(scene_ids[0], primary_only=True) == [file_ids[2]]
        assert sorted(repo.get(scene_ids[0])) == sorted(file_ids[:3])

    def test_set_primary_unlinked(self, repo, scene_ids, file_ids):
        repo.insert(scene_ids[0], file_ids[:1], first_primary=True)
        with pytest.raises(NotExistError):
            repo.set_primary(scene_ids[0], file_ids[3])
        assert repo.get(scene_ids[0], primary_only=True) == [file_ids[0]]

    def test_get_many_follows_input_order(self, repo, scene_ids, file_ids):
        s1, s2, s3 = scene_ids[:3]
        repo.insert(s1, [file_ids[0], file_ids[1]])
        repo.set_primary(s1, file_ids[1])
        repo.insert(s3, [file_ids[2]], first_primary=True)

        got = repo.get_many([s3, s2, s1, s3])
        assert got[0] == [file_ids[2]]
        assert got[1] == []
        assert got[2][0] == file_ids[1]
        assert sorted(got[2]) == sorted(file_ids[:2])
        assert got[3] == [file_ids[2]]

    def test_get_many_primary_only(self, repo, scene_ids, file_ids):
        repo.insert(scene_ids[0], file_ids[:2], first_primary=True)
        assert repo.get_many([scene_ids[0]], primary_only=True) == [[file_ids[0]]]

    def test_destroy(self, repo, scene_ids, file_ids):
        repo.insert(scene_ids[0], file_ids[:2])
        repo.insert(scene_ids[1], file_ids[2:3])
        repo.destroy([scene_ids[0]])
        assert repo.get(scene_ids[0]) == []
        assert repo.get(scene_ids[1]) == [file_ids[2]]


class TestStringRepository:
    @pytest.fixture
    def repo(self, tx) -> StringRepository:
        return StringRepository(tx, "scene_urls", "scene_id", "url")

    def test_replace_then_get(self, repo, scene_ids):
        owner = scene_ids[4]
        repo.insert(owner, ["a", "b"])
        assert repo.get(owner) == ["a", "b"]
        repo.replace(owner, ["c"])
        assert repo.get(owner) == ["c"]

    def test_replace_with_empty(self, repo, scene_ids):
        repo.insert(scene_ids[0], ["a"])
        repo.replace(scene_ids[0], [])
        assert repo.get(scene_ids[0]) == []


class TestStashIDRepository:
    def test_replace_and_get(self, tx, scene_ids):
        repo = StashIDRepository(tx, "scene_stash_ids", "scene_id")
        first = [StashID("https://a.example/graphql", "id-1")]
        repo.replace(scene_ids[0], first)
        assert repo.get(scene_ids[0]) == first

        second = [StashID("https://a.example/graphql", "id-2"), StashID("https://b.example/graphql", "id-3")]
        repo.replace(scene_ids[0], second)
        assert repo.get(scene_ids[0]) == second


class TestCaptionRepository:
    def test_insert_get_replace(self, tx, file_ids):
        repo = CaptionRepository(tx, "video_captions", "file_id")
        en = VideoCaption(language_code="en", filename="a.en.srt", caption_type="srt")
        repo.insert(file_ids[0], en)
        assert repo.get(file_ids[0]) == [en]

        de = VideoCaption(language_code="de", filename="a.de.vtt", caption_type="vtt")
        repo.replace(file_ids[0], [de])
        assert repo.get(file_ids[0]) == [de]

    def test_duplicate_caption(self, tx, file_ids):
        repo = CaptionRepository(tx, "video_captions", "file_id")
        en = VideoCaption(language_code="en", filename="a.en.srt", caption_type="srt")
        repo.insert(file_ids[0], en)
        with pytest.raises(ConstraintViolationError):
            repo.insert(file_ids[0], en)
