"""Tests for ``reelbase.core.query_builder``."""

from __future__ import annotations

import pytest

from reelbase.core.errors import ValidationError
from reelbase.core.query import QueryExecutor
from reelbase.core.query_builder import (
    CriterionModifier,
    FindFilter,
    IntCriterion,
    MultiCriterion,
    hierarchy_cte,
    in_binding,
)

SORTABLE = {"title": "scenes.title", "rating": "scenes.rating"}


class TestInBinding:
    def test_renders(self):
        assert in_binding(1) == "(?)"
        assert in_binding(3) == "(?, ?, ?)"

    def test_empty_rejected(self):
        with pytest.raises(ValidationError):
            in_binding(0)


class TestQueryBuilder:
    @pytest.fixture
    def qb(self, tx):
        return QueryExecutor(tx, "scenes").new_query()

    def test_args_in_placeholder_order(self, qb):
        qb.add_having("COUNT(*) > ?", args=[3])
        qb.add_where("scenes.rating = ?", args=[1])
        qb.add_with("x AS (SELECT ?)", args=["cte"])
        qb.add_arg(2)
        assert qb.args == ["cte", 1, 2, 3]

    def test_recursive_flag_sticks(self, qb):
        qb.add_with("a AS (SELECT 1)", recursive=True)
        qb.add_with("b AS (SELECT 2)")
        assert qb.recursive_with is True
        assert qb.with_clauses == ["a AS (SELECT 1)", "b AS (SELECT 2)"]

    def test_joins_deduplicated_by_alias(self, qb):
        qb.add_left_join("scenes_tags", "", "scenes_tags.scene_id = scenes.id")
        qb.add_left_join("scenes_tags", "", "scenes_tags.scene_id = scenes.id")
        qb.add_inner_join("scenes_tags", "st2", "st2.scene_id = scenes.id")
        assert len(qb.joins) == 2

    def test_find_ids(self, tx, qb):
        for title in ["a", "b", "c"]:
            tx.execute("INSERT INTO scenes (title) VALUES (?)", (title,))
        qb.add_where("scenes.title != ?", args=["b"])
        qb.sort_and_pagination = FindFilter(per_page=1).sort_and_pagination("scenes", SORTABLE)
        assert qb.find_ids() == ([1], 2)


class TestFindFilter:
    def test_default(self):
        assert FindFilter().sort_and_pagination("scenes", SORTABLE) == (
            " ORDER BY scenes.id ASC LIMIT 25 OFFSET 0"
        )

    def test_sort_with_tie_breaker(self):
        f = FindFilter(page=3, per_page=10, sort="title", direction="desc")
        assert f.sort_and_pagination("scenes", SORTABLE) == (
            " ORDER BY scenes.title DESC, scenes.id DESC LIMIT 10 OFFSET 20"
        )

    def test_all_pages(self):
        f = FindFilter(per_page=-1, sort="rating")
        assert f.sort_and_pagination("scenes", SORTABLE) == (
            " ORDER BY scenes.rating ASC, scenes.id ASC"
        )

    def test_unknown_sort(self):
        with pytest.raises(ValidationError):
            FindFilter(sort="title; DROP TABLE scenes").sort_and_pagination("scenes", SORTABLE)

    @pytest.mark.parametrize(
        "kwargs",
        [{"page": 0}, {"per_page": 0}, {"per_page": -2}, {"direction": "sideways"}],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValidationError):
            FindFilter(**kwargs)


class TestIntCriterion:
    @pytest.mark.parametrize(
        "criterion, expected",
        [
            (IntCriterion(5), ("x = ?", [5])),
            (IntCriterion(5, CriterionModifier.NOT_EQUALS), ("x != ?", [5])),
            (IntCriterion(5, CriterionModifier.GREATER_THAN), ("x > ?", [5])),
            (IntCriterion(5, CriterionModifier.LESS_THAN), ("x < ?", [5])),
            (IntCriterion(5, CriterionModifier.BETWEEN, 9), ("x BETWEEN ? AND ?", [5, 9])),
            (IntCriterion(0, CriterionModifier.IS_NULL), ("x IS NULL", [])),
            (IntCriterion(0, CriterionModifier.NOT_NULL), ("x IS NOT NULL", [])),
        ],
    )
    def test_to_sql(self, criterion, expected):
        assert criterion.to_sql("x") == expected

    def test_between_needs_upper_bound(self):
        with pytest.raises(ValidationError):
            IntCriterion(1, CriterionModifier.BETWEEN).to_sql("x")

    def test_multi_modifier_rejected(self):
        with pytest.raises(ValidationError):
            IntCriterion(1, CriterionModifier.INCLUDES).to_sql("x")


class TestMultiCriterion:
    def test_value_frozen_to_tuple(self):
        assert MultiCriterion([1, 2]).value == (1, 2)

    def test_invalid_modifier(self):
        with pytest.raises(ValidationError):
            MultiCriterion([1], CriterionModifier.EQUALS)

    def test_invalid_depth(self):
        with pytest.raises(ValidationError):
            MultiCriterion([1], depth=-2)


class TestHierarchyCte:
    def test_unbounded(self):
        sql, args = hierarchy_cte("tree", [1, 2], -1, "tags_relations")
        assert sql.startswith("tree(root_id, id) AS (")
        assert "VALUES (?), (?)" in sql
        assert args == [1, 2]

    def test_bounded(self):
        sql, args = hierarchy_cte("tree", [1], 2, "tags_relations")
        assert "tree.depth < ?" in sql
        assert args == [1, 2]

    def test_empty_rejected(self):
        with pytest.raises(ValidationError):
            hierarchy_cte("tree", [], -1, "tags_relations")
