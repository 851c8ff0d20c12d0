"""Tests for the select, join, map and project constructors."""

import logging

import pytest

from query_unnest.optimizer import OptimizerContext, PlanBuilder, PlanInvariantError
from query_unnest.plan.expressions import col, eq, lit, plus, subquery
from query_unnest.plan.logical import Join, Map, Project, Scan, Select

from helpers import walk


class TestSelect:
    """Test select merging."""

    def test_select_over_scan(self, builder):
        scan = builder.scan("a", [0, 1])
        result = builder.select(scan, [eq(col(0), lit(1))])
        assert result == Select(scan, [eq(col(0), lit(1))])

    def test_nested_selects_merge(self, builder):
        """select(select(p, P1), P2) has the shape of select(p, P1 + P2)."""
        scan = builder.scan("a", [0, 1])
        p1 = eq(col(0), lit(1))
        p2 = eq(col(1), lit(2))

        nested = builder.select(builder.select(scan, [p1]), [p2])
        flat = builder.select(scan, [p1, p2])

        assert nested == flat
        assert isinstance(nested.input, Scan)
        assert nested.predicates == [p1, p2]

    def test_merge_repeatedly(self, builder):
        plan = builder.scan("a", [0])
        for value in range(4):
            plan = builder.select(plan, [eq(col(0), lit(value))])

        assert isinstance(plan, Select)
        assert isinstance(plan.input, Scan)
        assert [p.right.value for p in plan.predicates] == [0, 1, 2, 3]

    def test_empty_predicates_return_source(self, builder):
        scan = builder.scan("a", [0])
        assert builder.select(scan, []) is scan

    def test_never_nests_selects(self, builder):
        plan = builder.select(builder.select(builder.scan("a", [0]), []), [eq(col(0), lit(1))])
        for node in walk(plan):
            if isinstance(node, Select):
                assert not isinstance(node.input, Select)

    def test_does_not_mutate_existing_select(self, builder):
        first = builder.select(builder.scan("a", [0]), [eq(col(0), lit(1))])
        builder.select(first, [eq(col(0), lit(2))])
        assert len(first.predicates) == 1


class TestJoinPushdown:
    """Test predicate pushdown in join construction."""

    def test_single_side_predicates_are_pushed(self, builder):
        """Each side gets its own Select and the join keeps nothing."""
        left = builder.scan("a", [0, 1])
        right = builder.scan("x", [2, 3])

        result = builder.join(left, right, [eq(col(0), lit(100)), eq(col(2), lit(200))])

        assert isinstance(result, Join)
        assert result.predicates == []
        assert result.left == Select(left, [eq(col(0), lit(100))])
        assert result.right == Select(right, [eq(col(2), lit(200))])

    def test_predicates_on_same_side_merge_into_one_select(self, builder):
        left = builder.scan("a", [0, 1])
        right = builder.scan("x", [2, 3])

        result = builder.join(left, right, [eq(col(0), lit(100)), eq(col(1), lit(200))])

        assert isinstance(result, Join)
        assert result.predicates == []
        assert result.left == Select(left, [eq(col(0), lit(100)), eq(col(1), lit(200))])
        assert result.right == right

    def test_two_sided_predicate_stays_on_join(self, builder):
        left = builder.scan("a", [0, 1])
        right = builder.scan("x", [2, 3])
        condition = eq(col(1), col(3))

        result = builder.join(left, right, [condition])

        assert result == Join(left, right, [condition])

    def test_remaining_predicates_reference_both_sides(self, builder):
        left = builder.scan("a", [0, 1])
        right = builder.scan("x", [2, 3])
        predicates = [
            eq(col(1), col(3)),
            eq(col(0), lit(5)),
            eq(plus(col(0), col(2)), lit(7)),
            eq(col(3), lit(9)),
        ]

        result = builder.join(left, right, predicates)

        assert result.predicates == [eq(col(1), col(3)), eq(plus(col(0), col(2)), lit(7))]
        for predicate in result.predicates:
            columns = predicate.free_columns()
            assert columns & left.attributes()
            assert columns & right.attributes()
        assert result.left == Select(left, [eq(col(0), lit(5))])
        assert result.right == Select(right, [eq(col(3), lit(9))])

    def test_constant_predicate_goes_left(self, builder):
        """A predicate bound by both sides independently is pushed left."""
        left = builder.scan("a", [0])
        right = builder.scan("x", [1])

        result = builder.join(left, right, [eq(lit(1), lit(1))])

        assert result.left == Select(left, [eq(lit(1), lit(1))])
        assert result.right == right

    def test_push_merges_with_existing_select(self, builder):
        left = builder.select(builder.scan("a", [0]), [eq(col(0), lit(1))])
        right = builder.scan("x", [1])

        result = builder.join(left, right, [eq(col(0), lit(2))])

        assert isinstance(result.left, Select)
        assert isinstance(result.left.input, Scan)
        assert len(result.left.predicates) == 2

    def test_correlated_predicate_stays_on_join(self, builder):
        """A predicate needing an outer column is bound by neither side."""
        left = builder.scan("a", [0])
        right = builder.scan("x", [1])

        result = builder.join(left, right, [eq(col(1), col(9))])

        assert result.predicates == [eq(col(1), col(9))]
        assert result.free_columns() == {9}

    def test_join_logs_pushdown(self, builder, caplog):
        caplog.set_level(logging.DEBUG, logger="query_unnest.optimizer.builder")
        builder.join(builder.scan("a", [0]), builder.scan("x", [1]), [eq(col(1), lit(3))])
        assert "right input" in caplog.text


class TestMap:
    """Test map construction without subqueries."""

    def test_empty_assignments_are_a_no_op(self, builder):
        scan = builder.scan("a", [0])
        assert builder.map(scan, []) is scan

    def test_builds_map_node(self, builder):
        scan = builder.scan("a", [0])
        result = builder.map(scan, [(1, plus(col(0), lit(1)))])
        assert result == Map(scan, [(1, plus(col(0), lit(1)))])
        assert result.attributes() == {0, 1}

    def test_consecutive_maps_are_not_merged(self, builder):
        plan = builder.map(builder.scan("a", [0]), [(1, lit(1))])
        plan = builder.map(plan, [(2, plus(col(1), lit(1)))])
        assert isinstance(plan, Map)
        assert isinstance(plan.input, Map)

    def test_disabled_hoist_keeps_subquery_in_map(self, plain_builder):
        """Without hoisting the subquery stays embedded in the expression."""
        scan = plain_builder.scan("a", [0])
        inner = plain_builder.scan("x", [1])
        result = plain_builder.map(scan, [(2, subquery(inner))])

        assert result == Map(scan, [(2, subquery(inner))])
        assert result.has_subquery() is True

    def test_reassigning_existing_column_fails(self, builder):
        scan = builder.scan("a", [0, 1])
        with pytest.raises(PlanInvariantError):
            builder.map(scan, [(1, lit(5))])

    def test_duplicate_assignment_fails(self, builder):
        scan = builder.scan("a", [0])
        with pytest.raises(PlanInvariantError):
            builder.map(scan, [(1, lit(5)), (1, lit(6))])

    def test_unchecked_context_allows_duplicates(self):
        builder = PlanBuilder(OptimizerContext(check_invariants=False))
        scan = builder.scan("a", [0])
        result = builder.map(scan, [(0, lit(5))])
        assert isinstance(result, Map)


class TestProject:
    """Test projection construction and push-through-map."""

    def test_project_over_scan(self, builder):
        scan = builder.scan("a", [0, 1])
        result = builder.project(scan, {0})
        assert result == Project(scan, frozenset({0}))
        assert result.attributes() == {0}

    def test_map_with_unrequested_columns_is_dropped(self, builder):
        scan = builder.scan("a", [0, 1])
        mapped = builder.map(scan, [(2, plus(col(1), lit(1)))])

        result = builder.project(mapped, {0})

        assert result == Project(scan, frozenset({0}))

    def test_project_pushed_below_map(self, builder):
        """All map outputs and their inputs are kept, so the map can go on top."""
        scan = builder.scan("a", [0, 1])
        mapped = builder.map(scan, [(2, plus(col(0), lit(1)))])

        result = builder.project(mapped, {0, 2})

        assert result == Map(Project(scan, frozenset({0})), [(2, plus(col(0), lit(1)))])
        assert result.attributes() == {0, 2}

    def test_project_stays_above_map_when_map_reads_dropped_column(self, builder):
        scan = builder.scan("a", [0, 1])
        mapped = builder.map(scan, [(2, plus(col(0), lit(1)))])

        result = builder.project(mapped, {1, 2})

        assert result == Project(mapped, frozenset({1, 2}))

    def test_project_stays_above_map_when_some_map_columns_dropped(self, builder):
        scan = builder.scan("a", [0, 1])
        mapped = builder.map(scan, [(2, lit(1)), (3, lit(2))])

        result = builder.project(mapped, {0, 2})

        assert isinstance(result, Project)
        assert result.input == mapped

    def test_pushed_projection_keeps_outer_references(self, builder):
        """Columns a correlated map reads from an outer scope need not be kept."""
        scan = builder.scan("x", [2, 3])
        mapped = builder.map(scan, [(4, plus(col(2), col(0)))])

        result = builder.project(mapped, {2, 4})

        assert isinstance(result, Map)
        assert result.input == Project(scan, frozenset({2}))
        assert result.free_columns() == {0}

    def test_requesting_every_column_returns_source(self, builder):
        scan = builder.scan("a", [0, 1])
        assert builder.project(scan, {0, 1}) is scan

    def test_full_projection_of_map_over_dependent_join_adds_no_project(self, plain_builder):
        """Keeping every column of a Map leaves no Project anywhere in the plan."""
        outer = plain_builder.scan("a", [0, 1])
        correlated = plain_builder.select(plain_builder.scan("x", [2]), [eq(col(2), col(0))])
        mapped = plain_builder.map(plain_builder.flatmap(outer, correlated), [(3, col(2))])

        result = plain_builder.project(mapped, {0, 1, 2, 3})

        assert result is mapped
        assert not [node for node in walk(result) if isinstance(node, Project)]

    def test_requesting_unknown_column_fails(self, builder):
        with pytest.raises(PlanInvariantError):
            builder.project(builder.scan("a", [0]), {0, 5})

    def test_unchecked_context_builds_project_anyway(self):
        builder = PlanBuilder(OptimizerContext(check_invariants=False))
        result = builder.project(builder.scan("a", [0]), {5})
        assert result == Project(Scan("a", [0]), frozenset({5}))
