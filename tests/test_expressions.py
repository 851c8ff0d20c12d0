"""Tests for scalar expression analysis."""

from query_unnest.plan.expressions import (
    BinaryOp,
    BinaryOpType,
    ColumnRef,
    Literal,
    SubqueryExpression,
    col,
    eq,
    lit,
    plus,
    subquery,
)
from query_unnest.plan.logical import Map, Project, Scan


class TestFreeColumns:
    """Test free column computation."""

    def test_column_ref(self):
        assert col(3).free_columns() == {3}

    def test_literal_has_no_columns(self):
        assert lit(42).free_columns() == set()

    def test_binary_op_unions_operands(self):
        expr = eq(plus(col(1), col(2)), col(1))
        assert expr.free_columns() == {1, 2}

    def test_subquery_contributes_plan_free_columns_not_attributes(self):
        """The nested plan's outputs stay local; only its outer references escape."""
        inner = Map(Project(Scan("x", [2, 3]), frozenset({2})), [(4, plus(col(2), col(0)))])
        expr = subquery(inner)

        assert expr.free_columns() == {0}
        assert 4 not in expr.free_columns()

    def test_uncorrelated_subquery_is_closed(self):
        expr = subquery(Project(Scan("x", [2, 3]), frozenset({2})))
        assert expr.free_columns() == set()


class TestHasSubquery:
    """Test subquery detection."""

    def test_leaves(self):
        assert col(0).has_subquery() is False
        assert lit(0).has_subquery() is False

    def test_nested_in_binary_op(self):
        expr = plus(lit(1), eq(col(0), subquery(Scan("x", [1]))))
        assert expr.has_subquery() is True

    def test_binary_op_without_subquery(self):
        assert plus(col(0), lit(1)).has_subquery() is False


class TestIsBoundBy:
    """Test binding of expressions to relations."""

    def test_bound_when_columns_available(self):
        scan = Scan("a", [0, 1])
        assert eq(col(0), col(1)).is_bound_by(scan) is True

    def test_not_bound_when_column_missing(self):
        scan = Scan("a", [0, 1])
        assert eq(col(0), col(2)).is_bound_by(scan) is False

    def test_constant_is_bound_by_anything(self):
        assert eq(lit(1), lit(1)).is_bound_by(Scan("empty", [])) is True


def test_factories_build_expected_nodes():
    """Factory helpers should build the plain dataclass nodes."""
    assert col(1) == ColumnRef(1)
    assert lit(5) == Literal(5)
    assert eq(col(1), lit(5)) == BinaryOp(BinaryOpType.EQ, ColumnRef(1), Literal(5))
    assert plus(col(1), lit(5)) == BinaryOp(BinaryOpType.ADD, ColumnRef(1), Literal(5))
    scan = Scan("x", [1])
    assert subquery(scan) == SubqueryExpression(scan)
