"""Demo plans used by the CLI and the scenario tests."""

from typing import Callable, Dict

from .optimizer.builder import PlanBuilder
from .plan.expressions import col, eq, lit, plus, subquery
from .plan.logical import LogicalPlanNode


def build_correlated_subquery_plan(builder: PlanBuilder) -> LogicalPlanNode:
    """SELECT a, b, 4 + (SELECT x + a FROM x) AS s FROM a

    The subquery reads the outer column a, so hoisting yields a
    dependent join which decorrelation turns into a cross join.
    """
    a = builder.next_id()
    b = builder.next_id()
    x = builder.next_id()
    y = builder.next_id()
    total = builder.next_id()
    s = builder.next_id()

    inner = builder.scan("x", [x, y])
    inner = builder.project(inner, {x})
    inner = builder.map(inner, [(total, plus(col(x), col(a)))])
    inner = builder.project(inner, {total})

    return builder.map(
        builder.scan("a", [a, b]),
        [(s, plus(lit(4), subquery(inner)))],
    )


def build_join_pushdown_plan(builder: PlanBuilder) -> LogicalPlanNode:
    """SELECT * FROM a, x WHERE a.a = 100 AND x.x = 200 AND a.b = x.y"""
    a = builder.next_id()
    b = builder.next_id()
    x = builder.next_id()
    y = builder.next_id()

    return builder.join(
        builder.scan("a", [a, b]),
        builder.scan("x", [x, y]),
        [eq(col(a), lit(100)), eq(col(x), lit(200)), eq(col(b), col(y))],
    )


def build_uncorrelated_subquery_plan(builder: PlanBuilder) -> LogicalPlanNode:
    """SELECT a, b, 3 + (SELECT x FROM x) AS s FROM a"""
    a = builder.next_id()
    b = builder.next_id()
    x = builder.next_id()
    y = builder.next_id()
    s = builder.next_id()

    inner = builder.project(builder.scan("x", [x, y]), {x})
    return builder.map(
        builder.scan("a", [a, b]),
        [(s, plus(lit(3), subquery(inner)))],
    )


SCENARIOS: Dict[str, Callable[[PlanBuilder], LogicalPlanNode]] = {
    "correlated": build_correlated_subquery_plan,
    "pushdown": build_join_pushdown_plan,
    "plus": build_uncorrelated_subquery_plan,
}
