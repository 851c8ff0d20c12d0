"""Example: build a correlated scalar subquery plan with and without the rewrite rules."""

from pathlib import Path

from query_unnest.config.config import load_config
from query_unnest.optimizer import OptimizerContext, PlanBuilder, Rule
from query_unnest.plan import col, lit, plus, render_plan, subquery
from query_unnest.utils.logging import setup_logging


def build(builder: PlanBuilder):
    """SELECT a, b, 4 + (SELECT x + a FROM x) FROM a"""
    a, b, x, y, total, s = (builder.next_id() for _ in range(6))

    inner = builder.project(builder.scan("x", [x, y]), {x})
    inner = builder.map(inner, [(total, plus(col(x), col(a)))])
    inner = builder.project(inner, {total})

    return builder.map(builder.scan("a", [a, b]), [(s, plus(lit(4), subquery(inner)))])


def main():
    config_path = Path(__file__).parent.parent / "config" / "example_config.yaml"
    config = load_config(str(config_path))
    setup_logging(level="DEBUG")

    print("Without rewrite rules:")
    print(render_plan(build(PlanBuilder(OptimizerContext()))))
    print()

    print("Hoisting only (dependent join stays):")
    context = OptimizerContext()
    context.enable(Rule.HOIST)
    print(render_plan(build(PlanBuilder(context))))
    print()

    print("Rules from config:")
    print(render_plan(build(PlanBuilder(OptimizerContext.from_config(config.optimizer)))))


if __name__ == "__main__":
    main()
