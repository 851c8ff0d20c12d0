"""Query plan representations (expressions and logical operators)."""

from .logical import (
    LogicalPlanNode,
    Scan,
    Select,
    Join,
    Project,
    Map,
    FlatMap,
)
from .expressions import (
    Expression,
    ColumnRef,
    Literal,
    BinaryOp,
    BinaryOpType,
    SubqueryExpression,
    ExpressionVisitor,
    col,
    lit,
    eq,
    plus,
    subquery,
)
from .formatter import PlanFormatter, render_plan, render_expression

__all__ = [
    # Logical nodes
    "LogicalPlanNode",
    "Scan",
    "Select",
    "Join",
    "Project",
    "Map",
    "FlatMap",
    # Expressions
    "Expression",
    "ColumnRef",
    "Literal",
    "BinaryOp",
    "BinaryOpType",
    "SubqueryExpression",
    "ExpressionVisitor",
    "col",
    "lit",
    "eq",
    "plus",
    "subquery",
    # Rendering
    "PlanFormatter",
    "render_plan",
    "render_expression",
]
