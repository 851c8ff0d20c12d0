"""Text rendering of logical plans for inspection and tests."""

from typing import Callable, Dict, Iterable, List

from .expressions import (
    BinaryOp,
    ColumnRef,
    Expression,
    ExpressionVisitor,
    Literal,
    SubqueryExpression,
)
from .logical import FlatMap, Join, LogicalPlanNode, Map, Project, Scan, Select


class _ExpressionFormatter(ExpressionVisitor):
    """Render an expression on one line.

    Subqueries are shown as numbered placeholders; the nested plans are
    collected so the plan formatter can render them below the node.
    """

    def __init__(self, start: int = 0):
        self.subqueries: List[SubqueryExpression] = []
        self._start = start

    def visit_column_ref(self, expr: ColumnRef) -> str:
        return f"@{expr.column_id}"

    def visit_literal(self, expr: Literal) -> str:
        return str(expr.value)

    def visit_binary_op(self, expr: BinaryOp) -> str:
        left = expr.left.accept(self)
        right = expr.right.accept(self)
        return f"({left} {expr.op.value} {right})"

    def visit_subquery(self, expr: SubqueryExpression) -> str:
        self.subqueries.append(expr)
        return f"subquery#{self._start + len(self.subqueries)}"


class PlanFormatter:
    """Format logical plans as indented text, one node per line."""

    def __init__(self):
        self._detail_builders: Dict[type, Callable[[LogicalPlanNode], str]] = {}
        self._detail_builders[Scan] = self._scan_detail
        self._detail_builders[Select] = self._select_detail
        self._detail_builders[Join] = self._join_detail
        self._detail_builders[Project] = self._project_detail
        self._detail_builders[Map] = self._map_detail
        self._detail_builders[FlatMap] = self._flatmap_detail
        self._pending: List[SubqueryExpression] = []
        self._subquery_count = 0

    def format(self, node: LogicalPlanNode, depth: int = 0) -> List[str]:
        lines: List[str] = []
        self._subquery_count = 0
        self._append_node_line(node, depth, lines)
        return lines

    def _append_node_line(self, node: LogicalPlanNode, depth: int, lines: List[str]) -> None:
        self._pending = []
        indent = self._build_indent(depth)
        header = self._build_header(node)
        lines.append(f"{indent}{header}")
        nested = self._pending
        first = self._subquery_count - len(nested) + 1
        for offset, expr in enumerate(nested):
            label_indent = "  " * (depth + 1)
            lines.append(f"{label_indent}subquery#{first + offset}:")
            self._append_node_line(expr.plan, depth + 2, lines)
        for child in node.children():
            self._append_node_line(child, depth + 1, lines)

    def _build_indent(self, depth: int) -> str:
        if depth == 0:
            return ""
        return f"{'  ' * depth}-> "

    def _build_header(self, node: LogicalPlanNode) -> str:
        name = node.__class__.__name__
        detail = self._detail_for(node)
        if detail:
            return f"{name} {detail}"
        return name

    def _detail_for(self, node: LogicalPlanNode) -> str:
        builder = self._detail_builders.get(type(node))
        if builder is None:
            return ""
        return builder(node)

    def _scan_detail(self, node: Scan) -> str:
        columns = self._format_column_list(node.columns)
        return f"table={node.table_name} columns=[{columns}]"

    def _select_detail(self, node: Select) -> str:
        return f"predicates=[{self._format_predicates(node.predicates)}]"

    def _join_detail(self, node: Join) -> str:
        return f"predicates=[{self._format_predicates(node.predicates)}]"

    def _project_detail(self, node: Project) -> str:
        return f"columns=[{self._format_column_list(sorted(node.columns))}]"

    def _map_detail(self, node: Map) -> str:
        parts: List[str] = []
        for column_id, expr in node.assignments:
            parts.append(f"@{column_id} <- {self._format_expression(expr)}")
        return f"assignments=[{', '.join(parts)}]"

    def _flatmap_detail(self, node: FlatMap) -> str:
        correlated = self._format_column_list(sorted(node.func.free_columns()))
        return f"correlated=[{correlated}]"

    def _format_predicates(self, predicates: List[Expression]) -> str:
        parts: List[str] = []
        for predicate in predicates:
            parts.append(self._format_expression(predicate))
        return " AND ".join(parts)

    def _format_expression(self, expr: Expression) -> str:
        formatter = _ExpressionFormatter(self._subquery_count)
        text = expr.accept(formatter)
        self._subquery_count += len(formatter.subqueries)
        self._pending.extend(formatter.subqueries)
        return text

    def _format_column_list(self, columns: Iterable[int]) -> str:
        return ", ".join(f"@{column}" for column in columns)


def render_plan(node: LogicalPlanNode, indent: int = 0) -> str:
    """Render a plan as a newline-joined string.

    Args:
        node: Root of the plan
        indent: Nesting depth of the root line

    Returns:
        Deterministic multi-line text
    """
    return "\n".join(PlanFormatter().format(node, indent))


def render_expression(expr: Expression) -> str:
    """Render a single expression on one line."""
    return expr.accept(_ExpressionFormatter())
