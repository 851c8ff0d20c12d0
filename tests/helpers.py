"""Helpers for walking plan trees in assertions."""

from query_unnest.plan import BinaryOp, SubqueryExpression


def walk(node):
    """Yield every plan node in the tree, subquery plans included."""
    yield node
    for expr in node.expressions():
        yield from _walk_expression(expr)
    for child in node.children():
        yield from walk(child)


def _walk_expression(expr):
    if isinstance(expr, SubqueryExpression):
        yield from walk(expr.plan)
    elif isinstance(expr, BinaryOp):
        yield from _walk_expression(expr.left)
        yield from _walk_expression(expr.right)


def count_nodes(node, node_type):
    """Count nodes of the given type in the tree."""
    return sum(1 for n in walk(node) if isinstance(n, node_type))
