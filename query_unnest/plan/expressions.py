"""Expression nodes for query plans."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Set

if TYPE_CHECKING:
    from .logical import LogicalPlanNode


class Expression(ABC):
    """Base class for all scalar expressions."""

    @abstractmethod
    def free_columns(self) -> Set[int]:
        """Return the column ids this expression reads."""
        pass

    @abstractmethod
    def has_subquery(self) -> bool:
        """Return True if a subquery is reachable from this expression."""
        pass

    @abstractmethod
    def accept(self, visitor):
        """Accept a visitor for the visitor pattern."""
        pass

    def is_bound_by(self, relation: "LogicalPlanNode") -> bool:
        """Check whether every column read here is produced by relation.

        Args:
            relation: Plan node whose attributes are tested

        Returns:
            True if the expression can be evaluated on top of relation
        """
        return self.free_columns() <= relation.attributes()


@dataclass(frozen=True)
class ColumnRef(Expression):
    """Column reference expression."""

    column_id: int

    def free_columns(self) -> Set[int]:
        return {self.column_id}

    def has_subquery(self) -> bool:
        return False

    def accept(self, visitor):
        return visitor.visit_column_ref(self)

    def __repr__(self) -> str:
        return f"ColumnRef(@{self.column_id})"


@dataclass(frozen=True)
class Literal(Expression):
    """Integer literal expression."""

    value: int

    def free_columns(self) -> Set[int]:
        return set()

    def has_subquery(self) -> bool:
        return False

    def accept(self, visitor):
        return visitor.visit_literal(self)

    def __repr__(self) -> str:
        return f"Literal({self.value})"


class BinaryOpType(Enum):
    """Binary operator types."""

    EQ = "="
    ADD = "+"


@dataclass(frozen=True)
class BinaryOp(Expression):
    """Binary operation expression."""

    op: BinaryOpType
    left: Expression
    right: Expression

    def free_columns(self) -> Set[int]:
        return self.left.free_columns() | self.right.free_columns()

    def has_subquery(self) -> bool:
        return self.left.has_subquery() or self.right.has_subquery()

    def accept(self, visitor):
        return visitor.visit_binary_op(self)

    def __repr__(self) -> str:
        return f"BinaryOp({self.op.value}, {self.left}, {self.right})"


@dataclass(frozen=True)
class SubqueryExpression(Expression):
    """Scalar subquery: a nested plan used as a single value.

    The nested plan may reference columns of the enclosing plan. Those
    outer references are exactly the subquery's free columns; the nested
    plan's own attributes are never visible outside it.
    """

    plan: "LogicalPlanNode"

    def free_columns(self) -> Set[int]:
        return self.plan.free_columns()

    def has_subquery(self) -> bool:
        return True

    def accept(self, visitor):
        return visitor.visit_subquery(self)

    def __repr__(self) -> str:
        return f"SubqueryExpression({self.plan!r})"


class ExpressionVisitor(ABC):
    """Visitor interface for expressions."""

    @abstractmethod
    def visit_column_ref(self, expr: ColumnRef):
        pass

    @abstractmethod
    def visit_literal(self, expr: Literal):
        pass

    @abstractmethod
    def visit_binary_op(self, expr: BinaryOp):
        pass

    @abstractmethod
    def visit_subquery(self, expr: SubqueryExpression):
        pass


def col(column_id: int) -> ColumnRef:
    """Build a column reference."""
    return ColumnRef(column_id)


def lit(value: int) -> Literal:
    """Build an integer literal."""
    return Literal(value)


def eq(left: Expression, right: Expression) -> BinaryOp:
    """Build an equality comparison."""
    return BinaryOp(op=BinaryOpType.EQ, left=left, right=right)


def plus(left: Expression, right: Expression) -> BinaryOp:
    """Build an addition."""
    return BinaryOp(op=BinaryOpType.ADD, left=left, right=right)


def subquery(plan: "LogicalPlanNode") -> SubqueryExpression:
    """Wrap a plan as a scalar subquery."""
    return SubqueryExpression(plan)
