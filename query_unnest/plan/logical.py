"""Logical plan nodes."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Set, Tuple

from .expressions import Expression


def _union_free_columns(expressions: Iterable[Expression]) -> Set[int]:
    columns: Set[int] = set()
    for expr in expressions:
        columns |= expr.free_columns()
    return columns


class LogicalPlanNode(ABC):
    """Base class for logical plan nodes."""

    @abstractmethod
    def children(self) -> List["LogicalPlanNode"]:
        """Return child nodes."""
        pass

    @abstractmethod
    def attributes(self) -> Set[int]:
        """Return the ids of the columns this node outputs."""
        pass

    @abstractmethod
    def free_columns(self) -> Set[int]:
        """Return column ids referenced in this subtree but not bound by it.

        A non-empty result means the subtree is correlated with an
        enclosing scope.
        """
        pass

    def expressions(self) -> List[Expression]:
        """Return the expressions carried by this node itself."""
        return []

    def has_subquery(self) -> bool:
        """Check whether any expression in this subtree holds a subquery."""
        for expr in self.expressions():
            if expr.has_subquery():
                return True
        for child in self.children():
            if child.has_subquery():
                return True
        return False

    def __repr__(self) -> str:
        return self.__class__.__name__


@dataclass(frozen=True)
class Scan(LogicalPlanNode):
    """Scan a base table, introducing its columns."""

    table_name: str
    columns: List[int]

    def children(self) -> List[LogicalPlanNode]:
        return []

    def attributes(self) -> Set[int]:
        return set(self.columns)

    def free_columns(self) -> Set[int]:
        return set()

    def __repr__(self) -> str:
        return f"Scan({self.table_name}, cols={self.columns})"


@dataclass(frozen=True)
class Select(LogicalPlanNode):
    """Filter rows on a conjunction of predicates."""

    input: LogicalPlanNode
    predicates: List[Expression]

    def children(self) -> List[LogicalPlanNode]:
        return [self.input]

    def expressions(self) -> List[Expression]:
        return list(self.predicates)

    def attributes(self) -> Set[int]:
        return self.input.attributes()

    def free_columns(self) -> Set[int]:
        columns = self.input.free_columns() | _union_free_columns(self.predicates)
        return columns - self.input.attributes()

    def __repr__(self) -> str:
        return f"Select({self.predicates})"


@dataclass(frozen=True)
class Join(LogicalPlanNode):
    """Inner join of two inputs on a conjunction of predicates.

    An empty predicate list is a cross join.
    """

    left: LogicalPlanNode
    right: LogicalPlanNode
    predicates: List[Expression]

    def children(self) -> List[LogicalPlanNode]:
        return [self.left, self.right]

    def expressions(self) -> List[Expression]:
        return list(self.predicates)

    def attributes(self) -> Set[int]:
        # Column ids of the two sides are disjoint
        return self.left.attributes() | self.right.attributes()

    def free_columns(self) -> Set[int]:
        columns = self.left.free_columns() | self.right.free_columns()
        columns |= _union_free_columns(self.predicates)
        return columns - self.attributes()

    def __repr__(self) -> str:
        return f"Join({self.predicates})"


@dataclass(frozen=True)
class Project(LogicalPlanNode):
    """Restrict the output to a set of columns of the input."""

    input: LogicalPlanNode
    columns: FrozenSet[int]

    def children(self) -> List[LogicalPlanNode]:
        return [self.input]

    def attributes(self) -> Set[int]:
        return set(self.columns)

    def free_columns(self) -> Set[int]:
        return self.input.free_columns()

    def __repr__(self) -> str:
        return f"Project({sorted(self.columns)})"


@dataclass(frozen=True)
class Map(LogicalPlanNode):
    """Compute new columns from the input row.

    Each assignment introduces a fresh column id bound to an expression
    over the input's columns (or over outer columns, when correlated).
    """

    input: LogicalPlanNode
    assignments: List[Tuple[int, Expression]]

    def children(self) -> List[LogicalPlanNode]:
        return [self.input]

    def expressions(self) -> List[Expression]:
        return [expr for _, expr in self.assignments]

    def introduced_columns(self) -> Set[int]:
        return {column_id for column_id, _ in self.assignments}

    def attributes(self) -> Set[int]:
        return self.input.attributes() | self.introduced_columns()

    def free_columns(self) -> Set[int]:
        columns = self.input.free_columns() | _union_free_columns(self.expressions())
        return columns - self.input.attributes()

    def __repr__(self) -> str:
        return f"Map({[column_id for column_id, _ in self.assignments]})"


@dataclass(frozen=True)
class FlatMap(LogicalPlanNode):
    """Dependent join: evaluate func once per row of input.

    func may reference input's columns; those references are resolved
    here and do not escape as free columns.
    """

    input: LogicalPlanNode
    func: LogicalPlanNode

    def children(self) -> List[LogicalPlanNode]:
        return [self.input, self.func]

    def attributes(self) -> Set[int]:
        return self.input.attributes() | self.func.attributes()

    def free_columns(self) -> Set[int]:
        columns = self.input.free_columns() | self.func.free_columns()
        return columns - self.input.attributes()

    def __repr__(self) -> str:
        return f"FlatMap(correlated={sorted(self.func.free_columns())})"
