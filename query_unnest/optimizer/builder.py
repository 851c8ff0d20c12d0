"""Plan constructors that rewrite as they build.

Every method returns a new plan that is already normalized with respect
to the rules enabled in the session context. There is no separate
optimization pass: predicate pushdown, select merging, subquery hoisting
and decorrelation all fire inside the constructor call that makes them
applicable.
"""

import logging
from typing import AbstractSet, Iterable, List, Optional, Set, Tuple

from ..plan.expressions import (
    BinaryOp,
    BinaryOpType,
    Expression,
    SubqueryExpression,
    col,
    plus,
)
from ..plan.logical import (
    FlatMap,
    Join,
    LogicalPlanNode,
    Map,
    Project,
    Scan,
    Select,
)
from .context import OptimizerContext, Rule
from ..utils.logging import log_rewrite
from .errors import PlanInvariantError, SubqueryArityError, UnsupportedRewriteError

logger = logging.getLogger(__name__)

Assignment = Tuple[int, Expression]


class PlanBuilder:
    """Smart constructors for logical plans."""

    def __init__(self, context: Optional[OptimizerContext] = None):
        """Initialize builder.

        Args:
            context: Session context holding the id allocator and the
                enabled rules. A fresh context with no rules is used if
                omitted.
        """
        self.context = context if context is not None else OptimizerContext()

    def next_id(self) -> int:
        """Allocate a fresh column id from the session allocator."""
        return self.context.next_id()

    def scan(self, table_name: str, columns: Iterable[int]) -> Scan:
        return Scan(table_name, list(columns))

    def select(
        self,
        source: LogicalPlanNode,
        predicates: Iterable[Expression],
    ) -> LogicalPlanNode:
        """Filter source, merging with any Select directly below.

        Args:
            source: Input plan
            predicates: Conjuncts to apply

        Returns:
            A plan with at most one Select directly on a non-Select input
        """
        predicates = list(predicates)
        if isinstance(source, Select):
            log_rewrite(
                logger,
                "select",
                "merge",
                f"Merging {len(predicates)} predicate(s) into existing Select",
            )
            return self.select(source.input, source.predicates + predicates)

        if not predicates:
            return source

        return Select(source, predicates)

    def join(
        self,
        left: LogicalPlanNode,
        right: LogicalPlanNode,
        predicates: Iterable[Expression],
    ) -> LogicalPlanNode:
        """Join left and right, pushing single-side predicates below the join.

        Predicates are examined in order. The first one bound entirely by
        one side is moved into a Select over that side and the join is
        rebuilt, so the remaining predicates are tested against the new
        inputs. A predicate bound by both sides goes left.

        Args:
            left: Left input
            right: Right input
            predicates: Join conjuncts

        Returns:
            A Join carrying only predicates that need both sides
        """
        predicates = list(predicates)
        for index, predicate in enumerate(predicates):
            remaining = predicates[:index] + predicates[index + 1:]
            if predicate.is_bound_by(left):
                log_rewrite(logger, "pushdown", "left", f"Pushing {predicate!r} into left input")
                return self.join(self.select(left, [predicate]), right, remaining)
            if predicate.is_bound_by(right):
                log_rewrite(logger, "pushdown", "right", f"Pushing {predicate!r} into right input")
                return self.join(left, self.select(right, [predicate]), remaining)

        return Join(left, right, predicates)

    def map(
        self,
        source: LogicalPlanNode,
        assignments: Iterable[Assignment],
    ) -> LogicalPlanNode:
        """Compute new columns over source.

        With hoisting enabled, the first assignment holding a subquery is
        taken out, the rest are mapped first and the taken assignment is
        then hoisted on top of that result. Repeating this gives the
        nesting order of multiple hoisted subqueries.

        Args:
            source: Input plan
            assignments: (new column id, expression) pairs

        Returns:
            source itself when there is nothing to compute, otherwise a
            plan whose attributes are source's plus the assigned ids
        """
        assignments = list(assignments)
        if not assignments:
            return source

        if self.context.check_invariants:
            self._check_assignments(source, assignments)

        if self.context.is_enabled(Rule.HOIST):
            for index, (column_id, expr) in enumerate(assignments):
                if expr.has_subquery():
                    remaining = assignments[:index] + assignments[index + 1:]
                    return self.hoist(self.map(source, remaining), column_id, expr)

        return Map(source, assignments)

    def hoist(
        self,
        source: LogicalPlanNode,
        column_id: int,
        expr: Expression,
    ) -> LogicalPlanNode:
        """Bind column_id to expr on top of source, lifting subqueries into the plan.

        A scalar subquery becomes a dependent join with source. An addition
        is split: each operand is hoisted under a fresh id (left first, the
        right one on top of the left's result), the sum is mapped into
        column_id, and the result is projected back to source's attributes
        plus column_id so the fresh ids do not leak.

        The subquery check runs before the shape check: any expression
        without a subquery is mapped whole, whatever its shape. So only
        additions that actually hold a subquery allocate fresh ids, and in
        ``plus(eq(a, b), subquery(p))`` the equality operand is mapped
        instead of being rejected.

        Args:
            source: Plan the new column is added to
            column_id: Id of the new column
            expr: Expression to bind

        Returns:
            Plan producing source's attributes plus column_id

        Raises:
            SubqueryArityError: If a subquery plan does not have exactly one column
            UnsupportedRewriteError: If a subquery sits in an expression
                that cannot be split (e.g. an equality)
        """
        if isinstance(expr, SubqueryExpression):
            return self._hoist_subquery(source, column_id, expr)

        if not expr.has_subquery():
            return self.map(source, [(column_id, expr)])

        if isinstance(expr, BinaryOp) and expr.op == BinaryOpType.ADD:
            return self._hoist_addition(source, column_id, expr)

        raise UnsupportedRewriteError(f"Hoisting subquery out of {expr!r} is not implemented")

    def _hoist_subquery(
        self,
        source: LogicalPlanNode,
        column_id: int,
        expr: SubqueryExpression,
    ) -> LogicalPlanNode:
        attributes = expr.plan.attributes()
        if len(attributes) != 1:
            raise SubqueryArityError(attributes)

        (output_column,) = attributes
        log_rewrite(
            logger,
            Rule.HOIST.value,
            "subquery",
            f"Hoisting subquery into dependent join as @{column_id}",
            column=column_id,
        )
        renamed = self.map(expr.plan, [(column_id, col(output_column))])
        return self.flatmap(source, renamed)

    def _hoist_addition(
        self,
        source: LogicalPlanNode,
        column_id: int,
        expr: BinaryOp,
    ) -> LogicalPlanNode:
        left_id = self.next_id()
        right_id = self.next_id()
        log_rewrite(
            logger,
            Rule.HOIST.value,
            "split_add",
            f"Splitting addition for @{column_id} into @{left_id} and @{right_id}",
            column=column_id,
            operands=[left_id, right_id],
        )

        original = source.attributes()
        plan = self.hoist(source, left_id, expr.left)
        plan = self.hoist(plan, right_id, expr.right)
        plan = self.map(plan, [(column_id, plus(col(left_id), col(right_id)))])
        return self.project(plan, original | {column_id})

    def flatmap(self, outer: LogicalPlanNode, inner: LogicalPlanNode) -> LogicalPlanNode:
        """Dependent join of outer and inner, decorrelated where possible.

        With decorrelation enabled:
        - an uncorrelated inner becomes a cross join,
        - a Project on top of inner is pulled above the dependent join,
          keeping outer's columns,
        - a Map on top of inner is pulled above the dependent join.
        Anything else stays an explicit FlatMap.

        Args:
            outer: Plan providing the rows inner is evaluated for
            inner: Plan that may reference outer's columns

        Returns:
            Plan producing outer's and inner's attributes
        """
        if self.context.is_enabled(Rule.DECORRELATE):
            if not inner.free_columns():
                log_rewrite(
                    logger,
                    Rule.DECORRELATE.value,
                    "cross_join",
                    "Dependent join is uncorrelated, rewriting to cross join",
                )
                return self.join(outer, inner, [])

            if isinstance(inner, Project):
                log_rewrite(
                    logger,
                    Rule.DECORRELATE.value,
                    "pull_project",
                    "Pulling Project above dependent join",
                )
                columns = set(inner.columns) | outer.attributes()
                return self.project(self.flatmap(outer, inner.input), columns)

            if isinstance(inner, Map):
                log_rewrite(
                    logger,
                    Rule.DECORRELATE.value,
                    "pull_map",
                    "Pulling Map above dependent join",
                    columns=sorted(inner.introduced_columns()),
                )
                return self.map(self.flatmap(outer, inner.input), inner.assignments)

        return FlatMap(outer, inner)

    def project(
        self,
        source: LogicalPlanNode,
        columns: AbstractSet[int],
    ) -> LogicalPlanNode:
        """Restrict source to columns, pushing through a Map where valid.

        Requesting exactly source's attributes returns source unchanged.
        A Map directly below is handled in two cases:
        - none of its columns are requested: the Map is dropped and the
          projection applies to its input;
        - all of its columns are requested, together with every input
          column its expressions read: the projection goes below the Map.
        Otherwise an explicit Project is built.

        Args:
            source: Input plan
            columns: Column ids to keep

        Returns:
            Plan whose attributes are exactly columns

        Raises:
            PlanInvariantError: If columns are not all produced by source
                (only when invariant checks are enabled)
        """
        columns = frozenset(columns)
        available = source.attributes()
        if self.context.check_invariants:
            missing = columns - available
            if missing:
                raise PlanInvariantError(
                    f"Project requests columns not produced by its input: {sorted(missing)}"
                )

        if columns == available:
            return source

        if isinstance(source, Map):
            pushed = self._project_through_map(source, columns)
            if pushed is not None:
                return pushed

        return Project(source, columns)

    def _project_through_map(
        self,
        source: Map,
        columns: frozenset,
    ) -> Optional[LogicalPlanNode]:
        introduced = source.introduced_columns()
        input_columns = source.input.attributes()

        if not columns & introduced and columns <= input_columns:
            log_rewrite(logger, "project", "drop_map", "Dropping Map with no requested columns")
            return self.project(source.input, columns)

        if introduced <= columns:
            required = self._required_columns(source.assignments) & input_columns
            if required <= columns:
                log_rewrite(logger, "project", "push_below_map", "Pushing Project below Map")
                below = self.project(source.input, columns - introduced)
                return self.map(below, source.assignments)

        return None

    def _required_columns(self, assignments: List[Assignment]) -> Set[int]:
        columns: Set[int] = set()
        for _, expr in assignments:
            columns |= expr.free_columns()
        return columns

    def _check_assignments(
        self,
        source: LogicalPlanNode,
        assignments: List[Assignment],
    ) -> None:
        existing = source.attributes()
        seen: Set[int] = set()
        for column_id, _ in assignments:
            if column_id in existing or column_id in seen:
                raise PlanInvariantError(
                    f"Map assigns column @{column_id} which is already defined"
                )
            seen.add(column_id)

    def __repr__(self) -> str:
        return f"PlanBuilder({self.context!r})"
