"""Errors raised while building and rewriting plans."""

from typing import Set


class RewriteError(Exception):
    """Base class for plan construction failures."""


class SubqueryArityError(RewriteError):
    """Raised when a scalar subquery does not produce exactly one column."""

    def __init__(self, attributes: Set[int]):
        self.attributes = set(attributes)
        columns = ", ".join(f"@{column}" for column in sorted(self.attributes))
        super().__init__(
            f"Scalar subquery must produce exactly one column, got {len(self.attributes)}: "
            f"[{columns}]"
        )


class UnsupportedRewriteError(RewriteError, NotImplementedError):
    """Raised when hoisting meets an expression it has no rewrite for."""


class PlanInvariantError(RewriteError):
    """Raised when a constructor call would violate a plan invariant.

    These indicate a bug in the caller, e.g. a Map reusing a column id
    already produced by its input.
    """
