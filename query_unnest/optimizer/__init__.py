"""Query optimizer: rewriting plan constructors and their session state."""

from .builder import PlanBuilder
from .context import ColumnIdAllocator, OptimizerContext, Rule, RuleSet
from .errors import (
    PlanInvariantError,
    RewriteError,
    SubqueryArityError,
    UnsupportedRewriteError,
)

__all__ = [
    "PlanBuilder",
    "ColumnIdAllocator",
    "OptimizerContext",
    "Rule",
    "RuleSet",
    "RewriteError",
    "SubqueryArityError",
    "UnsupportedRewriteError",
    "PlanInvariantError",
]
