"""Relational plan IR with rewriting constructors for subquery unnesting."""

from .optimizer import (
    ColumnIdAllocator,
    OptimizerContext,
    PlanBuilder,
    Rule,
    RuleSet,
)

__version__ = "0.1.0"

__all__ = [
    "ColumnIdAllocator",
    "OptimizerContext",
    "PlanBuilder",
    "Rule",
    "RuleSet",
]
