"""Shared fixtures for plan construction tests."""

import pytest

from query_unnest.optimizer import OptimizerContext, PlanBuilder, Rule


@pytest.fixture
def context():
    """Session context with hoisting and decorrelation enabled."""
    ctx = OptimizerContext()
    ctx.enable(Rule.HOIST)
    ctx.enable(Rule.DECORRELATE)
    return ctx


@pytest.fixture
def builder(context):
    """Builder with every rewrite rule enabled."""
    return PlanBuilder(context)


@pytest.fixture
def plain_builder():
    """Builder with no rewrite rules enabled."""
    return PlanBuilder(OptimizerContext())
