"""Command line interface."""

from .qun import cli

__all__ = ["cli"]
