"""Shared utilities."""

from .logging import get_contextual_logger, get_logger, log_rewrite, setup_logging

__all__ = [
    "get_contextual_logger",
    "get_logger",
    "log_rewrite",
    "setup_logging",
]
