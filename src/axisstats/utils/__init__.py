"""Utility functions for axisstats."""

from .logging import configure_logging, get_logger, install_null_handler, resolve_level

__all__ = [
    "configure_logging",
    "get_logger",
    "install_null_handler",
    "resolve_level",
]
