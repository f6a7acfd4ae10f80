"""Utility functions for the site publisher."""

from sitepublisher.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
