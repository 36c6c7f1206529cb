"""Utility functions and helpers package."""

from .logging import get_logger, setup_logging
from .text import safe_filename, slugify

__all__ = [
    "get_logger",
    "safe_filename",
    "setup_logging",
    "slugify",
]
