"""Utility functions for the statusline renderer."""

from .logger import setup_logging

__all__ = [
    "setup_logging"
]
