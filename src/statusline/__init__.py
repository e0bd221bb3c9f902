"""
Claude Statusline
=================

Single-line status summary for Claude Code sessions: git branch,
session diff, model name and context window usage.

License: MIT
"""

__version__ = "1.0.0"

from .core.config import StatuslineConfig
from .core.models import SessionContext, CacheEntry, DiffResult
from .main import Statusline, StatuslineContainer, create_statusline

__all__ = [
    "StatuslineConfig",
    "SessionContext",
    "CacheEntry",
    "DiffResult",
    "Statusline",
    "StatuslineContainer",
    "create_statusline"
]
