"""Core domain models and configuration."""

from .config import LOG_LEVELS, StatuslineConfig, load_env_file
from .models import (
    SessionContext,
    CacheEntry,
    DiffResult,
    EditRecord,
    UsageSummary,
    ThemeChoice,
    Palette,
    Resolved
)
from .exceptions import (
    StatuslineError,
    ContextError,
    CacheError,
    TranscriptError,
    GitError
)

__all__ = [
    "StatuslineConfig",
    "load_env_file",
    "LOG_LEVELS",
    "SessionContext",
    "CacheEntry",
    "DiffResult",
    "EditRecord",
    "UsageSummary",
    "ThemeChoice",
    "Palette",
    "Resolved",
    "StatuslineError",
    "ContextError",
    "CacheError",
    "TranscriptError",
    "GitError"
]
