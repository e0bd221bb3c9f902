"""Custom exception hierarchy for the statusline renderer."""

from typing import Optional, Any


class StatuslineError(Exception):
    """Base exception for all statusline errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.details = details or {}


class ContextError(StatuslineError):
    """Raised when the session context cannot be read or validated."""

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(f"Invalid session context field {field}: {reason}")
        self.field = field
        self.value = value
        self.reason = reason


class CacheError(StatuslineError):
    """Raised when diff cache storage operations fail."""

    def __init__(self, operation: str, path: str, reason: str):
        super().__init__(f"Cache {operation} failed for {path}: {reason}")
        self.operation = operation
        self.path = path


class TranscriptError(StatuslineError):
    """Raised when a transcript file or record cannot be parsed."""

    def __init__(self, file_path: str, offset: Optional[int] = None, reason: str = ""):
        message = f"Failed to read transcript {file_path}"
        if offset is not None:
            message += f" at offset {offset}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.offset = offset


class GitError(StatuslineError):
    """Raised when git metadata is unavailable."""

    def __init__(self, cwd: str, reason: str):
        super().__init__(f"Git query failed in {cwd}: {reason}")
        self.cwd = cwd
