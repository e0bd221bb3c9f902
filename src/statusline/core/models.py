"""Core domain models for the statusline renderer."""

import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

T = TypeVar("T")


class CurrentUsage(BaseModel):
    """Token counts of the most recent request."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    input_tokens: Optional[int] = 0
    output_tokens: Optional[int] = 0
    cache_creation_input_tokens: Optional[int] = 0
    cache_read_input_tokens: Optional[int] = 0


class ContextWindow(BaseModel):
    """Context window figures reported by the host."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    context_window_size: Optional[int] = None
    current_usage: Optional[CurrentUsage] = None
    total_input_tokens: Optional[int] = 0
    total_output_tokens: Optional[int] = 0


class ModelInfo(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: Optional[str] = None
    display_name: Optional[str] = None


class Workspace(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    current_dir: Optional[str] = None
    project_dir: Optional[str] = None


class SessionContext(BaseModel):
    """
    Session context supplied on standard input for one render cycle.

    Every field is optional so that a partial payload still renders;
    unknown fields are ignored. A section that fails validation is
    replaced by None, so only the segments built from it go missing.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)

    session_id: Optional[str] = Field(default=None, description="Unique session identifier")
    cwd: Optional[str] = Field(default=None, description="Working directory of the session")
    transcript_path: Optional[str] = Field(default=None, description="Path to the JSONL transcript")
    model: Optional[ModelInfo] = None
    workspace: Optional[Workspace] = None
    context_window: Optional[ContextWindow] = None

    @field_validator(
        "session_id", "cwd", "transcript_path", "model", "workspace", "context_window",
        mode="wrap"
    )
    @classmethod
    def drop_invalid_section(cls, value: Any, handler) -> Any:
        try:
            return handler(value)
        except ValidationError:
            return None

    @property
    def working_directory(self) -> Optional[str]:
        """Working directory, preferring ``cwd`` over ``workspace.current_dir``."""
        if self.cwd:
            return self.cwd
        if self.workspace and self.workspace.current_dir:
            return self.workspace.current_dir
        return None

    @property
    def model_name(self) -> str:
        """Display name of the active model, or an empty string."""
        if not self.model:
            return ""
        return self.model.display_name or self.model.id or ""


@dataclass(frozen=True)
class CacheEntry:
    """Persisted scan progress for one session."""

    offset: int = 0
    added: int = 0
    removed: int = 0
    updated_at: float = field(default_factory=time.time)

    def __post_init__(self):
        """Validate entry on creation."""
        if self.offset < 0:
            raise ValueError(f"Cache offset cannot be negative: {self.offset}")
        if self.added < 0 or self.removed < 0:
            raise ValueError(
                f"Diff totals cannot be negative: +{self.added} -{self.removed}"
            )

    def advance(self, offset: int, added: int, removed: int) -> "CacheEntry":
        """Return a new entry moved to ``offset`` with the deltas added."""
        return replace(
            self,
            offset=offset,
            added=self.added + added,
            removed=self.removed + removed,
            updated_at=time.time(),
        )

    @property
    def diff(self) -> "DiffResult":
        return DiffResult(added=self.added, removed=self.removed)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "offset": self.offset,
            "added": self.added,
            "removed": self.removed,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        """Create an entry from its serialized form."""
        return cls(
            offset=int(data["offset"]),
            added=int(data["added"]),
            removed=int(data["removed"]),
            updated_at=float(data.get("updated_at", 0.0)),
        )


@dataclass(frozen=True)
class DiffResult:
    """Net added/removed line counts."""

    added: int = 0
    removed: int = 0

    def __post_init__(self):
        if self.added < 0 or self.removed < 0:
            raise ValueError(
                f"Diff counts cannot be negative: +{self.added} -{self.removed}"
            )

    @property
    def is_empty(self) -> bool:
        return self.added == 0 and self.removed == 0


@dataclass(frozen=True)
class EditRecord:
    """Line delta contributed by a single file-edit transcript entry."""

    file_path: str
    added: int
    removed: int


@dataclass(frozen=True)
class UsageSummary:
    """Token usage normalized against the budget."""

    used: int
    budget: int
    fraction: float
    used_label: str
    budget_label: str

    @property
    def percent(self) -> float:
        return self.fraction * 100


class ThemeChoice(Enum):
    """Terminal color theme."""

    LIGHT = "light"
    DARK = "dark"


@dataclass(frozen=True)
class Palette:
    """Foreground colors for each statusline segment."""

    name: str
    branch: str
    added: str
    removed: str
    model: str
    tokens: str
    warning: str
    critical: str
    neutral: str


@dataclass(frozen=True)
class Resolved(Generic[T]):
    """
    Outcome of a fallible lookup.

    ``value`` is always usable; ``degraded`` tells whether it is a
    fallback substituted after a failure.
    """

    value: T
    degraded: bool = False
    reason: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "Resolved[T]":
        return cls(value=value)

    @classmethod
    def fallback(cls, value: T, reason: str) -> "Resolved[T]":
        return cls(value=value, degraded=True, reason=reason)
