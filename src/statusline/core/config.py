"""Immutable configuration with validation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import os

from dotenv import load_dotenv

DEFAULT_ENV_FILE = "~/.claude/statusline/.env"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class StatuslineConfig:
    """
    Immutable configuration for the statusline renderer.

    All validation happens in __post_init__ to ensure configuration
    is always in a valid state.
    """

    # Locations
    claude_home: str = field(default="~/.claude")
    settings_file: Optional[str] = field(default=None)
    cache_file: Optional[str] = field(default=None)
    excluded_prefix: Optional[str] = field(default=None)

    # Appearance
    theme: Optional[str] = field(default=None)
    bar_width: int = field(default=5)
    warning_threshold: float = field(default=0.6)
    critical_threshold: float = field(default=0.8)
    color: bool = field(default=True)

    # Cache policy
    cache_ttl_days: int = field(default=7)
    lock_timeout: float = field(default=1.0)

    # Git
    git_timeout: float = field(default=2.0)

    # Operational settings
    log_level: str = field(default="WARNING")
    log_file: Optional[str] = field(default=None)

    def __post_init__(self):
        """Validate configuration on initialization."""
        if self.bar_width < 1:
            raise ValueError(f"bar_width must be at least 1, got {self.bar_width}")

        for name in ("warning_threshold", "critical_threshold"):
            value = getattr(self, name)
            if not 0 < value <= 1:
                raise ValueError(f"{name} must be in (0, 1], got {value}")

        if self.warning_threshold > self.critical_threshold:
            raise ValueError(
                f"warning_threshold ({self.warning_threshold}) must not exceed "
                f"critical_threshold ({self.critical_threshold})"
            )

        if self.cache_ttl_days < 1:
            raise ValueError(f"cache_ttl_days must be at least 1, got {self.cache_ttl_days}")

        if self.lock_timeout < 0 or self.git_timeout <= 0:
            raise ValueError("lock_timeout must be >= 0 and git_timeout must be positive")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level}")

    @property
    def claude_home_path(self) -> Path:
        return Path(self.claude_home).expanduser()

    @property
    def settings_file_path(self) -> Path:
        if self.settings_file:
            return Path(self.settings_file).expanduser()
        return self.claude_home_path / "settings.json"

    @property
    def cache_file_path(self) -> Path:
        """Get expanded cache file path with fallback."""
        try:
            if self.cache_file:
                return Path(self.cache_file).expanduser()
            return self.claude_home_path / "statusline" / "diff-cache.json"
        except (RuntimeError, OSError):
            # Fallback to current directory if expansion fails
            return Path.cwd() / ".statusline-diff-cache.json"

    @property
    def excluded_prefix_path(self) -> str:
        """Plan-mode directory, expanded and normalized."""
        if self.excluded_prefix:
            return os.path.normpath(os.path.expanduser(self.excluded_prefix))
        return os.path.normpath(str(self.claude_home_path / "plans"))

    @classmethod
    def from_env(cls) -> "StatuslineConfig":
        """Create configuration from environment variables."""
        no_color = bool(os.getenv("NO_COLOR")) or os.getenv(
            "STATUSLINE_NO_COLOR", "false"
        ).lower() == "true"
        return cls(
            claude_home=os.getenv("CLAUDE_HOME", "~/.claude"),
            settings_file=os.getenv("STATUSLINE_SETTINGS_FILE"),
            cache_file=os.getenv("STATUSLINE_CACHE_FILE"),
            excluded_prefix=os.getenv("STATUSLINE_EXCLUDED_PREFIX"),
            theme=os.getenv("STATUSLINE_THEME"),
            bar_width=int(os.getenv("STATUSLINE_BAR_WIDTH", "5")),
            warning_threshold=float(os.getenv("STATUSLINE_WARNING_THRESHOLD", "0.6")),
            critical_threshold=float(os.getenv("STATUSLINE_CRITICAL_THRESHOLD", "0.8")),
            color=not no_color,
            cache_ttl_days=int(os.getenv("STATUSLINE_CACHE_TTL_DAYS", "7")),
            lock_timeout=float(os.getenv("STATUSLINE_LOCK_TIMEOUT", "1.0")),
            git_timeout=float(os.getenv("STATUSLINE_GIT_TIMEOUT", "2.0")),
            log_level=os.getenv("STATUSLINE_LOG_LEVEL", "WARNING"),
            log_file=os.getenv("STATUSLINE_LOG_FILE"),
        )

    @classmethod
    def from_dict(cls, config_dict: dict) -> "StatuslineConfig":
        """Create configuration from dictionary."""
        # Filter out any unknown keys
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered_dict = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered_dict)


def load_env_file(env_file: Optional[str] = None) -> bool:
    """
    Load an optional dotenv file into the process environment.

    Existing environment variables win over values from the file.
    """
    path = Path(env_file or os.getenv("STATUSLINE_ENV_FILE", DEFAULT_ENV_FILE)).expanduser()
    if not path.is_file():
        return False
    return load_dotenv(path, override=False)
