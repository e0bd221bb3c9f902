"""Version control inspection."""

from .inspector import GitInspector, DETACHED, UNKNOWN

__all__ = [
    "GitInspector",
    "DETACHED",
    "UNKNOWN"
]
