"""Durable per-session state."""

from .diff_cache import (
    CACHE_FORMAT_VERSION,
    CacheStorage,
    DiffCache,
    InMemoryStorage,
    JsonFileStorage
)

__all__ = [
    "CACHE_FORMAT_VERSION",
    "CacheStorage",
    "DiffCache",
    "InMemoryStorage",
    "JsonFileStorage"
]
