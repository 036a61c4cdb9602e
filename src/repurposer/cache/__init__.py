"""Response caching for third-party API calls."""

from .response_cache import (
    DEFAULT_TTL_SECONDS,
    CacheEntry,
    MemoryStore,
    PersistentStore,
    ResponseCache,
    SqlStore,
)

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "CacheEntry",
    "MemoryStore",
    "PersistentStore",
    "ResponseCache",
    "SqlStore",
]
