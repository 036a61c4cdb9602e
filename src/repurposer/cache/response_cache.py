"""Two-tier cache for YouTube API responses.

Lookups go to the in-process map first, then to the persisted store. Both
tiers share keys and a TTL. Expired entries are kept in both tiers so they can
be served as a fallback when the API quota runs out.
"""

import hashlib
import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..db.connection import DatabaseConnection
from ..db.models import ApiCacheEntry
from ..logging.config import get_logger

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60

Clock = Callable[[], float]


@dataclass
class CacheEntry:
    """A cached response and the epoch time it was fetched."""

    data: Any
    stored_at: float

    def is_fresh(self, now: float, ttl_seconds: float) -> bool:
        return now - self.stored_at < ttl_seconds


class PersistentStore(Protocol):
    """Key/value store backing the second cache tier."""

    async def get(self, key: str) -> CacheEntry | None: ...

    async def set(self, key: str, entry: CacheEntry) -> None: ...


class MemoryStore:
    """Process-lifetime dict store."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    async def get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    async def set(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class SqlStore:
    """Persisted store on the ApiCacheEntries table."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    @staticmethod
    def hash_key(key: str) -> str:
        return hashlib.sha256(key.encode("utf-8")).hexdigest()

    async def get(self, key: str) -> CacheEntry | None:
        async with self.db.session() as session:
            result = await session.execute(
                select(ApiCacheEntry).where(ApiCacheEntry.key_hash == self.hash_key(key))
            )
            row = result.scalar_one_or_none()
            if row is None:
                return None
            return CacheEntry(data=row.payload, stored_at=row.stored_at)

    async def set(self, key: str, entry: CacheEntry) -> None:
        async with self.db.session() as session:
            key_hash = self.hash_key(key)
            existing = await session.get(ApiCacheEntry, key_hash)
            if existing is None:
                session.add(
                    ApiCacheEntry(
                        key_hash=key_hash,
                        cache_key=key,
                        payload=entry.data,
                        stored_at=entry.stored_at,
                    )
                )
            else:
                existing.payload = entry.data
                existing.stored_at = entry.stored_at


class ResponseCache:
    """Memory-then-persisted cache with an injectable clock."""

    def __init__(
        self,
        persistent: PersistentStore | None = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Clock = time.time,
    ):
        self.memory = MemoryStore()
        self.persistent = persistent
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    @staticmethod
    def make_key(endpoint: str, params: dict[str, Any]) -> str:
        """Build the cache key from an endpoint and its query parameters."""
        return f"{endpoint}:{json.dumps(params, sort_keys=True, separators=(',', ':'))}"

    async def get(self, key: str) -> Any | None:
        """Return a fresh cached value, or None on a miss."""
        now = self.clock()

        entry = await self.memory.get(key)
        if entry is not None and entry.is_fresh(now, self.ttl_seconds):
            return entry.data

        stored = await self._read_persistent(key)
        if stored is not None and stored.is_fresh(now, self.ttl_seconds):
            # Keep the original timestamp so the TTL is not extended
            await self.memory.set(key, stored)
            return stored.data

        return None

    async def get_stale(self, key: str) -> Any | None:
        """Return the latest value for a key regardless of its age."""
        stored = await self._read_persistent(key)
        if stored is not None:
            return stored.data
        entry = await self.memory.get(key)
        return entry.data if entry is not None else None

    async def set(self, key: str, data: Any) -> None:
        """Write a value to both tiers, stamped with the current time."""
        entry = CacheEntry(data=data, stored_at=self.clock())
        await self.memory.set(key, entry)
        if self.persistent is None:
            return
        try:
            await self.persistent.set(key, entry)
        except SQLAlchemyError as e:
            logger.warning("Failed to persist cache entry", cache_key=key, error=str(e))

    async def _read_persistent(self, key: str) -> CacheEntry | None:
        if self.persistent is None:
            return None
        try:
            return await self.persistent.get(key)
        except SQLAlchemyError as e:
            logger.warning("Failed to read persisted cache entry", cache_key=key, error=str(e))
            return None
