"""In-memory exact response cache backend."""

import asyncio
from typing import Optional

from cache import policy
from cache.backend import CacheBackend
from models.cache_entry import CacheEntry
from models.config import InMemoryCacheConfig
from log import get_logger

logger = get_logger("cache.in_memory_backend")


class InMemoryCacheBackend(CacheBackend):
    """Bounded in-process map of cache entries.

    When the map is full, the single oldest entry (by creation time) is
    evicted before a new one is inserted.
    """

    name = "memory"

    def __init__(self, config: InMemoryCacheConfig) -> None:
        """Create a new instance of in-memory cache.

        Parameters:
            config (InMemoryCacheConfig): Capacity of the cache.
        """
        self.cache_config = config
        self._entries: dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    @property
    def max_entries(self) -> int:
        """Return capacity of the cache."""
        return self.cache_config.max_entries

    async def get(self, key: str) -> Optional[CacheEntry]:
        """Get the entry associated with the given key."""
        async with self._lock:
            return self._entries.get(key)

    async def set(self, key: str, entry: CacheEntry, ttl_seconds: int) -> None:
        """Store the entry, evicting the oldest one when the cache is full.

        The TTL is not used here; expiration is checked on read.
        """
        _ = ttl_seconds
        async with self._lock:
            if key not in self._entries:
                victim = policy.key_to_evict(self._entries, self.max_entries)
                if victim is not None:
                    del self._entries[victim]
                    logger.debug("Evicted oldest entry %s...", victim[:8])
            self._entries[key] = entry

    async def delete(self, key: str) -> bool:
        """Delete the entry associated with the given key."""
        async with self._lock:
            return self._entries.pop(key, None) is not None

    async def health(self) -> bool:
        """Check if the cache is ready.

        Returns:
            True (`bool`): Always `True` for this in-memory cache implementation.
        """
        return True

    def size(self) -> Optional[int]:
        """Return number of stored entries."""
        return len(self._entries)
