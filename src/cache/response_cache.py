"""Two-tier response cache: exact keyed cache in front of the semantic cache."""

import time
from typing import Callable, Optional, Sequence

from cache import policy
from cache.backend import CacheBackend, CacheBackendError
from cache.backend_factory import CacheBackendFactory
from cache.semantic_cache import SemanticCache
from models.cache_entry import CacheEntry
from models.config import ResponseCacheConfiguration
from models.requests import ChatMessage, UserLocation
from models.responses import CacheStats
from log import get_logger

logger = get_logger("cache.response_cache")


class ResponseCache:
    """Response cache used by the chat service.

    The exact tier is stored in the selected backend. Whenever that backend
    fails, the cache switches to the in-process backend for the rest of the
    process lifetime and the failed operation is retried there once, so cache
    problems never fail a chat request.
    """

    def __init__(
        self,
        config: ResponseCacheConfiguration,
        backend: CacheBackend,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Create response cache on top of already constructed backend."""
        self.cache_config = config
        self._backend = backend
        self._clock = clock
        self.hits = 0
        self.misses = 0
        self.semantic = SemanticCache(
            max_entries=config.semantic_max_entries,
            ttl_seconds=config.ttl_seconds,
            min_similarity=config.semantic_min_similarity,
            min_tokens=config.semantic_min_tokens,
            clock=clock,
        )

    @classmethod
    async def create(cls, config: ResponseCacheConfiguration) -> "ResponseCache":
        """Select backend according to configuration and create the cache."""
        backend = await CacheBackendFactory.create(config)
        return cls(config, backend)

    @property
    def backend_name(self) -> str:
        """Return name of the active exact cache backend."""
        return self._backend.name

    @property
    def ttl_seconds(self) -> int:
        """Return time to live of cached replies."""
        return self.cache_config.ttl_seconds

    async def _switch_to_memory(
        self, failed: CacheBackend, error: CacheBackendError
    ) -> None:
        """Replace failed backend by in-process one.

        Nothing happens when another request already replaced it.
        """
        if self._backend is not failed:
            return
        logger.warning(
            "Cache backend %s failed, switching to memory: %s", failed.name, error
        )
        self._backend = CacheBackendFactory.in_memory(self.cache_config)
        await failed.close()

    @staticmethod
    def make_key(
        messages: Sequence[ChatMessage],
        location: Optional[UserLocation] = None,
        data_version: Optional[str] = None,
    ) -> str:
        """Compute exact cache key for the request."""
        return policy.exact_cache_key(messages, location, data_version)

    async def get(self, key: str) -> Optional[str]:
        """Return cached reply for the exact key.

        Expired entries are deleted and reported as a miss.
        """
        backend = self._backend
        try:
            entry = await backend.get(key)
        except CacheBackendError as e:
            await self._switch_to_memory(backend, e)
            entry = await self._backend.get(key)

        if entry is None:
            self.misses += 1
            logger.debug("MISS key: %s...", key[:8])
            return None

        if policy.is_expired(entry, self._clock(), self.ttl_seconds):
            await self.delete(key)
            self.misses += 1
            logger.debug("EXPIRED key: %s...", key[:8])
            return None

        entry.hit_count += 1
        self.hits += 1
        logger.info("HIT key: %s... (hits: %d)", key[:8], entry.hit_count)
        return entry.response

    async def set(self, key: str, response: str) -> None:
        """Store reply under the exact key."""
        entry = CacheEntry(response=response, created_at=self._clock())
        backend = self._backend
        try:
            await backend.set(key, entry, self.ttl_seconds)
        except CacheBackendError as e:
            await self._switch_to_memory(backend, e)
            await self._backend.set(key, entry, self.ttl_seconds)
        logger.debug("STORED key: %s...", key[:8])

    async def delete(self, key: str) -> None:
        """Remove entry stored under the exact key."""
        backend = self._backend
        try:
            await backend.delete(key)
        except CacheBackendError as e:
            await self._switch_to_memory(backend, e)

    async def get_semantic(
        self,
        message: str,
        location: Optional[UserLocation] = None,
        data_version: Optional[str] = None,
    ) -> Optional[str]:
        """Return cached reply for a paraphrase of the message."""
        return await self.semantic.lookup(message, location, data_version)

    async def set_semantic(
        self,
        message: str,
        response: str,
        location: Optional[UserLocation] = None,
        data_version: Optional[str] = None,
    ) -> None:
        """Store reply for the message in the semantic tier."""
        await self.semantic.store(message, response, location, data_version)

    def stats(self) -> CacheStats:
        """Return statistics of both tiers."""
        return CacheStats(
            backend=self._backend.name,
            size=self._backend.size(),
            max_size=(
                self.cache_config.memory.max_entries
                if self.cache_config.memory is not None
                else self.cache_config.semantic_max_entries
            ),
            hits=self.hits,
            misses=self.misses,
            hit_rate=policy.hit_rate(self.hits, self.misses),
            semantic=self.semantic.stats(),
        )

    async def close(self) -> None:
        """Release backend resources."""
        await self._backend.close()
