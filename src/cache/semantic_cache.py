"""In-process semantic response cache based on token overlap."""

import asyncio
import time
from typing import Callable, Optional

from cache import policy
from models.cache_entry import SemanticCacheEntry
from models.requests import UserLocation
from models.responses import SemanticCacheStats
from log import get_logger

logger = get_logger("cache.semantic_cache")


class SemanticCache:
    """Cache matching paraphrased queries by Jaccard similarity of their words.

    Only entries sharing both the location bucket and the data version of
    the query are considered. Queries with fewer than `min_tokens` words are
    never matched.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        *,
        max_entries: int,
        ttl_seconds: int,
        min_similarity: float,
        min_tokens: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Create an empty semantic cache."""
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self.min_similarity = min_similarity
        self.min_tokens = min_tokens
        self._clock = clock
        self._entries: dict[str, SemanticCacheEntry] = {}
        self._lock = asyncio.Lock()
        self.hits = 0
        self.misses = 0

    async def lookup(
        self,
        message: str,
        location: Optional[UserLocation] = None,
        data_version: Optional[str] = None,
    ) -> Optional[str]:
        """Return cached reply for a similar query, if any.

        Expired entries met during the scan are purged.

        Parameters:
            message: Current user message.
            location: Optional user location.
            data_version: Data version of the current request.

        Returns:
            Optional[str]: Cached reply of the best matching entry above the
            similarity threshold, None otherwise.
        """
        normalized = policy.normalize_text(message)
        if not normalized:
            return None
        tokens = policy.tokenize(normalized)
        if len(tokens) < self.min_tokens:
            return None

        location_key = policy.location_key(location)
        version_key = policy.version_key(data_version)
        now = self._clock()

        async with self._lock:
            for key in policy.expired_keys(self._entries, now, self.ttl_seconds):
                del self._entries[key]
            best_key, best_score = policy.best_semantic_match(
                self._entries, tokens, location_key, version_key, now, self.ttl_seconds
            )
            if best_key is not None and best_score >= self.min_similarity:
                entry = self._entries[best_key]
                entry.hit_count += 1
                self.hits += 1
                logger.info(
                    "HIT(semantic) score %.2f key: %s... (hits: %d)",
                    best_score,
                    best_key[:8],
                    entry.hit_count,
                )
                return entry.response
            self.misses += 1
            logger.debug("MISS(semantic) best score %.2f", best_score)
            return None

    async def store(
        self,
        message: str,
        response: str,
        location: Optional[UserLocation] = None,
        data_version: Optional[str] = None,
    ) -> None:
        """Store reply for the query.

        Short queries are stored as well; they can never be matched because
        lookups with too few tokens are skipped and their similarity to longer
        queries stays below the threshold.
        """
        normalized = policy.normalize_text(message)
        if not normalized:
            return
        location_key = policy.location_key(location)
        version_key = policy.version_key(data_version)
        key = policy.semantic_entry_key(normalized, location_key, version_key)
        entry = SemanticCacheEntry(
            response=response,
            created_at=self._clock(),
            text=normalized,
            tokens=policy.tokenize(normalized),
            location_key=location_key,
            version_key=version_key,
        )
        async with self._lock:
            if key not in self._entries:
                victim = policy.key_to_evict(self._entries, self.max_entries)
                if victim is not None:
                    del self._entries[victim]
            self._entries[key] = entry
        logger.debug("STORED(semantic) key: %s...", key[:8])

    def size(self) -> int:
        """Return number of stored entries."""
        return len(self._entries)

    def stats(self) -> SemanticCacheStats:
        """Return statistics of the semantic tier."""
        return SemanticCacheStats(
            size=self.size(),
            hits=self.hits,
            misses=self.misses,
            hit_rate=policy.hit_rate(self.hits, self.misses),
        )
