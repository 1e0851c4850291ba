"""Response cache components.

This module provides the two-tier response cache used by the chat endpoint:
- Exact cache keyed by a digest of the last messages, location and data version
- Semantic cache matching paraphrases by token overlap

The exact tier is stored either in process memory or in Redis. When Redis is
not reachable, the in-memory backend is used instead.
"""

from cache.backend import CacheBackend, CacheBackendError
from cache.in_memory_backend import InMemoryCacheBackend
from cache.redis_backend import RedisCacheBackend
from cache.backend_factory import CacheBackendFactory
from cache.semantic_cache import SemanticCache
from cache.response_cache import ResponseCache

__all__ = [
    "CacheBackend",
    "CacheBackendError",
    "InMemoryCacheBackend",
    "RedisCacheBackend",
    "CacheBackendFactory",
    "SemanticCache",
    "ResponseCache",
]
