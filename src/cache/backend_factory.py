"""Factory selecting the exact response cache backend."""

import logging

import constants
from cache.backend import CacheBackend
from cache.in_memory_backend import InMemoryCacheBackend
from cache.redis_backend import RedisCacheBackend
from models.config import InMemoryCacheConfig, ResponseCacheConfiguration

logger = logging.getLogger(__name__)


class CacheBackendFactory:  # pylint: disable=too-few-public-methods
    """Factory selecting the exact response cache backend once at startup."""

    @staticmethod
    def in_memory(config: ResponseCacheConfiguration) -> InMemoryCacheBackend:
        """Create the in-process backend, also used as fallback for Redis."""
        return InMemoryCacheBackend(config.memory or InMemoryCacheConfig())

    @staticmethod
    async def create(config: ResponseCacheConfiguration) -> CacheBackend:
        """Create cache backend according to configuration.

        A Redis backend is probed for connectivity first. When the probe
        fails, the in-process backend is returned instead, so the service keeps
        working without the durable store.

        Parameters:
            config (ResponseCacheConfiguration): Response cache configuration.

        Returns:
            CacheBackend: Backend ready to be used.

        Raises:
            ValueError: If the backend type is unknown.
        """
        match config.type:
            case constants.CACHE_TYPE_MEMORY:
                logger.info("Using in-memory response cache")
                return CacheBackendFactory.in_memory(config)
            case constants.CACHE_TYPE_REDIS:
                if config.redis is None:
                    raise ValueError("Redis configuration required")
                backend = RedisCacheBackend(config.redis)
                if await backend.health():
                    logger.info(
                        "Redis response cache connected at %s:%s",
                        config.redis.host,
                        config.redis.port,
                    )
                    return backend
                logger.warning(
                    "Redis connection to %s:%s failed, using memory cache",
                    config.redis.host,
                    config.redis.port,
                )
                await backend.close()
                return CacheBackendFactory.in_memory(config)
            case _:
                raise ValueError(f"Invalid cache type: {config.type}")
