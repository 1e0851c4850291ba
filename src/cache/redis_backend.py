"""Redis exact response cache backend."""

import logging
from typing import Optional

import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import RedisError

from cache.backend import CacheBackend, CacheBackendError
from models.cache_entry import CacheEntry
from models.config import RedisCacheConfig

logger = logging.getLogger(__name__)


class RedisCacheBackend(CacheBackend):
    """Durable cache backend stored in Redis.

    Entries are stored as JSON with a native expiration, Redis manages its own
    memory so no eviction is done here.
    """

    name = "redis"

    def __init__(
        self, config: RedisCacheConfig, client: Optional[redis.Redis] = None
    ) -> None:
        """Create a new instance of Redis cache backend.

        Parameters:
            config (RedisCacheConfig): Connection parameters.
            client (Optional[redis.Redis]): Already constructed client, mainly for tests.
        """
        self.cache_config = config
        self._client = client or redis.Redis(
            host=config.host,
            port=config.port,
            db=config.db,
            password=(
                config.password.get_secret_value()
                if config.password is not None
                else None
            ),
            decode_responses=True,
        )

    def _key(self, key: str) -> str:
        """Prefix the key with configured namespace."""
        return f"{self.cache_config.key_prefix}{key}"

    async def get(self, key: str) -> Optional[CacheEntry]:
        """Get the entry associated with the given key."""
        try:
            value = await self._client.get(self._key(key))
        except RedisError as e:
            raise CacheBackendError(f"Redis GET failed: {e}") from e
        if value is None:
            return None
        try:
            return CacheEntry.model_validate_json(value)
        except ValidationError:
            logger.warning("Ignoring malformed cache entry %s...", key[:8])
            return None

    async def set(self, key: str, entry: CacheEntry, ttl_seconds: int) -> None:
        """Store the entry with native expiration."""
        try:
            await self._client.set(
                self._key(key), entry.model_dump_json(), ex=ttl_seconds
            )
        except RedisError as e:
            raise CacheBackendError(f"Redis SET failed: {e}") from e

    async def delete(self, key: str) -> bool:
        """Delete the entry associated with the given key."""
        try:
            deleted = await self._client.delete(self._key(key))
        except RedisError as e:
            raise CacheBackendError(f"Redis DEL failed: {e}") from e
        return bool(deleted)

    async def health(self) -> bool:
        """Check if Redis answers to PING."""
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError) as e:
            logger.warning("Redis is not reachable: %s", e)
            return False

    async def close(self) -> None:
        """Close connection pool."""
        try:
            await self._client.aclose()
        except RedisError as e:
            logger.warning("Failed to close Redis connection: %s", e)
