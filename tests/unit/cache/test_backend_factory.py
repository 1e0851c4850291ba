"""Unit tests for CacheBackendFactory class."""

import pytest
from pytest_mock import MockerFixture

from cache.backend_factory import CacheBackendFactory
from cache.in_memory_backend import InMemoryCacheBackend
from cache.redis_backend import RedisCacheBackend
from models.config import (
    InMemoryCacheConfig,
    RedisCacheConfig,
    ResponseCacheConfiguration,
)


@pytest.fixture(name="redis_cache_config")
def redis_cache_config_fixture() -> ResponseCacheConfiguration:
    """Response cache configuration selecting Redis."""
    return ResponseCacheConfiguration(type="redis", redis=RedisCacheConfig())


@pytest.mark.asyncio
async def test_memory_backend() -> None:
    """Test that memory type creates in-memory backend with its capacity."""
    config = ResponseCacheConfiguration(
        type="memory", memory=InMemoryCacheConfig(max_entries=10)
    )
    backend = await CacheBackendFactory.create(config)
    assert isinstance(backend, InMemoryCacheBackend)
    assert backend.max_entries == 10


@pytest.mark.asyncio
async def test_redis_backend_when_reachable(
    mocker: MockerFixture, redis_cache_config: ResponseCacheConfiguration
) -> None:
    """Test that reachable Redis is used."""
    mocker.patch.object(RedisCacheBackend, "health", return_value=True)
    backend = await CacheBackendFactory.create(redis_cache_config)
    assert isinstance(backend, RedisCacheBackend)


@pytest.mark.asyncio
async def test_redis_unreachable_falls_back_to_memory(
    mocker: MockerFixture, redis_cache_config: ResponseCacheConfiguration
) -> None:
    """Test that unreachable Redis is replaced by in-memory backend."""
    mocker.patch.object(RedisCacheBackend, "health", return_value=False)
    close = mocker.patch.object(RedisCacheBackend, "close")

    backend = await CacheBackendFactory.create(redis_cache_config)

    assert isinstance(backend, InMemoryCacheBackend)
    close.assert_awaited_once()


def test_in_memory_without_memory_section() -> None:
    """Test that fallback backend gets default capacity when memory is not set."""
    config = ResponseCacheConfiguration(
        type="redis", memory=None, redis=RedisCacheConfig()
    )
    backend = CacheBackendFactory.in_memory(config)
    assert backend.max_entries == InMemoryCacheConfig().max_entries
