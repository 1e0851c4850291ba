"""Unit tests for SemanticCache class."""

import pytest

from cache.semantic_cache import SemanticCache
from models.requests import UserLocation


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1000.0) -> None:
        """Start the clock at given time."""
        self.now = now

    def __call__(self) -> float:
        """Return current fake time."""
        return self.now


@pytest.fixture(name="clock")
def clock_fixture() -> FakeClock:
    """Fake clock shared by the cache and the test."""
    return FakeClock()


@pytest.fixture(name="cache")
def cache_fixture(clock: FakeClock) -> SemanticCache:
    """Semantic cache with small capacity and short TTL."""
    return SemanticCache(
        max_entries=2,
        ttl_seconds=60,
        min_similarity=0.84,
        min_tokens=3,
        clock=clock,
    )


@pytest.mark.asyncio
async def test_paraphrase_hits(cache: SemanticCache) -> None:
    """Test that query with the same content words is served."""
    await cache.store("Outlet Kumon di Jakarta Selatan?", "reply")

    assert await cache.lookup("outlet kumon jakarta selatan") == "reply"
    assert cache.hits == 1
    assert cache.misses == 0


@pytest.mark.asyncio
async def test_dissimilar_query_misses(cache: SemanticCache) -> None:
    """Test that similarity below threshold is a miss."""
    await cache.store("outlet kumon jakarta selatan", "reply")

    assert await cache.lookup("outlet kumon bandung barat") is None
    assert cache.misses == 1


@pytest.mark.asyncio
async def test_short_query_is_never_matched(cache: SemanticCache) -> None:
    """Test that queries with too few tokens skip the semantic tier."""
    await cache.store("halo kak", "reply")

    assert await cache.lookup("halo kak") is None
    # skipped lookup is not counted
    assert cache.misses == 0
    assert cache.size() == 1


@pytest.mark.asyncio
async def test_location_and_version_must_match(cache: SemanticCache) -> None:
    """Test that entries are bucketed by location and data version."""
    jakarta = UserLocation(lat=-6.2, lng=106.8166)
    bandung = UserLocation(lat=-6.9175, lng=107.6191)
    await cache.store("outlet kumon paling dekat", "reply", jakarta, "1")

    assert await cache.lookup("outlet kumon paling dekat", bandung, "1") is None
    assert await cache.lookup("outlet kumon paling dekat", jakarta, "2") is None
    assert await cache.lookup("outlet kumon paling dekat", None, "1") is None
    assert await cache.lookup("outlet kumon paling dekat", jakarta, "1") == "reply"


@pytest.mark.asyncio
async def test_expired_entries_are_purged(
    cache: SemanticCache, clock: FakeClock
) -> None:
    """Test that entries older than TTL are not served and get removed."""
    await cache.store("outlet kumon jakarta selatan", "reply")
    clock.now += 61

    assert await cache.lookup("outlet kumon jakarta selatan") is None
    assert cache.size() == 0


@pytest.mark.asyncio
async def test_oldest_entry_is_evicted(cache: SemanticCache, clock: FakeClock) -> None:
    """Test that capacity is enforced by creation time."""
    await cache.store("outlet kumon jakarta selatan", "first")
    clock.now += 1
    await cache.store("franchise kopi murah bandung", "second")
    clock.now += 1
    await cache.store("brand makanan populer surabaya", "third")

    assert cache.size() == 2
    assert await cache.lookup("outlet kumon jakarta selatan") is None
    assert await cache.lookup("franchise kopi murah bandung") == "second"


@pytest.mark.asyncio
async def test_blank_message_is_ignored(cache: SemanticCache) -> None:
    """Test that punctuation-only messages are neither stored nor matched."""
    await cache.store("?!", "reply")
    assert cache.size() == 0
    assert await cache.lookup("?!") is None


@pytest.mark.asyncio
async def test_stats(cache: SemanticCache) -> None:
    """Test statistics of the semantic tier."""
    await cache.store("outlet kumon jakarta selatan", "reply")
    await cache.lookup("outlet kumon jakarta selatan")
    await cache.lookup("franchise kopi murah bandung")

    stats = cache.stats()
    assert stats.size == 1
    assert stats.hits == 1
    assert stats.misses == 1
    assert stats.hit_rate == "50.0%"
