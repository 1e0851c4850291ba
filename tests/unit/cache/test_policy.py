"""Unit tests for response cache policy functions."""

import pytest

from cache import policy
from models.cache_entry import CacheEntry, SemanticCacheEntry
from models.requests import ChatMessage, UserLocation


def _messages(*contents: str) -> list[ChatMessage]:
    """Build alternating user/assistant conversation ending with user message."""
    roles = ["user", "assistant"]
    start = (len(contents) + 1) % 2
    return [
        ChatMessage(role=roles[(start + i) % 2], content=content)
        for i, content in enumerate(contents)
    ]


def test_exact_cache_key_is_md5_hex() -> None:
    """Test that the key is a 32 character hex digest."""
    key = policy.exact_cache_key(_messages("Halo"))
    assert len(key) == 32
    int(key, 16)


def test_exact_cache_key_ignores_case_and_surrounding_whitespace() -> None:
    """Test that trimmed, lower-cased content produces the same key."""
    first = policy.exact_cache_key(_messages("Outlet Kumon"))
    second = policy.exact_cache_key(_messages("  outlet kumon \n"))
    assert first == second


def test_exact_cache_key_uses_only_last_two_messages() -> None:
    """Test that older history does not change the key."""
    short = _messages("jawaban lama", "outlet kumon")
    long = _messages("pertanyaan pertama", "jawaban lama", "outlet kumon")
    assert policy.exact_cache_key(short) == policy.exact_cache_key(long)


def test_exact_cache_key_location_rounded_to_four_decimals() -> None:
    """Test that location differences below precision share a key."""
    messages = _messages("outlet terdekat")
    near = UserLocation(lat=-6.20001, lng=106.81661)
    nearer = UserLocation(lat=-6.20004, lng=106.81664)
    far = UserLocation(lat=-6.2010, lng=106.8166)
    assert policy.exact_cache_key(messages, near) == policy.exact_cache_key(
        messages, nearer
    )
    assert policy.exact_cache_key(messages, near) != policy.exact_cache_key(
        messages, far
    )
    assert policy.exact_cache_key(messages) != policy.exact_cache_key(messages, near)


def test_exact_cache_key_depends_on_data_version() -> None:
    """Test that a new data version invalidates keys."""
    messages = _messages("outlet kumon")
    assert policy.exact_cache_key(messages, None, "1") != policy.exact_cache_key(
        messages, None, "2"
    )
    assert policy.exact_cache_key(messages, None, None) == policy.exact_cache_key(
        messages, None, ""
    )


def test_location_and_version_keys() -> None:
    """Test semantic bucket keys."""
    assert policy.location_key(None) == "loc:none"
    assert policy.location_key(UserLocation(lat=-6.2, lng=106.8166)) == (
        "loc:-6.200,106.817"
    )
    assert policy.version_key(None) == "v:none"
    assert policy.version_key("1700000000000") == "v:1700000000000"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("  Outlet   KUMON!! di Jakarta?", "outlet kumon di jakarta"),
        ("brand-brand (franchise)", "brand brand franchise"),
        ("...", ""),
    ],
)
def test_normalize_text(text: str, expected: str) -> None:
    """Test normalization of punctuation, case and whitespace."""
    assert policy.normalize_text(text) == expected


def test_tokenize_drops_short_words() -> None:
    """Test that words shorter than three characters are dropped."""
    assert policy.tokenize("outlet kumon di jakarta jakarta") == frozenset(
        {"outlet", "kumon", "jakarta"}
    )


def test_jaccard_similarity() -> None:
    """Test Jaccard similarity including the empty edge case."""
    assert policy.jaccard_similarity({"a", "b"}, {"a", "b"}) == 1.0
    assert policy.jaccard_similarity({"a", "b"}, {"b", "c"}) == pytest.approx(1 / 3)
    assert policy.jaccard_similarity(set(), {"a"}) == 0.0
    assert policy.jaccard_similarity(set(), set()) == 0.0


def test_is_expired_and_expired_keys() -> None:
    """Test TTL evaluation."""
    entries = {
        "old": CacheEntry(response="a", created_at=0.0),
        "new": CacheEntry(response="b", created_at=90.0),
    }
    assert policy.is_expired(entries["old"], 100.0, 60)
    assert not policy.is_expired(entries["new"], 100.0, 60)
    # boundary is not expired yet
    assert not policy.is_expired(entries["old"], 60.0, 60)
    assert policy.expired_keys(entries, 100.0, 60) == ["old"]


def test_key_to_evict_selects_oldest_only_when_full() -> None:
    """Test insertion-order eviction."""
    entries = {
        "b": CacheEntry(response="b", created_at=2.0),
        "a": CacheEntry(response="a", created_at=1.0),
        "c": CacheEntry(response="c", created_at=3.0),
    }
    assert policy.key_to_evict(entries, 4) is None
    assert policy.key_to_evict(entries, 3) == "a"
    assert policy.oldest_key({}) is None


def _semantic_entry(
    text: str, location: str, version: str, created_at: float
) -> SemanticCacheEntry:
    normalized = policy.normalize_text(text)
    return SemanticCacheEntry(
        response=f"reply to {text}",
        created_at=created_at,
        text=normalized,
        tokens=policy.tokenize(normalized),
        location_key=location,
        version_key=version,
    )


def test_best_semantic_match_respects_buckets_and_ttl() -> None:
    """Test that only live entries of the same buckets are scored."""
    entries = {
        "same": _semantic_entry("outlet kumon jakarta selatan", "loc:none", "v:1", 50),
        "other-version": _semantic_entry(
            "outlet kumon jakarta selatan", "loc:none", "v:2", 50
        ),
        "expired": _semantic_entry(
            "outlet kumon jakarta selatan", "loc:none", "v:1", 0
        ),
    }
    tokens = policy.tokenize("outlet kumon jakarta selatan")
    key, score = policy.best_semantic_match(entries, tokens, "loc:none", "v:1", 60, 30)
    assert key == "same"
    assert score == 1.0

    key, score = policy.best_semantic_match(entries, tokens, "loc:x", "v:1", 60, 30)
    assert key is None
    assert score == 0.0


def test_hit_rate_format() -> None:
    """Test hit rate formatting."""
    assert policy.hit_rate(0, 0) == "0%"
    assert policy.hit_rate(1, 3) == "25.0%"
    assert policy.hit_rate(2, 1) == "66.7%"
