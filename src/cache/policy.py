"""Pure functions implementing response cache keys, expiration and eviction.

Nothing in this module mutates its arguments or reads the clock; callers pass
the current time explicitly so the behaviour is easy to test.
"""

import hashlib
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Optional, Protocol, TypeVar

import constants
from models.cache_entry import CacheEntry, SemanticCacheEntry

# characters replaced by space during normalization
_PUNCTUATION = re.compile(r"[`~!@#$%^&*()_+=\[\]{};:'\"\\|,.<>/?-]")
_WHITESPACE = re.compile(r"\s+")

EntryT = TypeVar("EntryT", bound=CacheEntry)


class MessageLike(Protocol):  # pylint: disable=too-few-public-methods
    """Anything with a role and text content."""

    role: str
    content: str


class LocationLike(Protocol):  # pylint: disable=too-few-public-methods
    """Anything with latitude and longitude."""

    lat: float
    lng: float


def exact_cache_key(
    messages: Sequence[MessageLike],
    location: Optional[LocationLike] = None,
    data_version: Optional[str] = None,
) -> str:
    """Compute exact cache key for the conversation.

    The key is a digest of the last two messages (role and trimmed, lower-cased
    content), the user location rounded to four decimals and the data version.

    Parameters:
        messages: Conversation, oldest message first.
        location: Optional user location.
        data_version: Optional data version watermark.

    Returns:
        str: Hex digest identifying the cache entry.
    """
    relevant = "|".join(
        f"{message.role}:{message.content.strip().lower()}"
        for message in messages[-2:]
    )
    precision = constants.EXACT_KEY_LOCATION_PRECISION
    location_part = (
        f"|loc:{location.lat:.{precision}f},{location.lng:.{precision}f}"
        if location is not None
        else ""
    )
    version_part = f"|v:{data_version}" if data_version else ""
    fingerprint = f"{relevant}{location_part}{version_part}"
    return hashlib.md5(fingerprint.encode("utf-8"), usedforsecurity=False).hexdigest()


def location_key(location: Optional[LocationLike]) -> str:
    """Return semantic cache location bucket, about 110 m wide."""
    if location is None:
        return "loc:none"
    precision = constants.SEMANTIC_LOCATION_PRECISION
    return f"loc:{location.lat:.{precision}f},{location.lng:.{precision}f}"


def version_key(data_version: Optional[str]) -> str:
    """Return semantic cache data version key."""
    return f"v:{data_version}" if data_version else "v:none"


def semantic_entry_key(text: str, location: str, version: str) -> str:
    """Compute key under which a semantic entry is stored."""
    fingerprint = f"{text}|{location}|{version}"
    return hashlib.md5(fingerprint.encode("utf-8"), usedforsecurity=False).hexdigest()


def normalize_text(text: str) -> str:
    """Lower-case text, replace punctuation by spaces and collapse whitespace."""
    text = _PUNCTUATION.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", text).strip()


def tokenize(normalized: str) -> frozenset[str]:
    """Split normalized text into unique words of minimal length."""
    return frozenset(
        word
        for word in normalized.split(" ")
        if len(word) >= constants.SEMANTIC_MIN_TOKEN_LENGTH
    )


def jaccard_similarity(first: Iterable[str], second: Iterable[str]) -> float:
    """Compute Jaccard similarity of two token sets.

    Returns:
        float: Size of intersection divided by size of union, 0.0 when any
        of the sets is empty.
    """
    a = set(first)
    b = set(second)
    if not a or not b:
        return 0.0
    union = len(a | b)
    return len(a & b) / union if union else 0.0


def is_expired(entry: CacheEntry, now: float, ttl_seconds: float) -> bool:
    """Check whether the entry is older than TTL."""
    return now - entry.created_at > ttl_seconds


def expired_keys(
    entries: Mapping[str, EntryT], now: float, ttl_seconds: float
) -> list[str]:
    """Return keys of all entries older than TTL."""
    return [key for key, entry in entries.items() if is_expired(entry, now, ttl_seconds)]


def oldest_key(entries: Mapping[str, EntryT]) -> Optional[str]:
    """Return key of the entry with the smallest creation time."""
    if not entries:
        return None
    return min(entries, key=lambda key: entries[key].created_at)


def key_to_evict(entries: Mapping[str, EntryT], max_entries: int) -> Optional[str]:
    """Select entry to drop before inserting a new one.

    Eviction is by insertion time only; access recency is not taken into account.

    Returns:
        Optional[str]: Key of the oldest entry when the store is full, None otherwise.
    """
    if len(entries) < max_entries:
        return None
    return oldest_key(entries)


def best_semantic_match(
    entries: Mapping[str, SemanticCacheEntry],
    tokens: frozenset[str],
    location: str,
    version: str,
    now: float,
    ttl_seconds: float,
) -> tuple[Optional[str], float]:
    """Find the most similar live entry in the same location and version bucket.

    Expired entries are skipped; the caller is responsible for purging them.

    Returns:
        tuple[Optional[str], float]: Key of the best entry and its score,
        (None, 0.0) when no candidate shares a single token.
    """
    best_key: Optional[str] = None
    best_score = 0.0
    for key, entry in entries.items():
        if is_expired(entry, now, ttl_seconds):
            continue
        if entry.location_key != location or entry.version_key != version:
            continue
        score = jaccard_similarity(tokens, entry.tokens)
        if score > best_score:
            best_key, best_score = key, score
    return best_key, best_score


def hit_rate(hits: int, misses: int) -> str:
    """Format hit rate as percentage with one decimal place."""
    total = hits + misses
    if total == 0:
        return "0%"
    return f"{hits / total * 100:.1f}%"
