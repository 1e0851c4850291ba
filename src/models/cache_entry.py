"""Models for response cache entries."""

from pydantic import BaseModel, Field


class CacheEntry(BaseModel):
    """Model representing an exact response cache entry.

    Attributes:
        response: The cached reply text
        created_at: Creation time as UNIX timestamp in seconds
        hit_count: Number of times the entry was returned
    """

    response: str
    created_at: float
    hit_count: int = 0


class SemanticCacheEntry(CacheEntry):
    """Model representing a semantic response cache entry.

    Two entries can only match when both location and version keys are equal.

    Attributes:
        text: Normalized query text
        tokens: Unique query tokens used for similarity scoring
        location_key: Location bucket of the user
        version_key: Data version the reply was computed for
    """

    text: str
    tokens: frozenset[str] = Field(default_factory=frozenset)
    location_key: str
    version_key: str
