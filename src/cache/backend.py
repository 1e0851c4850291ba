"""Abstract class that is parent for all exact response cache backends."""

from abc import ABC, abstractmethod
from typing import Optional

from models.cache_entry import CacheEntry


class CacheBackendError(Exception):
    """Cache backend failed to execute an operation."""


class CacheBackend(ABC):
    """Abstract class that is parent for all exact response cache backends.

    Backends store entries as they are given; expiration is enforced by the
    response cache itself so that stale entries are never returned even when
    the backend did not evict them yet.
    """

    # name reported in cache statistics
    name: str = "abstract"

    @abstractmethod
    async def get(self, key: str) -> Optional[CacheEntry]:
        """Retrieve entry stored under the key.

        Parameters:
            key (str): Cache key.

        Returns:
            Optional[CacheEntry]: Stored entry or None when the key is unknown.

        Raises:
            CacheBackendError: When the backend is not able to answer.
        """

    @abstractmethod
    async def set(self, key: str, entry: CacheEntry, ttl_seconds: int) -> None:
        """Store the entry under the key.

        Parameters:
            key (str): Cache key.
            entry (CacheEntry): Entry to store.
            ttl_seconds (int): Time to live of the entry.

        Raises:
            CacheBackendError: When the backend is not able to store the entry.
        """

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete entry stored under the key.

        Returns:
            `True` if the entry was deleted, `False` if no key was found.
        """

    @abstractmethod
    async def health(self) -> bool:
        """Check if the backend is reachable.

        Returns:
            True if the backend can be used, False otherwise.
        """

    def size(self) -> Optional[int]:
        """Return number of stored entries, None when the backend does not know."""
        return None

    async def close(self) -> None:
        """Release resources held by the backend."""
