"""Data version watermark used to invalidate cached replies."""

import time
from typing import Callable, Optional

from models.config import DataStoreConfiguration
from rag.datastore import DataStoreClient, DataStoreError
from log import get_logger

logger = get_logger("chat.data_version")


class DataVersionTracker:
    """Compute data version from modification times of brands and outlets.

    The version is the most recent `updated` timestamp of both collections in
    milliseconds. It can be reused for a configurable time to spare the two
    record store queries on every request.
    """

    def __init__(
        self,
        store: DataStoreClient,
        config: DataStoreConfiguration,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Create tracker."""
        self.store = store
        self.store_config = config
        self._clock = clock
        self._memo: Optional[tuple[float, Optional[str]]] = None

    async def compute(self) -> Optional[str]:
        """Query the record store for the current data version.

        Returns:
            Optional[str]: Version, None when unknown or the store failed.
        """
        try:
            timestamps = [
                await self.store.latest_updated(self.store_config.brands_collection),
                await self.store.latest_updated(self.store_config.outlets_collection),
            ]
        except DataStoreError as e:
            logger.warning("Data version is not available: %s", e)
            return None
        known = [ts.timestamp() for ts in timestamps if ts is not None]
        if not known:
            return None
        return str(int(max(known) * 1000))

    async def current(self) -> Optional[str]:
        """Return data version, reusing the last one while it is fresh."""
        ttl = self.store_config.data_version_ttl_seconds
        now = self._clock()
        if ttl and self._memo is not None and now - self._memo[0] < ttl:
            return self._memo[1]
        version = await self.compute()
        self._memo = (now, version)
        return version
