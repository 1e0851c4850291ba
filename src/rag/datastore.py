"""Async client of the record store REST API holding brands and outlets."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar

import aiohttp
from pydantic import ValidationError

import constants
from models.config import DataStoreConfiguration
from models.records import Brand, Outlet, parse_timestamp
from log import get_logger

logger = get_logger("rag.datastore")

BRAND_FIELDS = "id,name,category,website,total_outlets,expand.category.name"
OUTLET_FIELDS = (
    "id,name,brand,brand_id,address,city,region,latitude,longitude,"
    "totalScore,reviewsCount,expand.brand.name"
)


class DataStoreError(Exception):
    """Record store could not answer the query."""


RecordT = TypeVar("RecordT")


@dataclass
class RecordPage:
    """One page of records.

    Attributes:
        items: Raw records on the page.
        total_items: Number of all records matching the query.
        total_pages: Number of pages for the query.
    """

    items: list[dict[str, Any]] = field(default_factory=list)
    total_items: int = 0
    total_pages: int = 0


def quote(value: str) -> str:
    """Quote value for use in a record store filter expression."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class DataStoreClient:
    """Client of the record store.

    The store supports filtered, sorted, field-projected and paginated reads
    over the brand and outlet collections.
    """

    def __init__(
        self,
        config: DataStoreConfiguration,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """Create client.

        Parameters:
            config: Record store configuration.
            session: Shared HTTP session. A session is created on first use
                when not given.
        """
        self.store_config = config
        self.base_url = str(config.url).rstrip("/")
        self._session = session

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.store_config.timeout)
            )
        return self._session

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()

    async def get_list(  # pylint: disable=too-many-arguments
        self,
        collection: str,
        page: int = 1,
        per_page: int = 30,
        *,
        sort: Optional[str] = None,
        filter_expr: Optional[str] = None,
        fields: Optional[str] = None,
        expand: Optional[str] = None,
    ) -> RecordPage:
        """Read one page of records.

        Parameters:
            collection: Collection name.
            page: Page number, starting at one.
            per_page: Number of records per page.
            sort: Sort expression, `-` prefix for descending order.
            filter_expr: Filter expression.
            fields: Comma separated list of returned fields.
            expand: Comma separated list of expanded relations.

        Returns:
            RecordPage: Records of the page and totals.

        Raises:
            DataStoreError: When the store is unreachable or answered with error.
        """
        params: dict[str, str] = {"page": str(page), "perPage": str(per_page)}
        if sort:
            params["sort"] = sort
        if filter_expr:
            params["filter"] = filter_expr
        if fields:
            params["fields"] = fields
        if expand:
            params["expand"] = expand

        url = f"{self.base_url}/api/collections/{collection}/records"
        try:
            async with self._get_session().get(url, params=params) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise DataStoreError(
                        f"Query of {collection} failed with status "
                        f"{response.status}: {body[:200]}"
                    )
                payload = await response.json()
        except ValueError as e:
            raise DataStoreError(
                f"Query of {collection} returned malformed JSON: {e}"
            ) from e
        except aiohttp.ClientError as e:
            raise DataStoreError(f"Query of {collection} failed: {e}") from e
        except TimeoutError as e:
            raise DataStoreError(
                f"Query of {collection} timed out after {self.store_config.timeout}s"
            ) from e

        if not isinstance(payload, dict):
            raise DataStoreError(
                f"Query of {collection} returned {type(payload).__name__} "
                "instead of a record page"
            )
        items = payload.get("items") or []
        if not isinstance(items, list) or not all(
            isinstance(item, dict) for item in items
        ):
            raise DataStoreError(f"Query of {collection} returned malformed items")
        try:
            return RecordPage(
                items=items,
                total_items=int(payload.get("totalItems") or 0),
                total_pages=int(payload.get("totalPages") or 0),
            )
        except (TypeError, ValueError) as e:
            raise DataStoreError(
                f"Query of {collection} returned malformed totals: {e}"
            ) from e

    @staticmethod
    def parse_records(
        collection: str,
        records: list[dict[str, Any]],
        parser: Callable[[dict[str, Any]], RecordT],
    ) -> list[RecordT]:
        """Convert raw records to models.

        Raises:
            DataStoreError: When a record misses required fields or holds
                values of wrong type.
        """
        try:
            return [parser(record) for record in records]
        except (ValidationError, KeyError, TypeError) as e:
            raise DataStoreError(f"Malformed record in {collection}: {e}") from e

    async def get_full_list(
        self,
        collection: str,
        *,
        sort: Optional[str] = None,
        filter_expr: Optional[str] = None,
        fields: Optional[str] = None,
        expand: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Read all records matching the query, page by page."""
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            result = await self.get_list(
                collection,
                page,
                constants.DATA_STORE_FULL_LIST_BATCH,
                sort=sort,
                filter_expr=filter_expr,
                fields=fields,
                expand=expand,
            )
            items.extend(result.items)
            if not result.items or page >= result.total_pages:
                return items
            page += 1

    async def latest_updated(self, collection: str) -> Optional[datetime]:
        """Return modification time of the most recently updated record."""
        result = await self.get_list(
            collection, 1, 1, sort="-updated", fields="updated"
        )
        if not result.items:
            return None
        return parse_timestamp(result.items[0].get("updated"))

    async def list_brands(self, sort: str = "name") -> list[Brand]:
        """Return all brands with their category names."""
        records = await self.get_full_list(
            self.store_config.brands_collection,
            sort=sort,
            fields=BRAND_FIELDS,
            expand="category",
        )
        return self.parse_records(
            self.store_config.brands_collection, records, Brand.from_record
        )

    async def top_outlets_for_brand(
        self, brand_id: str, limit: int = constants.RAG_TOP_OUTLETS
    ) -> tuple[list[Outlet], int]:
        """Return best rated outlets of the brand and number of all its outlets."""
        result = await self.get_list(
            self.store_config.outlets_collection,
            1,
            limit,
            sort="-totalScore",
            filter_expr=f"brand = {quote(brand_id)}",
            fields=OUTLET_FIELDS,
        )
        outlets = self.parse_records(
            self.store_config.outlets_collection, result.items, Outlet.from_record
        )
        return outlets, result.total_items

    async def top_outlets_in_city(
        self, city: str, limit: int = constants.RAG_TOP_OUTLETS
    ) -> tuple[list[Outlet], int]:
        """Return best rated outlets whose city contains the token and their count."""
        result = await self.get_list(
            self.store_config.outlets_collection,
            1,
            limit,
            sort="-totalScore",
            filter_expr=f"city ~ {quote(city)}",
            fields=OUTLET_FIELDS,
            expand="brand",
        )
        outlets = self.parse_records(
            self.store_config.outlets_collection, result.items, Outlet.from_record
        )
        return outlets, result.total_items

    async def count_outlets(self) -> int:
        """Return number of all outlets."""
        result = await self.get_list(
            self.store_config.outlets_collection, 1, 1, fields="id"
        )
        return result.total_items

    async def outlets_with_coordinates(
        self,
        brand_ids: Optional[list[str]] = None,
        city: Optional[str] = None,
    ) -> list[Outlet]:
        """Return all outlets that can be placed on the map.

        Parameters:
            brand_ids: Only outlets of these brands, when given.
            city: Only outlets whose city contains the token, when given.
        """
        conditions = ["latitude != 0", "longitude != 0"]
        if brand_ids:
            conditions.append(
                "(" + " || ".join(f"brand = {quote(b)}" for b in brand_ids) + ")"
            )
        if city:
            conditions.append(f"city ~ {quote(city)}")
        records = await self.get_full_list(
            self.store_config.outlets_collection,
            filter_expr=" && ".join(conditions),
            fields=OUTLET_FIELDS,
            expand="brand",
        )
        outlets = self.parse_records(
            self.store_config.outlets_collection, records, Outlet.from_record
        )
        return [outlet for outlet in outlets if outlet.has_coordinates]
