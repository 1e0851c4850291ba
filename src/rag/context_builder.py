"""Retrieval of brand and outlet facts injected into prompts."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Optional

import constants
from models.records import Brand, Outlet
from models.requests import UserLocation
from rag.datastore import DataStoreClient, DataStoreError
from rag.geo import nearest_outlets
from rag.intent import Intent, IntentExtractor, KeywordIntentExtractor
from log import get_logger

logger = get_logger("rag.context_builder")

DEFAULT_CATEGORY = "Umum"


@dataclass
class RagContext:
    """Text block with retrieved facts and the retrieval branches that fired."""

    text: str = ""
    sources: list[str] = field(default_factory=list)


def format_rating(outlet: Outlet) -> str:
    """Return rating suffix of an outlet line, empty when not rated."""
    if not outlet.total_score:
        return ""
    return f" (Rating: {outlet.total_score:g}/5)"


def format_distance(distance_km: float) -> str:
    """Format distance in meters below one kilometer, in kilometers otherwise."""
    if distance_km < 1:
        return f"{round(distance_km * 1000)} m"
    return f"{distance_km:.1f} km"


def group_by_category(brands: Sequence[Brand]) -> dict[str, list[Brand]]:
    """Group brands by category name, keeping the order of first appearance."""
    groups: dict[str, list[Brand]] = {}
    for brand in brands:
        groups.setdefault(brand.category or DEFAULT_CATEGORY, []).append(brand)
    return groups


class ContextBuilder:
    """Build context block for the message from the record store.

    Any record store failure degrades to an empty context so the reply can
    still be generated without domain facts.
    """

    def __init__(
        self,
        store: DataStoreClient,
        extractor: Optional[IntentExtractor] = None,
    ) -> None:
        """Create context builder."""
        self.store = store
        self.extractor = extractor or KeywordIntentExtractor()

    async def get_relevant_context(
        self, message: str, location: Optional[UserLocation] = None
    ) -> RagContext:
        """Retrieve facts relevant to the message.

        Parameters:
            message: User message.
            location: Optional user location for nearest outlet search.

        Returns:
            RagContext: Context block, empty when the record store failed.
        """
        try:
            return await self._build(message, location)
        except DataStoreError as e:
            logger.error("Error fetching data from record store: %s", e)
            return RagContext()

    async def _build(
        self, message: str, location: Optional[UserLocation]
    ) -> RagContext:
        brands = await self.store.list_brands()
        intent = self.extractor.extract(message, brands)
        brand_names = {brand.id: brand.name for brand in brands}
        chunks: list[str] = []
        sources: list[str] = []

        if intent.brand is not None:
            await self._brand_chunk(intent.brand, chunks)
            sources.append(f"Brand: {intent.brand.name}")

        if intent.city is not None:
            await self._city_chunk(intent.city, brand_names, chunks)
            sources.append(f"City: {intent.city}")

        if intent.category is not None:
            category_brands = [b for b in brands if intent.matches_category(b)]
            if category_brands:
                chunks.append(f'\n**Brand kategori "{intent.category}":**')
                for brand in category_brands:
                    chunks.append(
                        f"  - {brand.name} ({brand.total_outlets or '?'} outlet)"
                    )
                sources.append(f"Category: {intent.category}")

        if intent.wants_nearest and location is not None:
            if await self._nearest_chunk(intent, brands, brand_names, location, chunks):
                sources.append("Nearest outlets")

        if intent.wants_stats or not chunks:
            await self._stats_chunk(brands, chunks)
            sources.append("General stats")

        logger.debug("Context built from %s", ", ".join(sources))
        return RagContext(text="\n".join(chunks), sources=sources)

    async def _brand_chunk(self, brand: Brand, chunks: list[str]) -> None:
        outlets, total = await self.store.top_outlets_for_brand(brand.id)
        chunks.append(f"**Brand: {brand.name}**")
        chunks.append(f"- Kategori: {brand.category or DEFAULT_CATEGORY}")
        chunks.append(f"- Website: {brand.website or '-'}")
        chunks.append(f"- Total outlet: {brand.total_outlets or total}")
        chunks.append(f"- Outlet terdaftar di database: {total}")
        if outlets:
            chunks.append(f"\nBeberapa outlet {brand.name}:")
            for outlet in outlets:
                place = ", ".join(p for p in (outlet.city, outlet.region) if p)
                chunks.append(f"  - {outlet.name}, {place}{format_rating(outlet)}")

    async def _city_chunk(
        self, city: str, brand_names: dict[str, str], chunks: list[str]
    ) -> None:
        outlets, total = await self.store.top_outlets_in_city(city)
        chunks.append(f"\n**Outlet di {city.title()}:**")
        for outlet in outlets:
            brand_name = (
                outlet.brand_name or brand_names.get(outlet.brand_id or "") or "Unknown"
            )
            chunks.append(
                f"  - {outlet.name} ({brand_name}), "
                f"{outlet.address or outlet.city or '-'}{format_rating(outlet)}"
            )
        chunks.append(f"Total outlet di kota ini: {total}")

    async def _nearest_chunk(  # pylint: disable=too-many-arguments
        self,
        intent: Intent,
        brands: Sequence[Brand],
        brand_names: dict[str, str],
        location: UserLocation,
        chunks: list[str],
    ) -> bool:
        brand_ids: Optional[list[str]] = None
        if intent.brand is not None:
            brand_ids = [intent.brand.id]
        elif intent.category is not None:
            brand_ids = [b.id for b in brands if intent.matches_category(b)] or None
        outlets = await self.store.outlets_with_coordinates(brand_ids, intent.city)
        nearest = nearest_outlets(outlets, location, constants.RAG_NEAREST_OUTLETS)
        if not nearest:
            return False
        chunks.append("\n**Outlet terdekat dari lokasi Anda:**")
        for outlet, distance in nearest:
            brand_name = (
                outlet.brand_name or brand_names.get(outlet.brand_id or "") or "Unknown"
            )
            chunks.append(
                f"  - {outlet.name} ({brand_name}), "
                f"{outlet.address or outlet.city or '-'} - {format_distance(distance)}"
            )
        return True

    async def _stats_chunk(self, brands: Sequence[Brand], chunks: list[str]) -> None:
        total_outlets = await self.store.count_outlets()
        chunks.append("\n**Statistik Brand Map Indonesia:**")
        chunks.append(f"- Total brand: {len(brands)}")
        chunks.append(f"- Total outlet di database: {total_outlets}")
        chunks.append("\nDaftar brand per kategori:")
        for category, members in sorted(group_by_category(brands).items()):
            chunks.append(f"* {category}:")
            for brand in members:
                chunks.append(f"  - {brand.name} ({brand.total_outlets or '?'} outlet)")
