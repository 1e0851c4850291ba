"""Deterministic map UI actions suggested alongside a reply."""

from typing import Optional

from models.records import Outlet
from models.requests import UserLocation
from models.responses import ActionType, SuggestedAction
from rag.datastore import DataStoreClient, DataStoreError
from rag.geo import nearest_outlets
from rag.intent import Intent, IntentExtractor, KeywordIntentExtractor
from log import get_logger

logger = get_logger("rag.actions")


def _outlet_actions(outlet: Outlet) -> list[SuggestedAction]:
    """Return actions pointing the map to the outlet."""
    return [
        SuggestedAction(
            type=ActionType.FOCUS_OUTLET,
            label=f"Fokus ke {outlet.name}",
            outlet_id=outlet.id,
        ),
        SuggestedAction(
            type=ActionType.OPEN_OUTLET_DETAIL,
            label=f"Detail {outlet.name}",
            outlet_id=outlet.id,
        ),
        SuggestedAction(
            type=ActionType.NAVIGATE_TO_OUTLET,
            label=f"Navigasi ke {outlet.name}",
            outlet_id=outlet.id,
        ),
    ]


class SuggestedActionBuilder:
    """Map message intent to UI directives.

    The actions are computed from the record store for every request, they are
    never cached together with the reply.
    """

    def __init__(
        self,
        store: DataStoreClient,
        extractor: Optional[IntentExtractor] = None,
    ) -> None:
        """Create action builder."""
        self.store = store
        self.extractor = extractor or KeywordIntentExtractor()

    async def get_suggested_actions(
        self, message: str, location: Optional[UserLocation] = None
    ) -> list[SuggestedAction]:
        """Suggest UI actions for the message.

        Parameters:
            message: User message.
            location: Optional user location.

        Returns:
            list[SuggestedAction]: Actions in the order the UI should apply
            them, empty when the record store failed.
        """
        try:
            brands = await self.store.list_brands()
            intent = self.extractor.extract(message, brands)
            return await self._actions_for(intent, location)
        except DataStoreError as e:
            logger.warning("Suggested actions are not available: %s", e)
            return []

    async def _actions_for(
        self, intent: Intent, location: Optional[UserLocation]
    ) -> list[SuggestedAction]:
        if intent.wants_reset:
            return [
                SuggestedAction(type=ActionType.CLEAR_FILTERS, label="Hapus filter"),
                SuggestedAction(type=ActionType.RESET_VIEW, label="Reset peta"),
            ]

        actions: list[SuggestedAction] = []
        if intent.brand is not None:
            actions.append(
                SuggestedAction(
                    type=ActionType.SET_BRAND,
                    label=f"Tampilkan {intent.brand.name}",
                    brand_id=intent.brand.id,
                )
            )
        elif intent.category is not None:
            actions.append(
                SuggestedAction(
                    type=ActionType.SET_CATEGORY,
                    label=f"Kategori {intent.category.title()}",
                    value=intent.category,
                )
            )
        elif intent.brand_query:
            actions.append(
                SuggestedAction(
                    type=ActionType.SET_SEARCH,
                    label=f"Cari {intent.brand_query}",
                    value=intent.brand_query,
                )
            )

        if intent.city is not None:
            actions.append(
                SuggestedAction(
                    type=ActionType.HIGHLIGHT_CITY,
                    label=f"Lihat {intent.city.title()}",
                    city=intent.city.title(),
                )
            )

        target: Optional[Outlet] = None
        if intent.wants_nearest and location is not None:
            brand_ids = [intent.brand.id] if intent.brand is not None else None
            outlets = await self.store.outlets_with_coordinates(brand_ids, intent.city)
            nearest = nearest_outlets(outlets, location, 1)
            if nearest:
                target = nearest[0][0]
        elif intent.brand is not None:
            outlets, _ = await self.store.top_outlets_for_brand(intent.brand.id, 1)
            if outlets:
                target = outlets[0]

        if target is not None:
            actions.extend(_outlet_actions(target))

        if intent.brand is not None or intent.city is not None:
            actions.append(
                SuggestedAction(type=ActionType.FIT_BOUNDS, label="Tampilkan semua hasil")
            )
        return actions
