"""Models for brand and outlet records read from the record store."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


def _expanded(record: dict[str, Any], field: str) -> dict[str, Any]:
    """Return expanded relation of the record, empty dict when not expanded."""
    expand = record.get("expand") or {}
    value = expand.get(field)
    return value if isinstance(value, dict) else {}


def _number(value: Any) -> Optional[float]:
    """Return numeric field value, None for empty or malformed values."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse record store timestamp such as `2024-05-01 10:00:00.123Z`."""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


class Brand(BaseModel):
    """Franchise brand.

    Attributes:
        id: Record ID.
        name: Brand name.
        category: Category name, None when unknown.
        website: Brand website.
        total_outlets: Number of outlets declared by the brand.
    """

    id: str
    name: str
    category: Optional[str] = None
    website: Optional[str] = None
    total_outlets: Optional[int] = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Brand":
        """Create brand from raw record, preferring expanded category name."""
        category = _expanded(record, "category").get("name") or record.get("category")
        return cls(
            id=record["id"],
            name=(record.get("name") or "").strip(),
            category=(
                category.strip()
                if isinstance(category, str) and category.strip()
                else None
            ),
            website=record.get("website") or None,
            total_outlets=record.get("total_outlets") or None,
        )


class Outlet(BaseModel):
    """Outlet of a franchise brand."""

    id: str
    name: str
    brand_id: Optional[str] = None
    brand_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    total_score: Optional[float] = Field(None, description="Average rating")
    reviews_count: Optional[int] = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Outlet":
        """Create outlet from raw record.

        Older records reference their brand by `brand_id`, newer by `brand`.
        """
        brand = _expanded(record, "brand")
        return cls(
            id=record["id"],
            name=(record.get("name") or "").strip(),
            brand_id=record.get("brand") or record.get("brand_id") or None,
            brand_name=brand.get("name") or None,
            address=record.get("address") or None,
            city=record.get("city") or None,
            region=record.get("region") or None,
            latitude=_number(record.get("latitude")),
            longitude=_number(record.get("longitude")),
            total_score=_number(record.get("totalScore")) or None,
            reviews_count=record.get("reviewsCount") or None,
        )

    @property
    def has_coordinates(self) -> bool:
        """Return True when the outlet can be placed on the map."""
        return (
            self.latitude is not None
            and self.longitude is not None
            and not (self.latitude == 0 and self.longitude == 0)
        )
