"""Extraction of search intent from a free-text user message.

Matching is driven by literal pattern tables. Callers depend only on the
`IntentExtractor` protocol, so another matching strategy can replace the
keyword one without touching them.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Optional, Protocol

from models.records import Brand

# gazetteer of cities recognized in messages
CITY_PATTERNS: tuple[str, ...] = (
    "jakarta",
    "surabaya",
    "bandung",
    "medan",
    "semarang",
    "makassar",
    "palembang",
    "tangerang",
    "depok",
    "bekasi",
    "bogor",
    "malang",
    "yogyakarta",
    "jogja",
    "solo",
    "denpasar",
    "bali",
    "batam",
    "pekanbaru",
    "lampung",
    "pontianak",
    "banjarmasin",
    "manado",
    "padang",
    "cirebon",
    "surakarta",
    "balikpapan",
    "samarinda",
)

# category keyword -> words expected in the brand category name
CATEGORY_PATTERNS: dict[str, tuple[str, ...]] = {
    "pendidikan": ("pendidikan", "education"),
    "education": ("pendidikan", "education"),
    "makanan": ("makanan", "food", "kuliner"),
    "food": ("makanan", "food", "kuliner"),
    "kuliner": ("makanan", "food", "kuliner"),
    "minuman": ("minuman", "beverage", "drink"),
    "beverage": ("minuman", "beverage", "drink"),
    "laundry": ("laundry",),
    "salon": ("salon", "kecantikan", "beauty"),
    "barber": ("barber",),
    "kecantikan": ("kecantikan", "beauty", "salon"),
    "beauty": ("kecantikan", "beauty", "salon"),
    "kesehatan": ("kesehatan", "health"),
    "health": ("kesehatan", "health"),
}

STATS_PATTERN = re.compile(
    r"berapa|jumlah|total|how many|count|statistik|data", re.IGNORECASE
)
NEAREST_PATTERN = re.compile(
    r"terdekat|paling dekat|nearest|closest|near me|"
    r"dekat (sini|saya|rumah|lokasi)|sekitar (sini|saya)",
    re.IGNORECASE,
)
RESET_PATTERN = re.compile(
    r"\breset\b|hapus filter|clear filter|tampilkan semua|show all|lihat semua",
    re.IGNORECASE,
)
BRAND_QUERY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"[\"“”]([^\"“”]+)[\"“”]"),
    re.compile(r"brand\s+(\w+)", re.IGNORECASE),
    re.compile(r"franchise\s+(\w+)", re.IGNORECASE),
)

# brand names shorter than this are not searched for in messages
MIN_BRAND_NAME_LENGTH = 3


@dataclass(frozen=True)
class Intent:  # pylint: disable=too-many-instance-attributes
    """Structured interpretation of a user message.

    Attributes:
        brand: Known brand mentioned in the message.
        brand_query: Brand phrase found by pattern, even when not resolved.
        city: City from the gazetteer.
        category: Category keyword.
        category_terms: Words expected in the category name of matching brands.
        wants_stats: The user asks for counts or statistics.
        wants_nearest: The user asks for the nearest outlets.
        wants_reset: The user asks to clear filters of the map.
    """

    brand: Optional[Brand] = None
    brand_query: Optional[str] = None
    city: Optional[str] = None
    category: Optional[str] = None
    category_terms: tuple[str, ...] = field(default_factory=tuple)
    wants_stats: bool = False
    wants_nearest: bool = False
    wants_reset: bool = False

    def matches_category(self, brand: Brand) -> bool:
        """Check whether the brand belongs to the requested category."""
        if not self.category or not brand.category:
            return False
        category = brand.category.lower()
        return any(term in category for term in self.category_terms)


class IntentExtractor(Protocol):  # pylint: disable=too-few-public-methods
    """Anything able to interpret a user message."""

    def extract(self, message: str, brands: Sequence[Brand]) -> Intent:
        """Interpret message in the light of known brands."""


def _contains_word(text: str, word: str) -> bool:
    return re.search(rf"(?<!\w){re.escape(word)}(?!\w)", text) is not None


def match_brand(lower: str, brands: Sequence[Brand]) -> Optional[Brand]:
    """Find a known brand whose name appears in the lower-cased message.

    Longer names are tried first so that a brand whose name contains another
    brand's name wins over it.
    """
    candidates = sorted(
        (b for b in brands if len(b.name) >= MIN_BRAND_NAME_LENGTH),
        key=lambda b: len(b.name),
        reverse=True,
    )
    for brand in candidates:
        if _contains_word(lower, brand.name.lower()):
            return brand
    return None


def extract_brand_query(message: str) -> Optional[str]:
    """Return phrase in quotes or after `brand`/`franchise`."""
    for pattern in BRAND_QUERY_PATTERNS:
        found = pattern.search(message)
        if found:
            return found.group(1).strip() or None
    return None


class KeywordIntentExtractor:  # pylint: disable=too-few-public-methods
    """Intent extraction based on gazetteers and regular expressions."""

    def extract(self, message: str, brands: Sequence[Brand]) -> Intent:
        """Interpret message in the light of known brands.

        Parameters:
            message: User message.
            brands: Known brands.

        Returns:
            Intent: Structured interpretation of the message.
        """
        lower = message.lower()

        brand = match_brand(lower, brands)
        brand_query = extract_brand_query(message)
        if brand is None and brand_query:
            query = brand_query.lower()
            brand = next((b for b in brands if query in b.name.lower()), None)

        city = next((c for c in CITY_PATTERNS if _contains_word(lower, c)), None)
        category = next(
            (c for c in CATEGORY_PATTERNS if _contains_word(lower, c)), None
        )

        return Intent(
            brand=brand,
            brand_query=brand_query,
            city=city,
            category=category,
            category_terms=CATEGORY_PATTERNS[category] if category else (),
            wants_stats=STATS_PATTERN.search(lower) is not None,
            wants_nearest=NEAREST_PATTERN.search(lower) is not None,
            wants_reset=RESET_PATTERN.search(lower) is not None,
        )
