"""Complexity router choosing model tier and retrieval for a message."""

import re
from dataclasses import dataclass

import constants
from log import get_logger

logger = get_logger("chat.router")

COMPLEXITY_SIMPLE = "simple"
COMPLEXITY_MEDIUM = "medium"
COMPLEXITY_COMPLEX = "complex"

# keywords indicating analytical reasoning
COMPLEX_KEYWORDS: tuple[str, ...] = (
    "analisis",
    "bandingkan",
    "compare",
    "evaluasi",
    "strategi",
    "mengapa",
    "why",
    "bagaimana cara",
    "how to",
    "pros and cons",
    "kelebihan dan kekurangan",
    "potensi",
    "investasi",
    "modal",
    "roi",
    "break even",
    "jelaskan secara detail",
    "explain in detail",
)

# keywords indicating that brand or outlet data is needed
RAG_KEYWORDS: tuple[str, ...] = (
    "outlet",
    "cabang",
    "lokasi",
    "alamat",
    "dimana",
    "where",
    "berapa",
    "how many",
    "jumlah",
    "kota",
    "wilayah",
    "daerah",
    "region",
    "terdekat",
    "nearest",
    "closest",
    "sekitar",
    "brand",
    "franchise",
    "merk",
    "merek",
    "kumon",
    "luuca",
    "barber",
    "laundry",
    "kategori",
    "category",
    "jenis",
    "rating",
    "review",
    "bintang",
    "score",
)

# greetings and acknowledgements
SIMPLE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"^(hai|halo|hi|hello|hey|selamat|assalamu|good\s*(morning|afternoon|evening))"
        r"[\s!.]*$"
    ),
    re.compile(r"^(terima\s*kasih|thanks?|makasih|thx|ok|oke|siap|baik)[\s!.]*$"),
    re.compile(r"^(ya|tidak|iya|ngga|nggak|bukan|betul|benar)[\s!.]*$"),
)

SENTENCE_SEPARATOR = re.compile(r"[.!?。]+")


@dataclass(frozen=True)
class RouteResult:
    """Routing decision for one message."""

    complexity: str
    needs_rag: bool
    model_tier: str
    score: int = 0


SIMPLE_ROUTE = RouteResult(
    complexity=COMPLEXITY_SIMPLE,
    needs_rag=False,
    model_tier=constants.MODEL_TIER_FLASH,
)


def is_greeting(text: str) -> bool:
    """Check whether the lower-cased text is a greeting or acknowledgement."""
    return any(pattern.match(text) for pattern in SIMPLE_PATTERNS)


def complexity_score(text: str) -> int:
    """Score analytical complexity of the lower-cased text."""
    score = 0
    if len(text) > constants.ROUTER_LONG_MESSAGE_LENGTH:
        score += 1
    if len(text) > constants.ROUTER_VERY_LONG_MESSAGE_LENGTH:
        score += 1
    sentences = [s for s in SENTENCE_SEPARATOR.split(text) if s.strip()]
    if len(sentences) > constants.ROUTER_MULTI_SENTENCE_COUNT:
        score += 1
    score += sum(1 for keyword in COMPLEX_KEYWORDS if keyword in text)
    return score


def route(message: str) -> RouteResult:
    """Classify complexity of the message and decide whether retrieval is needed.

    Greetings are always simple. Other very short messages are simple only
    when they do not mention any domain keyword, so a bare brand name still
    gets retrieval.

    Parameters:
        message: User message.

    Returns:
        RouteResult: Complexity, retrieval flag and model tier.
    """
    text = message.lower().strip()
    if is_greeting(text):
        return SIMPLE_ROUTE

    needs_rag = any(keyword in text for keyword in RAG_KEYWORDS)
    if not needs_rag and len(text) <= constants.ROUTER_SIMPLE_MAX_LENGTH:
        return SIMPLE_ROUTE

    score = complexity_score(text)
    if needs_rag:
        score = max(score, constants.ROUTER_MIN_RAG_SCORE)

    if score >= constants.ROUTER_COMPLEX_SCORE:
        complexity, tier = COMPLEXITY_COMPLEX, constants.MODEL_TIER_PRO
    elif score >= constants.ROUTER_MEDIUM_SCORE:
        complexity, tier = COMPLEXITY_MEDIUM, constants.MODEL_TIER_FLASH
    else:
        complexity, tier = COMPLEXITY_SIMPLE, constants.MODEL_TIER_FLASH

    logger.info(
        'Message: "%s..." -> %s (score: %d, RAG: %s, model: %s)',
        text[:50],
        complexity,
        score,
        needs_rag,
        tier,
    )
    return RouteResult(
        complexity=complexity, needs_rag=needs_rag, model_tier=tier, score=score
    )
