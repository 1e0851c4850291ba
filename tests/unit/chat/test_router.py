"""Unit tests for the complexity router."""

import pytest

from chat.router import (
    COMPLEXITY_COMPLEX,
    COMPLEXITY_MEDIUM,
    COMPLEXITY_SIMPLE,
    SIMPLE_ROUTE,
    complexity_score,
    is_greeting,
    route,
)
from constants import MODEL_TIER_FLASH, MODEL_TIER_PRO


@pytest.mark.parametrize(
    "message",
    ["Halo!", "hai", "Selamat", "good morning", "terima kasih", "Thanks!", "oke", "iya"],
)
def test_greetings_are_simple(message: str) -> None:
    """Test that greetings and acknowledgements never need retrieval."""
    assert route(message) == SIMPLE_ROUTE


def test_is_greeting_requires_whole_message() -> None:
    """Test that a greeting followed by a question is not a greeting."""
    assert is_greeting("halo")
    assert not is_greeting("halo, dimana outlet kumon?")


def test_short_message_without_keyword_is_simple() -> None:
    """Test short small talk."""
    result = route("apa kabar?")
    assert result.complexity == COMPLEXITY_SIMPLE
    assert result.needs_rag is False
    assert result.model_tier == MODEL_TIER_FLASH


def test_bare_brand_name_gets_retrieval() -> None:
    """Test that a short message naming a brand is not treated as small talk."""
    result = route("kumon")
    assert result.complexity == COMPLEXITY_MEDIUM
    assert result.needs_rag is True
    assert result.model_tier == MODEL_TIER_FLASH
    assert result.score == 1


def test_outlet_question() -> None:
    """Test location question about a brand."""
    result = route("Dimana outlet Kumon di Jakarta?")
    assert result.complexity == COMPLEXITY_MEDIUM
    assert result.needs_rag is True
    assert result.model_tier == MODEL_TIER_FLASH


def test_analytical_question_uses_pro_tier() -> None:
    """Test that analytical keywords promote the message to the pro tier."""
    result = route("Bandingkan potensi investasi Kumon dan Janji Jiwa")
    assert result.complexity == COMPLEXITY_COMPLEX
    assert result.needs_rag is True
    assert result.model_tier == MODEL_TIER_PRO
    assert result.score >= 3


def test_longer_small_talk_is_simple() -> None:
    """Test message without any keyword above the short message length."""
    result = route("apa kabar kamu hari ini teman")
    assert result.complexity == COMPLEXITY_SIMPLE
    assert result.needs_rag is False
    assert result.score == 0


def test_multi_sentence_message_is_medium() -> None:
    """Test that more than two sentences add to the score."""
    result = route("Saya suka kopi. Saya juga suka teh. Apa rekomendasi kamu?")
    assert result.complexity == COMPLEXITY_MEDIUM
    assert result.needs_rag is False
    assert result.score == 1


def test_complexity_score_counts_length() -> None:
    """Test length based part of the score."""
    assert complexity_score("a" * 100) == 0
    assert complexity_score("a" * 101) == 1
    assert complexity_score("a" * 251) == 2


def test_complexity_score_counts_keywords() -> None:
    """Test keyword based part of the score."""
    assert complexity_score("kelebihan dan kekurangan serta roi") == 2


def test_city_count_question_needs_retrieval() -> None:
    """Test question about the number of outlets in a city."""
    result = route("berapa jumlah outlet di Jakarta")
    assert result.needs_rag is True
    assert result.complexity == COMPLEXITY_MEDIUM
