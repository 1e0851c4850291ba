"""Retrieval of brand and outlet facts from the record store.

This module provides:
- Record store client for the brand and outlet collections
- Intent extraction from user messages
- Context block builder used to enrich prompts
- Deterministic suggested UI actions
"""

from rag.actions import SuggestedActionBuilder
from rag.context_builder import ContextBuilder, RagContext
from rag.datastore import DataStoreClient, DataStoreError
from rag.intent import Intent, IntentExtractor, KeywordIntentExtractor

__all__ = [
    "SuggestedActionBuilder",
    "ContextBuilder",
    "RagContext",
    "DataStoreClient",
    "DataStoreError",
    "Intent",
    "IntentExtractor",
    "KeywordIntentExtractor",
]
