"""Chat service assembled from in-memory collaborators for unit tests."""

from typing import Optional

from pydantic import SecretStr

from cache.in_memory_backend import InMemoryCacheBackend
from cache.response_cache import ResponseCache
from chat.data_version import DataVersionTracker
from chat.service import ChatService
from models.config import (
    DataStoreConfiguration,
    InMemoryCacheConfig,
    LLMConfiguration,
    ProviderConfiguration,
    ResponseCacheConfiguration,
    RetryConfiguration,
)
from providers.orchestrator import ProviderOrchestrator
from providers.registry import ProviderRegistry
from rag.actions import SuggestedActionBuilder
from rag.context_builder import ContextBuilder
from tests.unit.utils.fake_providers import ScriptedClients, SleepRecorder
from tests.unit.utils.fake_store import FakeDataStore


def llm_configuration(*names: str) -> LLMConfiguration:
    """Create LLM configuration with a key for each named provider."""
    return LLMConfiguration(
        providers=[
            ProviderConfiguration(name=name, api_key=SecretStr(f"key-{name}"))
            for name in names
        ],
        retry=RetryConfiguration(backoff_ms=[300, 800]),
    )


def build_chat_service(
    store: Optional[FakeDataStore] = None,
    clients: Optional[ScriptedClients] = None,
    llm: Optional[LLMConfiguration] = None,
) -> ChatService:
    """Build chat service over the in-memory cache and the fake record store."""
    store = store or FakeDataStore()
    llm = llm or llm_configuration("google")
    cache_config = ResponseCacheConfiguration(memory=InMemoryCacheConfig(max_entries=10))
    orchestrator = ProviderOrchestrator(
        ProviderRegistry(llm, {}),
        llm,
        client_factory=clients or ScriptedClients(),
        sleep=SleepRecorder(),
    )
    return ChatService(
        cache=ResponseCache(
            cache_config, InMemoryCacheBackend(cache_config.memory)  # type: ignore[arg-type]
        ),
        orchestrator=orchestrator,
        store=store,  # type: ignore[arg-type]
        context_builder=ContextBuilder(store),  # type: ignore[arg-type]
        action_builder=SuggestedActionBuilder(store),  # type: ignore[arg-type]
        data_version=DataVersionTracker(store, DataStoreConfiguration()),  # type: ignore[arg-type]
    )
