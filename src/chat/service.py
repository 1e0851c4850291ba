"""Chat service composing cache, routing, retrieval and generation."""

import re
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Optional

import constants
from cache.response_cache import ResponseCache
from chat.data_version import DataVersionTracker
from chat.prompts import build_system_prompt
from chat.router import RouteResult, route
from models.config import Configuration
from models.requests import ChatRequest, UserLocation
from models.responses import ChatResponse, ChatStatusResponse, SuggestedAction
from providers.errors import NoProvidersConfiguredError
from providers.orchestrator import ProviderOrchestrator
from providers.registry import ProviderRegistry
from rag.actions import SuggestedActionBuilder
from rag.context_builder import ContextBuilder, group_by_category
from rag.datastore import DataStoreClient, DataStoreError
from log import get_logger

logger = get_logger("chat.service")

CACHE_TYPE_SEMANTIC = "semantic"

# requests answered directly from the record store
LIST_ALL_BRANDS_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(semua|seluruh|daftar|list)\b.*\bbrand\b"),
    re.compile(r"\bbrand\b.*\bapa\s*saja\b"),
    re.compile(r"\bsebutkan\b.*\bbrand\b"),
    re.compile(r"\bfranchise\b.*\bapa\s*saja\b"),
)


def wants_all_brands(message: str) -> bool:
    """Check whether the user asks for the list of all brands."""
    lower = message.lower()
    return any(pattern.search(lower) for pattern in LIST_ALL_BRANDS_PATTERNS)


async def _single(text: str) -> AsyncIterator[str]:
    yield text


@dataclass
class ChatStream:  # pylint: disable=too-many-instance-attributes
    """Opened streamed reply.

    Attributes:
        tokens: Reply fragments.
        finish: Called with the full reply text once all fragments were
            consumed; stores the reply and returns suggested actions.
        cached: Reply is served from the cache.
        cache_type: Cache tier that served the reply.
        provider: Provider of the reply.
        model: Model of the reply.
        complexity: Message complexity.
    """

    tokens: AsyncIterator[str]
    finish: Callable[[str], Awaitable[list[SuggestedAction]]]
    cached: bool = False
    cache_type: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    complexity: Optional[str] = None


class ChatService:  # pylint: disable=too-many-instance-attributes
    """Answer chat requests.

    Per request, the exact cache is checked before the semantic one. On a
    miss, the message is routed, optionally enriched by retrieved facts and
    sent to the provider orchestrator. Suggested actions are computed for
    every request and never cached.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        *,
        cache: ResponseCache,
        orchestrator: ProviderOrchestrator,
        store: DataStoreClient,
        context_builder: ContextBuilder,
        action_builder: SuggestedActionBuilder,
        data_version: DataVersionTracker,
    ) -> None:
        """Create chat service from its collaborators."""
        self.cache = cache
        self.orchestrator = orchestrator
        self.store = store
        self.context_builder = context_builder
        self.action_builder = action_builder
        self.data_version = data_version

    @classmethod
    async def create(cls, config: Configuration) -> "ChatService":
        """Build chat service and its collaborators from configuration.

        Parameters:
            config: Loaded service configuration.

        Returns:
            ChatService: Service ready to answer requests.
        """
        store = DataStoreClient(config.data_store)
        registry = ProviderRegistry(config.llm)
        return cls(
            cache=await ResponseCache.create(config.cache),
            orchestrator=ProviderOrchestrator(registry, config.llm),
            store=store,
            context_builder=ContextBuilder(store),
            action_builder=SuggestedActionBuilder(store),
            data_version=DataVersionTracker(store, config.data_store),
        )

    async def close(self) -> None:
        """Release connections held by the collaborators."""
        await self.cache.close()
        await self.store.close()

    def status(self) -> ChatStatusResponse:
        """Return configured providers and cache statistics."""
        return ChatStatusResponse(
            status="ok",
            providers=self.orchestrator.configured_providers(),
            cache=self.cache.stats(),
        )

    def _ensure_providers(self, request: ChatRequest) -> None:
        if not self.orchestrator.registry.resolve(request.provider_override):
            raise NoProvidersConfiguredError()

    async def _actions(
        self, message: str, location: Optional[UserLocation]
    ) -> list[SuggestedAction]:
        return await self.action_builder.get_suggested_actions(message, location)

    async def _store(
        self,
        key: str,
        message: str,
        reply: str,
        location: Optional[UserLocation],
        data_version: Optional[str],
    ) -> None:
        await self.cache.set(key, reply)
        await self.cache.set_semantic(message, reply, location, data_version)

    async def _system_prompt(
        self, decision: RouteResult, message: str, location: Optional[UserLocation]
    ) -> str:
        context = ""
        if decision.needs_rag:
            rag = await self.context_builder.get_relevant_context(message, location)
            context = rag.text
        return build_system_prompt(decision.complexity, context)

    async def list_all_brands(self) -> Optional[str]:
        """Build reply listing all brands grouped by category.

        Returns:
            Optional[str]: Reply text, None when the record store failed.
        """
        try:
            brands = await self.store.list_brands()
        except DataStoreError as e:
            logger.warning("Brand listing failed, using AI instead: %s", e)
            return None
        lines = [f"Kami memiliki {len(brands)} brand franchise di database kami:"]
        for category, members in sorted(group_by_category(brands).items()):
            lines.append(f"* {category}:")
            lines.extend(
                f"  + {brand.name}"
                for brand in sorted(members, key=lambda b: b.name.lower())
            )
        return "\n".join(lines)

    async def _lookup_cache(
        self,
        request: ChatRequest,
        data_version: Optional[str],
    ) -> tuple[str, Optional[str], Optional[str]]:
        """Check both cache tiers.

        Returns:
            tuple: Exact key, cached reply and the tier that served it.
        """
        message = request.last_message.content
        location = request.user_location
        key = self.cache.make_key(request.messages, location, data_version)
        cached = await self.cache.get(key)
        if cached is not None:
            return key, cached, None
        cached = await self.cache.get_semantic(message, location, data_version)
        if cached is not None:
            return key, cached, CACHE_TYPE_SEMANTIC
        return key, None, None

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Answer the chat request.

        Raises:
            NoProvidersConfiguredError: When no provider can be called.
            AllProvidersFailedError: When every provider failed.
        """
        self._ensure_providers(request)
        message = request.last_message.content
        location = request.user_location
        data_version = await self.data_version.current()

        key, cached, cache_type = await self._lookup_cache(request, data_version)
        if cached is not None:
            return ChatResponse(
                reply=cached,
                cached=True,
                cache_type=cache_type,
                actions=await self._actions(message, location),
                stats=self.cache.stats(),
            )

        decision = route(message)

        if wants_all_brands(message):
            direct = await self.list_all_brands()
            if direct is not None:
                await self._store(key, message, direct, location, data_version)
                return ChatResponse(
                    reply=direct,
                    cached=False,
                    provider=constants.DIRECT_PROVIDER_NAME,
                    model=constants.DIRECT_MODEL_NAME,
                    complexity=decision.complexity,
                    actions=[],
                    stats=self.cache.stats(),
                )

        system_prompt = await self._system_prompt(decision, message, location)
        result = await self.orchestrator.generate_with_fallback(
            system_prompt,
            request.messages,
            decision.model_tier,
            request.provider_override,
        )
        actions = await self._actions(message, location)
        await self._store(key, message, result.text, location, data_version)

        return ChatResponse(
            reply=result.text,
            cached=False,
            provider=result.provider,
            model=result.model,
            complexity=decision.complexity,
            actions=actions,
            stats=self.cache.stats(),
        )

    async def open_stream(self, request: ChatRequest) -> ChatStream:
        """Open streamed answer of the chat request.

        Cached and directly built replies are streamed as a single fragment.
        A generated reply is stored in both cache tiers once it completes.

        Raises:
            NoProvidersConfiguredError: When no provider can be called.
            AllProvidersFailedError: When no provider accepted the request.
        """
        self._ensure_providers(request)
        message = request.last_message.content
        location = request.user_location
        data_version = await self.data_version.current()

        async def actions_only(_: str) -> list[SuggestedAction]:
            return await self._actions(message, location)

        key, cached, cache_type = await self._lookup_cache(request, data_version)
        if cached is not None:
            return ChatStream(
                tokens=_single(cached),
                finish=actions_only,
                cached=True,
                cache_type=cache_type,
            )

        decision = route(message)

        async def store_and_act(text: str) -> list[SuggestedAction]:
            if text.strip():
                await self._store(key, message, text, location, data_version)
            return await self._actions(message, location)

        if wants_all_brands(message):
            direct = await self.list_all_brands()
            if direct is not None:

                async def store_only(text: str) -> list[SuggestedAction]:
                    await self._store(key, message, text, location, data_version)
                    return []

                return ChatStream(
                    tokens=_single(direct),
                    finish=store_only,
                    provider=constants.DIRECT_PROVIDER_NAME,
                    model=constants.DIRECT_MODEL_NAME,
                    complexity=decision.complexity,
                )

        system_prompt = await self._system_prompt(decision, message, location)
        result = await self.orchestrator.stream_with_fallback(
            system_prompt,
            request.messages,
            decision.model_tier,
            request.provider_override,
        )
        return ChatStream(
            tokens=result.chunks,
            finish=store_and_act,
            provider=result.provider,
            model=result.model,
            complexity=decision.complexity,
        )
