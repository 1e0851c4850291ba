"""Client calling one OpenAI-compatible provider endpoint."""

from collections.abc import (
    AsyncGenerator,
    AsyncIterator,
    Awaitable,
    Callable,
    Sequence,
)
from typing import Any, Optional

from openai import AsyncOpenAI

from models.requests import ChatMessage
from providers.errors import EmptyResponseError
from providers.registry import ProviderConfig


def build_chat_messages(
    system_prompt: str, messages: Sequence[ChatMessage]
) -> list[dict[str, Any]]:
    """Prepend the system prompt to the conversation."""
    return [
        {"role": "system", "content": system_prompt},
        *({"role": message.role, "content": message.content} for message in messages),
    ]


class ReplyStream(AsyncIterator[str]):
    """Fragments of a streamed reply holding the provider connection.

    The connection is released when all fragments were read or on aclose(),
    also when no fragment was read at all.
    """

    def __init__(
        self,
        fragments: AsyncGenerator[str, None],
        release: Callable[[], Awaitable[None]],
    ) -> None:
        """Wrap fragment generator and the function releasing the connection."""
        self._fragments = fragments
        self._release = release

    async def __anext__(self) -> str:
        """Return next fragment."""
        return await self._fragments.__anext__()

    async def aclose(self) -> None:
        """Stop reading and release the connection."""
        await self._fragments.aclose()
        await self._release()


class ProviderClient:
    """Chat completion client bound to one provider.

    The client never retries by itself; retries and fallback are handled by
    the orchestrator so that every failure is classified exactly once.
    """

    def __init__(
        self,
        provider: ProviderConfig,
        *,
        timeout: float,
        max_output_tokens: int,
        temperature: float,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        """Create client for the provider.

        Parameters:
            provider: Resolved provider record.
            timeout: Deadline in seconds of a single request.
            max_output_tokens: Maximum number of generated tokens.
            temperature: Sampling temperature.
            client: Already constructed SDK client, mainly for tests.
        """
        self.provider = provider
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature
        api_key = provider.api_key.get_secret_value() if provider.api_key else None
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=provider.base_url,
            timeout=timeout,
            max_retries=0,
        )

    async def generate(
        self, model: str, system_prompt: str, messages: Sequence[ChatMessage]
    ) -> str:
        """Generate complete reply.

        Raises:
            EmptyResponseError: When the model answered with blank text.
            openai.OpenAIError: When the provider call failed.
        """
        completion = await self._client.chat.completions.create(
            model=model,
            messages=build_chat_messages(system_prompt, messages),  # type: ignore[arg-type]
            max_tokens=self.max_output_tokens,
            temperature=self.temperature,
        )
        text = ""
        if completion.choices:
            text = completion.choices[0].message.content or ""
        if not text.strip():
            raise EmptyResponseError()
        return text

    async def open_stream(
        self, model: str, system_prompt: str, messages: Sequence[ChatMessage]
    ) -> ReplyStream:
        """Open streamed reply.

        Connection and status errors are raised here, before any token is
        produced. Errors raised while iterating the returned stream are not
        retried by the caller.

        Returns:
            ReplyStream: Text fragments in the order they arrive.
        """
        stream = await self._client.chat.completions.create(
            model=model,
            messages=build_chat_messages(system_prompt, messages),  # type: ignore[arg-type]
            max_tokens=self.max_output_tokens,
            temperature=self.temperature,
            stream=True,
        )

        released = False

        async def release() -> None:
            nonlocal released
            if released:
                return
            released = True
            await stream.close()
            await self.close()

        async def fragments() -> AsyncGenerator[str, None]:
            try:
                async for chunk in stream:
                    if not chunk.choices:
                        continue
                    content = chunk.choices[0].delta.content
                    if content:
                        yield content
            finally:
                await release()

        return ReplyStream(fragments(), release)

    async def close(self) -> None:
        """Close underlying HTTP connections."""
        await self._client.close()
