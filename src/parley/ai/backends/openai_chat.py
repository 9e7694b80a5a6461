"""ChatGPT backend using the OpenAI Chat Completions streaming API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

from parley.ai.backend import AnswerSender, relay_fragments
from parley.ai.env import api_key_env_var, get_env_api_key
from parley.ai.types import BackendSettings, ChatGPTSettings, Conversation
from parley.errors import ConfigError

logger = logging.getLogger(__name__)


class ChatGPTBackend:
    def __init__(self, settings: ChatGPTSettings, api_key: str) -> None:
        self.settings = settings
        self._api_key = api_key

    def _create_client(self) -> Any:
        import openai

        return openai.AsyncOpenAI(api_key=self._api_key, base_url=self.settings.url)

    async def ask(
        self,
        conversation: Conversation,
        send: AnswerSender,
        cancel: asyncio.Event,
    ) -> None:
        client = self._create_client()
        try:
            logger.info("Requesting completion from %s (%s)", self.settings.url, self.settings.model)
            openai_stream = await client.chat.completions.create(
                model=self.settings.model,
                messages=conversation.to_chat_messages(),
                stream=True,
            )
            try:
                await relay_fragments(_content_deltas(openai_stream), send, cancel)
            finally:
                await openai_stream.close()
        finally:
            await client.close()


async def _content_deltas(openai_stream: Any) -> AsyncIterator[str]:
    async for chunk in openai_stream:
        choices = getattr(chunk, "choices", None)
        if not choices:
            continue
        delta = getattr(choices[0], "delta", None)
        content_text = getattr(delta, "content", None) if delta else None
        if content_text:
            yield content_text


def create_chatgpt_backend(settings: BackendSettings) -> ChatGPTBackend:
    api_key = settings.chatgpt.openai_api_key or get_env_api_key("chatgpt")
    if not api_key:
        raise ConfigError(f"{api_key_env_var('chatgpt')} environment variable is not set")
    return ChatGPTBackend(settings.chatgpt, api_key)
