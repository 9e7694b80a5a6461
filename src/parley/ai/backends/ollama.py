"""Ollama backend using raw HTTP via httpx.

``POST /api/chat`` with ``stream: true`` answers with newline-delimited
JSON objects; each carries a ``message.content`` fragment and the last one
has ``done: true``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator

import httpx

from parley.ai.backend import AnswerSender, relay_fragments
from parley.ai.types import BackendSettings, Conversation, OllamaSettings
from parley.errors import BackendError

logger = logging.getLogger(__name__)

_TIMEOUT = httpx.Timeout(300.0, connect=30.0)


class OllamaBackend:
    def __init__(self, settings: OllamaSettings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self._transport = transport

    async def ask(
        self,
        conversation: Conversation,
        send: AnswerSender,
        cancel: asyncio.Event,
    ) -> None:
        url = self.settings.url.rstrip("/") + "/api/chat"
        payload = {
            "model": self.settings.model,
            "messages": conversation.to_chat_messages(),
            "stream": True,
        }
        logger.info("Requesting chat from %s (%s)", url, self.settings.model)

        async with httpx.AsyncClient(timeout=_TIMEOUT, transport=self._transport) as client:
            async with client.stream("POST", url, json=payload) as response:
                if response.status_code >= 400:
                    body = (await response.aread()).decode("utf-8", errors="replace").strip()
                    raise BackendError(f"Ollama API error ({response.status_code}): {body}")
                await relay_fragments(_iter_fragments(response), send, cancel)


async def _iter_fragments(response: httpx.Response) -> AsyncIterator[str]:
    async for line in response.aiter_lines():
        line = line.strip()
        if not line:
            continue
        try:
            chunk = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("Skipping malformed line: %r", line)
            continue
        if "error" in chunk:
            raise BackendError(str(chunk["error"]))
        content = (chunk.get("message") or {}).get("content")
        if content:
            yield content
        if chunk.get("done"):
            return


def create_ollama_backend(settings: BackendSettings) -> OllamaBackend:
    return OllamaBackend(settings.ollama)
