"""Offline backend that streams the last user message back, word by word."""

from __future__ import annotations

import asyncio
import re
from collections.abc import AsyncIterator

from parley.ai.backend import AnswerSender, relay_fragments
from parley.ai.types import BackendSettings, Conversation

_WORD_RE = re.compile(r"\S+\s*|\s+")


class EchoBackend:
    def __init__(self, delay: float = 0.05) -> None:
        self.delay = delay

    async def ask(
        self,
        conversation: Conversation,
        send: AnswerSender,
        cancel: asyncio.Event,
    ) -> None:
        text = conversation.last_user_message() or ""
        await relay_fragments(self._words(text), send, cancel)

    async def _words(self, text: str) -> AsyncIterator[str]:
        for word in _WORD_RE.findall(text):
            await asyncio.sleep(self.delay)
            yield word


def create_echo_backend(settings: BackendSettings) -> EchoBackend:
    return EchoBackend(settings.echo.delay)
