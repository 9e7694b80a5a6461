"""Answer producer abstraction and backend registry.

A backend is anything with an ``ask`` coroutine that streams an answer
for a conversation through a ``send`` callable while watching a cancel
event. Concrete backends are registered by name and created from
configuration; nothing outside ``parley.ai.backends`` imports them
directly.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Protocol

from parley.ai.events import Answer, AnswerEvent, EndAnswer, StartAnswer
from parley.ai.types import BackendSettings, Conversation
from parley.errors import ConfigError

logger = logging.getLogger(__name__)

AnswerSender = Callable[[AnswerEvent], None]


class Backend(Protocol):
    """A streaming text-generation backend."""

    async def ask(
        self,
        conversation: Conversation,
        send: AnswerSender,
        cancel: asyncio.Event,
    ) -> None:
        """Stream one answer for *conversation*.

        Emits ``StartAnswer``, zero or more ``Answer`` fragments and
        ``EndAnswer`` through *send*. Once *cancel* is set no further
        fragments are sent and ``EndAnswer`` still follows. Failures are
        raised, not sent.
        """
        ...


async def relay_fragments(
    fragments: AsyncIterator[str],
    send: AnswerSender,
    cancel: asyncio.Event,
) -> None:
    """Forward *fragments* through *send* wrapped in start/end events.

    *cancel* is checked before every fragment. On cancellation the
    iterator is closed so the underlying response is released. Exceptions
    from the iterator propagate and no ``EndAnswer`` is sent.
    """
    send(StartAnswer())
    try:
        async for fragment in fragments:
            if cancel.is_set():
                logger.info("Answer stream cancelled")
                break
            if fragment:
                send(Answer(fragment=fragment))
    finally:
        aclose = getattr(fragments, "aclose", None)
        if aclose is not None:
            await aclose()
    send(EndAnswer())


# --- Registry ---

BackendFactory = Callable[[BackendSettings], Backend]


@dataclass
class BackendProvider:
    """A named backend implementation."""

    name: str
    factory: BackendFactory
    description: str = ""


_registry: dict[str, BackendProvider] = {}


def register_backend(provider: BackendProvider) -> None:
    """Register a backend implementation under its name."""
    _registry[provider.name] = provider


def get_backend_provider(name: str) -> BackendProvider | None:
    return _registry.get(name)


def get_backend_providers() -> list[BackendProvider]:
    return list(_registry.values())


def clear_backends() -> None:
    """Remove all registered backends."""
    _registry.clear()


def create_backend(name: str, settings: BackendSettings) -> Backend:
    """Instantiate the backend registered as *name*.

    Raises ``ConfigError`` for unknown names and for settings the
    backend's factory rejects.
    """
    provider = _registry.get(name)
    if provider is None:
        available = ", ".join(sorted(_registry)) or "none"
        raise ConfigError(f"Unknown backend {name!r} (available: {available})")
    logger.debug("Creating backend %s", name)
    return provider.factory(settings)
