"""Event bus between input sources, answer producers and the dispatch loop.

All producers post onto one unbounded ``asyncio.Queue``; the dispatch
loop is the only consumer. Events are plain frozen dataclasses.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from parley.ai.backend import AnswerSender
from parley.ai.events import AnswerEvent
from parley.tui.keys import KeyPress

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class Key:
    press: KeyPress


@dataclass(frozen=True)
class Resize:
    columns: int
    rows: int


@dataclass(frozen=True)
class AnswerReceived:
    stream_id: int
    event: AnswerEvent


@dataclass(frozen=True)
class StreamFailed:
    stream_id: int
    error_message: str


Event = Tick | Key | Resize | AnswerReceived | StreamFailed


class EventBus:
    def __init__(self) -> None:
        self._queue: asyncio.Queue[Event] = asyncio.Queue()

    def post(self, event: Event) -> None:
        self._queue.put_nowait(event)

    async def next(self) -> Event:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()

    def sender_for(self, stream_id: int) -> AnswerSender:
        """Return the ``send`` callable a backend uses for stream *stream_id*."""

        def send(event: AnswerEvent) -> None:
            self.post(AnswerReceived(stream_id, event))

        return send


@dataclass
class StreamHandle:
    """The live answer stream: its id, cancel flag and producer task."""

    stream_id: int
    cancel: asyncio.Event
    task: asyncio.Task[None]

    def stop(self) -> None:
        if not self.cancel.is_set():
            logger.info("Cancelling stream %d", self.stream_id)
            self.cancel.set()


async def tick_source(bus: EventBus, interval: float) -> None:
    """Post a ``Tick`` every *interval* seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        bus.post(Tick())
