"""Finished chat threads and the plain-text archive file."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from parley.ai.types import Conversation
from parley.errors import ArchiveError

logger = logging.getLogger(__name__)


@dataclass
class ChatThread:
    conversation: Conversation
    transcript: list[str] = field(default_factory=list)

    @property
    def title(self) -> str:
        first = self.conversation.messages[0].content if self.conversation.messages else ""
        return first.splitlines()[0] if first.strip() else "(empty)"


class ChatHistory:
    """Threads handed off by "new chat", kept for the lifetime of the process."""

    def __init__(self) -> None:
        self._threads: list[ChatThread] = []

    @property
    def threads(self) -> list[ChatThread]:
        return list(self._threads)

    def archive(self, conversation: Conversation, transcript: list[str]) -> None:
        self._threads.append(ChatThread(conversation.model_copy(deep=True), list(transcript)))
        logger.debug("Archived thread #%d", len(self._threads))

    def preview(self, index: int) -> str:
        if not 0 <= index < len(self._threads):
            return ""
        return "\n".join(self._threads[index].transcript)

    def __len__(self) -> int:
        return len(self._threads)


def save_transcript(path: str | Path, transcript: list[str]) -> Path:
    """Write the chat transcript to *path*, replacing its contents."""
    target = Path(path).expanduser()
    try:
        target.write_text("\n".join(transcript), encoding="utf-8")
    except OSError as e:
        raise ArchiveError(f"Cannot write {target}: {e}") from e
    logger.info("Chat saved to %s", target)
    return target
