"""Application state and event dispatch.

``App`` is the single writer of everything the user sees: the
conversation, the chat transcript, the prompt, notifications, focus,
popups and scroll offsets. Producers never touch it; they post events on
the bus and ``App.dispatch`` applies them one at a time.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from parley.ai.backend import Backend
from parley.ai.events import Answer, EndAnswer, StartAnswer
from parley.ai.types import Conversation
from parley.app.bus import AnswerReceived, Event, EventBus, Key, Resize, StreamFailed, StreamHandle, Tick
from parley.app.clipboard import Clipboard
from parley.app.config import AppConfig
from parley.app.history import ChatHistory, save_transcript
from parley.app.layout import chat_scroll_limit, preview_scroll_limit
from parley.app.notifications import Notifications
from parley.app.prompt import Mode, Prompt
from parley.errors import ArchiveError
from parley.tui.keys import Key as KeyName
from parley.tui.keys import KeyPress

logger = logging.getLogger(__name__)

USER_PREFIX = "👤 : "
ASSISTANT_PREFIX = "🤖: "
STREAMING_WARNING = "A response is still streaming; press ctrl+t to stop it"

# Scroll offset meaning "as far down as the content allows"; clamped once the size is known.
SCROLL_BOTTOM = 1 << 30


class Focus(Enum):
    PROMPT = "prompt"
    CHAT = "chat"
    HISTORY = "history"


class App:
    def __init__(
        self,
        backend: Backend,
        bus: EventBus,
        config: AppConfig | None = None,
        *,
        clipboard: Clipboard | None = None,
        history: ChatHistory | None = None,
    ) -> None:
        self.backend = backend
        self.bus = bus
        self.config = config or AppConfig()
        self.clipboard = clipboard
        self.history = history if history is not None else ChatHistory()

        self.notifications = Notifications()
        self.prompt = Prompt(on_warning=self.notifications.warning)
        self.conversation = Conversation()
        self.transcript: list[str] = []
        self.answer_text = ""

        self.focus = Focus.PROMPT
        self.show_help = False
        self.history_index = 0
        self.history_preview_focused = False
        self.history_preview_scroll = 0
        self.chat_scroll = 0

        self.columns = 0
        self.rows = 0
        self.running = True
        self.stream: StreamHandle | None = None
        self._next_stream_id = 0
        self._focus_before_history = Focus.PROMPT

    @property
    def streaming(self) -> bool:
        return self.stream is not None

    @property
    def history_open(self) -> bool:
        return self.focus is Focus.HISTORY

    def chat_text(self) -> str:
        """The transcript plus the answer still streaming in."""
        parts = list(self.transcript)
        if self.streaming:
            parts.append(f"{ASSISTANT_PREFIX}{self.answer_text}")
        return "\n".join(parts)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, event: Event) -> None:
        match event:
            case Tick():
                self.notifications.tick()
            case Resize(columns=columns, rows=rows):
                self.columns, self.rows = columns, rows
                self._clamp_scroll()
            case Key(press=press):
                self._handle_key(press)
                self._clamp_scroll()
            case AnswerReceived():
                self._handle_answer(event)
            case StreamFailed():
                self._handle_failure(event)

    def _handle_key(self, key: KeyPress) -> None:
        if key.id == "ctrl+c":
            self.quit()
            return

        if self.show_help:
            if key.id in ("escape", "?", "q"):
                self.show_help = False
            return

        if self.history_open:
            self._handle_history_key(key)
            return

        match key.id:
            case "ctrl+t":
                self.stop_stream()
                return
            case "ctrl+n":
                self.new_chat()
                return
            case "ctrl+s":
                self.save_archive()
                return
            case "ctrl+r":
                self.open_history()
                return

        prompt = self.prompt
        if prompt.mode is Mode.INSERT:
            prompt.handle_key(key, self.clipboard)
            return

        match key.id:
            case KeyName.tab:
                self._toggle_focus()
                return
            case "q":
                self.quit()
                return
            case "?":
                self.show_help = True
                return

        if self.focus is Focus.CHAT:
            self._handle_chat_key(key)
        elif key.id == KeyName.enter and prompt.mode is Mode.NORMAL:
            self.submit()
        else:
            prompt.handle_key(key, self.clipboard)

    def _clamp_scroll(self) -> None:
        """Bound the scroll offsets by the content once the terminal size is known."""
        if self.columns <= 0 or self.rows <= 0:
            return
        if self.focus is Focus.CHAT:
            limit = chat_scroll_limit(self.chat_text(), self.prompt, self.columns, self.rows)
            self.chat_scroll = max(0, min(self.chat_scroll, limit))
        if self.history_open:
            preview = self.history.preview(self.history_index)
            limit = preview_scroll_limit(preview, self.columns, self.rows)
            self.history_preview_scroll = max(0, min(self.history_preview_scroll, limit))

    def _toggle_focus(self) -> None:
        self.prompt.buffer.cancel_selection()
        if self.prompt.mode is Mode.VISUAL:
            self.prompt.mode = Mode.NORMAL
        if self.focus is Focus.PROMPT:
            self.focus = Focus.CHAT
            self.chat_scroll = SCROLL_BOTTOM
        else:
            self.focus = Focus.PROMPT

    def _handle_chat_key(self, key: KeyPress) -> None:
        match key.id:
            case "j" | KeyName.down:
                self.chat_scroll += 1
            case "k" | KeyName.up:
                self.chat_scroll = max(0, self.chat_scroll - 1)
            case "G":
                self.chat_scroll = SCROLL_BOTTOM
            case "g":
                self.chat_scroll = 0

    def _handle_history_key(self, key: KeyPress) -> None:
        match key.id:
            case "escape" | "ctrl+r":
                self.focus = self._focus_before_history
            case KeyName.tab:
                self.history_preview_focused = not self.history_preview_focused
            case "j" | KeyName.down:
                if self.history_preview_focused:
                    self.history_preview_scroll += 1
                elif self.history_index < len(self.history) - 1:
                    self.history_index += 1
                    self.history_preview_scroll = 0
            case "k" | KeyName.up:
                if self.history_preview_focused:
                    self.history_preview_scroll = max(0, self.history_preview_scroll - 1)
                elif self.history_index > 0:
                    self.history_index -= 1
                    self.history_preview_scroll = 0

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def quit(self) -> None:
        self.running = False

    def open_history(self) -> None:
        self._focus_before_history = self.focus
        self.focus = Focus.HISTORY
        self.history_index = max(0, len(self.history) - 1)
        self.history_preview_focused = False
        self.history_preview_scroll = 0

    def stop_stream(self) -> None:
        if self.stream is None:
            self.notifications.info("No response is streaming")
            return
        self.stream.stop()

    def new_chat(self) -> None:
        if self.streaming:
            self.notifications.warning(STREAMING_WARNING)
            return
        if not self.conversation.is_empty():
            self.history.archive(self.conversation, self.transcript)
        self.conversation = Conversation()
        self.transcript = []
        self.answer_text = ""
        self.chat_scroll = 0
        self.prompt.buffer.clear()

    def save_archive(self) -> None:
        try:
            path = save_transcript(self.config.archive_file_name, self.transcript)
        except ArchiveError as e:
            logger.warning("Archive save failed: %s", e)
            self.notifications.warning(str(e))
            return
        self.notifications.info(f"Chat saved to {path}")

    def submit(self) -> None:
        buffer = self.prompt.buffer
        text = buffer.text
        if not text.strip():
            return
        if self.streaming:
            self.notifications.warning(STREAMING_WARNING)
            return

        self.conversation.add_user(text)
        self.transcript.append(f"{USER_PREFIX}{text}\n")
        buffer.clear()
        self.chat_scroll = SCROLL_BOTTOM
        self._start_stream()

    # ------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------

    def _start_stream(self) -> None:
        assert self.stream is None, "a stream is already active"
        self._next_stream_id += 1
        stream_id = self._next_stream_id
        cancel = asyncio.Event()
        conversation = self.conversation.model_copy(deep=True)
        task = asyncio.get_running_loop().create_task(self._run_stream(stream_id, conversation, cancel))
        self.stream = StreamHandle(stream_id, cancel, task)
        self.answer_text = ""
        logger.info("Stream %d started", stream_id)

    async def _run_stream(self, stream_id: int, conversation: Conversation, cancel: asyncio.Event) -> None:
        try:
            await self.backend.ask(conversation, self.bus.sender_for(stream_id), cancel)
        except Exception as e:
            logger.exception("Stream %d failed", stream_id)
            self.bus.post(StreamFailed(stream_id, str(e) or type(e).__name__))

    def _is_live(self, stream_id: int) -> bool:
        if self.stream is not None and self.stream.stream_id == stream_id:
            return True
        logger.debug("Dropping event from stale stream %d", stream_id)
        return False

    def _handle_answer(self, received: AnswerReceived) -> None:
        if not self._is_live(received.stream_id):
            return
        match received.event:
            case StartAnswer():
                self.answer_text = ""
            case Answer(fragment=fragment):
                self.answer_text += fragment
            case EndAnswer():
                if self.answer_text:
                    self.conversation.add_assistant(self.answer_text)
                    self.transcript.append(f"{ASSISTANT_PREFIX}{self.answer_text}\n")
                self.answer_text = ""
                logger.info("Stream %d finished", received.stream_id)
                self.stream = None

    def _handle_failure(self, failed: StreamFailed) -> None:
        if not self._is_live(failed.stream_id):
            return
        self.answer_text = ""
        self.stream = None
        self.notifications.error(f"Backend error: {failed.error_message}")

    async def close(self) -> None:
        """Cancel the live stream, if any, and wait for its task to finish."""
        stream = self.stream
        if stream is None:
            return
        self.stream = None
        stream.stop()
        stream.task.cancel()
        await asyncio.gather(stream.task, return_exceptions=True)
