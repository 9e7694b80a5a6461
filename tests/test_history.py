"""Tests for chat history, the archive file and the clipboard adapter."""

from __future__ import annotations

from pathlib import Path

import pyperclip
import pytest

from parley.ai.types import Conversation
from parley.app.clipboard import PyperclipClipboard
from parley.app.history import ChatHistory, ChatThread, save_transcript
from parley.errors import ArchiveError, ClipboardError


def conversation_of(*texts: str) -> Conversation:
    conversation = Conversation()
    for i, text in enumerate(texts):
        if i % 2 == 0:
            conversation.add_user(text)
        else:
            conversation.add_assistant(text)
    return conversation


class TestChatThread:
    def test_title_is_first_line_of_first_message(self) -> None:
        thread = ChatThread(conversation_of("how do I\nsort a list?", "use sorted()"))
        assert thread.title == "how do I"

    def test_empty_title(self) -> None:
        assert ChatThread(Conversation()).title == "(empty)"


class TestChatHistory:
    """Archived threads are independent copies."""

    def test_archive_copies(self) -> None:
        history = ChatHistory()
        conversation = conversation_of("hi")
        transcript = ["👤 : hi\n"]
        history.archive(conversation, transcript)

        conversation.add_assistant("later")
        transcript.append("later")
        thread = history.threads[0]
        assert len(thread.conversation.messages) == 1
        assert thread.transcript == ["👤 : hi\n"]

    def test_preview(self) -> None:
        history = ChatHistory()
        history.archive(conversation_of("a", "b"), ["👤 : a\n", "🤖: b\n"])
        assert history.preview(0) == "👤 : a\n\n🤖: b\n"
        assert history.preview(5) == ""
        assert history.preview(-1) == ""

    def test_threads_in_archive_order(self) -> None:
        history = ChatHistory()
        history.archive(conversation_of("one"), [])
        history.archive(conversation_of("two"), [])
        assert len(history) == 2
        assert [t.title for t in history.threads] == ["one", "two"]


class TestSaveTranscript:
    def test_overwrites_file(self, tmp_path: Path) -> None:
        target = tmp_path / "archive.md"
        target.write_text("old contents", encoding="utf-8")
        assert save_transcript(target, ["a\n", "b\n"]) == target
        assert target.read_text(encoding="utf-8") == "a\n\nb\n"

    def test_expands_user(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        path = save_transcript("~/chat.md", ["x"])
        assert path == tmp_path / "chat.md"
        assert path.read_text(encoding="utf-8") == "x"

    def test_unwritable_path(self, tmp_path: Path) -> None:
        with pytest.raises(ArchiveError, match="Cannot write"):
            save_transcript(tmp_path / "missing" / "dir" / "a.md", ["x"])


class TestPyperclipClipboard:
    """Adapter over pyperclip; failures become ClipboardError."""

    def test_round_trip(self, monkeypatch: pytest.MonkeyPatch) -> None:
        store: list[str] = []
        monkeypatch.setattr(pyperclip, "copy", store.append)
        monkeypatch.setattr(pyperclip, "paste", lambda: store[-1])
        clipboard = PyperclipClipboard()
        clipboard.set_text("hello")
        assert clipboard.get_text() == "hello"

    def test_failure_wrapped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def unavailable(*args):
            raise pyperclip.PyperclipException("no clipboard mechanism")

        monkeypatch.setattr(pyperclip, "paste", unavailable)
        monkeypatch.setattr(pyperclip, "copy", unavailable)
        clipboard = PyperclipClipboard()
        with pytest.raises(ClipboardError, match="no clipboard"):
            clipboard.get_text()
        with pytest.raises(ClipboardError):
            clipboard.set_text("x")
