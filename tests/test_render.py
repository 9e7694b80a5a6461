"""Tests for parley.app.render -- full-screen frames from App state."""

from __future__ import annotations

from parley.ai.backends.echo import EchoBackend
from parley.app.bus import EventBus, Resize
from parley.app.bus import Key as KeyEvent
from parley.app.render import render_frame
from parley.app.state import App, Focus
from parley.tui.keys import Key, KeyPress
from parley.tui.utils import strip_ansi, visible_width


def make_app() -> App:
    return App(EchoBackend(delay=0), EventBus())


def press(app: App, *keys: str | KeyPress) -> None:
    for key in keys:
        app.dispatch(KeyEvent(key if isinstance(key, KeyPress) else KeyPress(key)))


def plain(lines: list[str]) -> list[str]:
    return [strip_ansi(line) for line in lines]


class TestLayout:
    """Chat pane above, prompt pane below."""

    def test_frame_fills_terminal(self) -> None:
        frame = render_frame(make_app(), 40, 12)
        assert len(frame.lines) == 12
        assert all(visible_width(line) == 40 for line in frame.lines)

    def test_pane_titles(self) -> None:
        text = plain(render_frame(make_app(), 40, 12).lines)
        assert " Chat " in text[0]
        assert " Prompt [NORMAL] " in text[9]

    def test_empty_size(self) -> None:
        assert render_frame(make_app(), 0, 0).lines == []

    def test_transcript_shown(self) -> None:
        app = make_app()
        app.transcript = ["👤 : hello there\n"]
        text = "\n".join(plain(render_frame(app, 40, 12).lines))
        assert "hello there" in text

    def test_streaming_answer_shown(self) -> None:
        app = make_app()
        app.transcript = ["👤 : hi\n"]
        assert app.chat_text() == "👤 : hi\n"
        app.stream = object()  # type: ignore[assignment]
        app.answer_text = "partial"
        assert app.chat_text().endswith("🤖: partial")


class TestCursor:
    """Hardware cursor only while typing in the prompt."""

    def test_no_cursor_in_normal_mode(self) -> None:
        assert render_frame(make_app(), 40, 12).cursor is None

    def test_cursor_follows_insert_position(self) -> None:
        app = make_app()
        press(app, "i", "a", "b")
        # 9 chat rows, then the prompt border.
        assert render_frame(app, 40, 12).cursor == (10, 3)

    def test_no_cursor_when_chat_focused(self) -> None:
        app = make_app()
        press(app, KeyPress(Key.tab), "i")
        assert app.focus is Focus.CHAT
        assert render_frame(app, 40, 12).cursor is None

    def test_prompt_grows_with_content(self) -> None:
        app = make_app()
        press(app, "i", "a", KeyPress(Key.enter), "b")
        frame = render_frame(app, 40, 20)
        text = plain(frame.lines)
        assert " Prompt [INSERT] " in text[16]
        assert frame.cursor == (18, 2)


class TestChatScroll:
    """Scroll offsets are clamped by App, never by the renderer."""

    def test_scroll_clamped_to_content(self) -> None:
        app = make_app()
        app.dispatch(Resize(40, 12))
        app.transcript = [f"line {i}\n" for i in range(30)]
        press(app, KeyPress(Key.tab))
        bottom = app.chat_scroll
        assert 0 < bottom < 1000
        press(app, "j", "j")
        assert app.chat_scroll == bottom
        press(app, "k")
        assert app.chat_scroll == bottom - 1
        press(app, "g")
        text = plain(render_frame(app, 40, 12).lines)
        assert "line 0" in text[1]

    def test_render_does_not_modify_scroll(self) -> None:
        app = make_app()
        app.transcript = [f"line {i}\n" for i in range(30)]
        press(app, KeyPress(Key.tab))
        app.chat_scroll = 10**6
        text = plain(render_frame(app, 40, 12).lines)
        assert app.chat_scroll == 10**6
        assert "line 29" in "\n".join(text)

    def test_history_preview_scroll_untouched_by_render(self) -> None:
        app = make_app()
        app.history.archive(app.conversation, [f"entry {i}\n" for i in range(40)])
        press(app, KeyPress("r", ctrl=True))
        app.history_preview_scroll = 500
        render_frame(app, 60, 20)
        assert app.history_preview_scroll == 500

    def test_history_preview_scroll_clamped_by_app(self) -> None:
        app = make_app()
        app.dispatch(Resize(60, 20))
        app.history.archive(app.conversation, ["short\n"])
        press(app, KeyPress("r", ctrl=True), KeyPress(Key.tab), "j", "j", "j")
        assert app.history_preview_scroll == 0


class TestOverlays:
    """Help, history and notifications drawn over the panes."""

    def test_help_popup(self) -> None:
        app = make_app()
        press(app, "?")
        text = "\n".join(plain(render_frame(app, 60, 40).lines))
        assert " Help " in text
        assert "ctrl+t" in text

    def test_empty_history(self) -> None:
        app = make_app()
        press(app, KeyPress("r", ctrl=True))
        text = "\n".join(plain(render_frame(app, 60, 20).lines))
        assert "History is empty" in text

    def test_empty_history_truncated_when_narrow(self) -> None:
        app = make_app()
        press(app, KeyPress("r", ctrl=True))
        text = "\n".join(plain(render_frame(app, 30, 20).lines))
        assert "History i…" in text

    def test_history_lists_titles_and_preview(self) -> None:
        app = make_app()
        app.conversation.add_user("first question")
        app.history.archive(app.conversation, ["👤 : first question\n", "🤖: the answer\n"])
        press(app, KeyPress("r", ctrl=True))
        text = "\n".join(plain(render_frame(app, 80, 20).lines))
        assert "first question" in text
        assert "the answer" in text

    def test_notification_top_right(self) -> None:
        app = make_app()
        app.notifications.info("saved")
        lines = plain(render_frame(app, 40, 12).lines)
        assert lines[1].endswith("│saved│")
