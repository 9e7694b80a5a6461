"""Tests for parley.app.prompt.Prompt -- the modal key interpreter."""

from __future__ import annotations

from parley.app.prompt import Mode, Prompt
from parley.errors import ClipboardError
from parley.tui.box import DEFAULT, GREEN, YELLOW, BorderType
from parley.tui.buffer import TextBuffer
from parley.tui.keys import Key, KeyPress


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeClipboard:
    """In-memory clipboard that can be told to fail."""

    def __init__(self, text: str = "", fail: bool = False) -> None:
        self.text = text
        self.fail = fail
        self.set_calls: list[str] = []

    def get_text(self) -> str:
        if self.fail:
            raise ClipboardError("no clipboard")
        return self.text

    def set_text(self, text: str) -> None:
        if self.fail:
            raise ClipboardError("no clipboard")
        self.set_calls.append(text)
        self.text = text


def press(prompt: Prompt, *keys: str | KeyPress, clipboard: FakeClipboard | None = None) -> None:
    """Feed keys; plain strings are split into single printable keys."""
    for key in keys:
        if isinstance(key, KeyPress):
            prompt.handle_key(key, clipboard)
        else:
            for ch in key:
                prompt.handle_key(KeyPress(ch), clipboard)


ESCAPE = KeyPress(Key.escape)
ENTER = KeyPress(Key.enter)
BACKSPACE = KeyPress(Key.backspace)


def make_prompt(text: str = "", cursor: tuple[int, int] = (0, 0)) -> Prompt:
    prompt = Prompt(TextBuffer(text))
    prompt.buffer.jump(*cursor)
    return prompt


# ---------------------------------------------------------------------------
# Insert mode
# ---------------------------------------------------------------------------


class TestInsertMode:
    """Typing text in Insert mode."""

    def test_type_and_escape(self) -> None:
        prompt = Prompt()
        press(prompt, "i", "hi", ESCAPE)
        assert prompt.buffer.lines == ["hi"]
        assert prompt.mode is Mode.NORMAL
        assert prompt.buffer.cursor == (0, 2)

    def test_enter_and_backspace(self) -> None:
        prompt = Prompt()
        press(prompt, "i", "ab", ENTER, "cd", BACKSPACE)
        assert prompt.buffer.lines == ["ab", "c"]

    def test_space_inserts_blank(self) -> None:
        prompt = Prompt()
        press(prompt, "i", KeyPress(Key.space), "x")
        assert prompt.buffer.lines == [" x"]

    def test_ctrl_keys_do_not_insert(self) -> None:
        prompt = Prompt()
        press(prompt, "i", KeyPress("a", ctrl=True), KeyPress("b", alt=True))
        assert prompt.buffer.lines == [""]

    def test_bracketed_paste_inserted_verbatim(self) -> None:
        prompt = Prompt()
        press(prompt, "i", KeyPress(Key.paste, paste="one\ntwo"))
        assert prompt.buffer.lines == ["one", "two"]

    def test_normal_mode_letters_are_text(self) -> None:
        prompt = Prompt()
        press(prompt, "i", "dd")
        assert prompt.buffer.lines == ["dd"]


# ---------------------------------------------------------------------------
# Normal mode motions and edits
# ---------------------------------------------------------------------------


class TestNormalMode:
    """Single-key commands."""

    def test_hjkl(self) -> None:
        prompt = make_prompt("abc\ndef", (0, 0))
        press(prompt, "l", "j")
        assert prompt.buffer.cursor == (1, 1)
        press(prompt, "h", "k")
        assert prompt.buffer.cursor == (0, 0)

    def test_arrows_move(self) -> None:
        prompt = make_prompt("abc\ndef")
        press(prompt, KeyPress(Key.right), KeyPress(Key.down))
        assert prompt.buffer.cursor == (1, 1)

    def test_modified_arrows_ignored(self) -> None:
        prompt = make_prompt("abc\ndef")
        press(prompt, KeyPress(Key.right, shift=True), KeyPress(Key.down, ctrl=True))
        assert prompt.buffer.cursor == (0, 0)

    def test_line_motions(self) -> None:
        prompt = make_prompt("one two", (0, 2))
        press(prompt, "$")
        assert prompt.buffer.cursor == (0, 7)
        press(prompt, "0")
        assert prompt.buffer.cursor == (0, 0)
        press(prompt, "w")
        assert prompt.buffer.cursor == (0, 4)
        press(prompt, "^")
        assert prompt.buffer.cursor == (0, 0)

    def test_capital_g_goes_to_last_line(self) -> None:
        prompt = make_prompt("a\nb\nc")
        press(prompt, "G")
        assert prompt.buffer.cursor[0] == 2

    def test_x_deletes_under_cursor(self) -> None:
        prompt = make_prompt("abc", (0, 1))
        press(prompt, "x")
        assert prompt.buffer.lines == ["ac"]

    def test_capital_d_deletes_to_line_end(self) -> None:
        prompt = make_prompt("hello world", (0, 5))
        press(prompt, "D")
        assert prompt.buffer.lines == ["hello"]
        assert prompt.mode is Mode.NORMAL

    def test_capital_c_changes_to_line_end(self) -> None:
        prompt = make_prompt("hello world", (0, 5))
        press(prompt, "C", "!")
        assert prompt.buffer.lines == ["hello!"]
        assert prompt.mode is Mode.INSERT

    def test_u_undoes(self) -> None:
        prompt = make_prompt("abc", (0, 1))
        press(prompt, "x", "u")
        assert prompt.buffer.lines == ["abc"]
        assert prompt.buffer.cursor == (0, 1)

    def test_a_appends_after_cursor(self) -> None:
        prompt = make_prompt("ac", (0, 0))
        press(prompt, "a", "b")
        assert prompt.buffer.lines == ["abc"]

    def test_a_at_line_end_does_not_wrap(self) -> None:
        prompt = make_prompt("ab\ncd", (0, 2))
        press(prompt, "a", "!")
        assert prompt.buffer.lines == ["ab!", "cd"]

    def test_capital_a_and_i(self) -> None:
        prompt = make_prompt("mid", (0, 1))
        press(prompt, "A", ">", ESCAPE, "I", "<")
        assert prompt.buffer.lines == ["<mid>"]

    def test_o_opens_line_below(self) -> None:
        prompt = make_prompt("one\ntwo", (0, 1))
        press(prompt, "o", "new")
        assert prompt.buffer.lines == ["one", "new", "two"]
        assert prompt.mode is Mode.INSERT

    def test_capital_o_opens_line_above(self) -> None:
        prompt = make_prompt("one\ntwo", (1, 2))
        press(prompt, "O", "new")
        assert prompt.buffer.lines == ["one", "new", "two"]

    def test_unknown_key_is_noop(self) -> None:
        prompt = make_prompt("abc", (0, 1))
        press(prompt, "z", KeyPress("q", ctrl=True), KeyPress(Key.enter))
        assert prompt.buffer.lines == ["abc"]
        assert prompt.buffer.cursor == (0, 1)
        assert prompt.mode is Mode.NORMAL


# ---------------------------------------------------------------------------
# Two-key commands
# ---------------------------------------------------------------------------


class TestPendingKey:
    """Pairs resolved through the previous key."""

    def test_dd_deletes_line(self) -> None:
        prompt = make_prompt("abc\ndef")
        press(prompt, "dd")
        assert prompt.buffer.lines == ["def"]
        assert prompt.buffer.cursor == (0, 0)
        assert prompt.previous_key == "d"

    def test_ddd_deletes_two_lines(self) -> None:
        prompt = make_prompt("a\nb\nc")
        press(prompt, "ddd")
        assert prompt.buffer.lines == ["c"]
        assert prompt.previous_key == "d"

    def test_every_d_after_the_first_deletes_a_line(self) -> None:
        prompt = make_prompt("a\nb\nc\nd")
        press(prompt, "dddd")
        assert prompt.buffer.lines == ["d"]

    def test_pending_key_recorded_after_every_key(self) -> None:
        prompt = make_prompt("abc")
        press(prompt, "gg")
        assert prompt.previous_key == "g"
        press(prompt, ESCAPE)
        assert prompt.previous_key == "escape"

    def test_gg_jumps_to_start(self) -> None:
        prompt = make_prompt("abc\ndef", (1, 2))
        press(prompt, "gg")
        assert prompt.buffer.cursor == (0, 0)

    def test_g_x_g_does_not_jump(self) -> None:
        prompt = make_prompt("abc\ndef", (1, 1))
        press(prompt, "gxg")
        assert prompt.buffer.cursor == (1, 1)
        assert prompt.buffer.lines == ["abc", "df"]

    def test_d_x_d_does_not_delete_line(self) -> None:
        prompt = make_prompt("abc\ndef", (0, 0))
        press(prompt, "dxd")
        assert prompt.buffer.lines == ["bc", "def"]

    def test_dw_deletes_word_without_moving(self) -> None:
        prompt = make_prompt("one two three", (0, 4))
        press(prompt, "dw")
        assert prompt.buffer.lines == ["one three"]
        assert prompt.buffer.cursor == (0, 4)

    def test_db_deletes_previous_word(self) -> None:
        prompt = make_prompt("one two three", (0, 8))
        press(prompt, "db")
        assert prompt.buffer.lines == ["one three"]

    def test_d_dollar_and_d_zero(self) -> None:
        prompt = make_prompt("abcdef", (0, 3))
        press(prompt, "d$")
        assert prompt.buffer.lines == ["abc"]
        press(prompt, "h", "d0")
        assert prompt.buffer.lines == ["c"]

    def test_pair_across_escape_not_honoured(self) -> None:
        prompt = make_prompt("abc\ndef")
        press(prompt, "d", ESCAPE, "d")
        assert prompt.buffer.lines == ["abc", "def"]


# ---------------------------------------------------------------------------
# Visual mode
# ---------------------------------------------------------------------------


class TestVisualMode:
    """Selections driven from Normal mode."""

    def test_v_toggles(self) -> None:
        prompt = make_prompt("abc")
        press(prompt, "v")
        assert prompt.mode is Mode.VISUAL
        assert prompt.buffer.has_selection
        press(prompt, "v")
        assert prompt.mode is Mode.NORMAL
        assert not prompt.buffer.has_selection

    def test_escape_cancels_selection(self) -> None:
        prompt = make_prompt("abc")
        press(prompt, "v", "l", ESCAPE)
        assert prompt.mode is Mode.NORMAL
        assert not prompt.buffer.has_selection

    def test_motions_extend_selection(self) -> None:
        prompt = make_prompt("hello world")
        press(prompt, "v", "w")
        assert prompt.buffer.selected_text() == "hello "

    def test_d_cuts_selection(self) -> None:
        prompt = make_prompt("hello world")
        press(prompt, "v", "w", "d")
        assert prompt.buffer.lines == ["world"]
        assert prompt.buffer.register == "hello "
        assert prompt.mode is Mode.NORMAL

    def test_visual_cut_then_d_deletes_line(self) -> None:
        prompt = make_prompt("hello world\nnext")
        press(prompt, "v", "w", "d")
        assert prompt.buffer.lines == ["world", "next"]
        assert prompt.previous_key == "d"
        press(prompt, "d")
        assert prompt.buffer.lines == ["next"]

    def test_x_cuts_selection(self) -> None:
        prompt = make_prompt("abcdef")
        press(prompt, "v", "ll", "x")
        assert prompt.buffer.lines == ["cdef"]

    def test_i_leaves_visual(self) -> None:
        prompt = make_prompt("abc")
        press(prompt, "v", "l", "i")
        assert prompt.mode is Mode.INSERT
        assert not prompt.buffer.has_selection


# ---------------------------------------------------------------------------
# Yank and paste
# ---------------------------------------------------------------------------


class TestYankPaste:
    """Register and clipboard interaction."""

    def test_yank_selection_then_paste(self) -> None:
        prompt = make_prompt("abcdef")
        clip = FakeClipboard()
        press(prompt, "v", "lll", "y", clipboard=clip)
        assert prompt.mode is Mode.NORMAL
        assert prompt.buffer.register == "abc"
        assert clip.set_calls == ["abc"]

        before = len(prompt.buffer.text)
        press(prompt, "p", clipboard=clip)
        assert len(prompt.buffer.text) == before + 3
        assert prompt.buffer.lines == ["abcabcdef"]

    def test_yank_line_without_selection(self) -> None:
        prompt = make_prompt("first\nsecond", (1, 2))
        press(prompt, "y")
        assert prompt.buffer.register == "second"

    def test_yank_swallows_clipboard_failure(self) -> None:
        prompt = make_prompt("abc")
        press(prompt, "y", clipboard=FakeClipboard(fail=True))
        assert prompt.buffer.register == "abc"
        assert prompt.mode is Mode.NORMAL

    def test_paste_falls_back_to_clipboard(self) -> None:
        prompt = make_prompt("xy", (0, 1))
        press(prompt, "p", clipboard=FakeClipboard("CLIP\nBOARD"))
        assert prompt.buffer.lines == ["xCLIP", "BOARDy"]

    def test_paste_clipboard_failure_is_noop(self) -> None:
        prompt = make_prompt("xy", (0, 1))
        press(prompt, "p", clipboard=FakeClipboard(fail=True))
        assert prompt.buffer.lines == ["xy"]
        assert not prompt.buffer.can_undo

    def test_paste_without_clipboard_is_noop(self) -> None:
        prompt = make_prompt("xy")
        press(prompt, "p")
        assert prompt.buffer.lines == ["xy"]

    def test_register_wins_over_clipboard(self) -> None:
        prompt = make_prompt("ab")
        clip = FakeClipboard("other")
        prompt.buffer.copy()
        press(prompt, "p", clipboard=clip)
        assert prompt.buffer.lines == ["abab"]

    def test_clipboard_paste_replaces_selection(self) -> None:
        prompt = make_prompt("hello world")
        press(prompt, "v", "ll", "p", clipboard=FakeClipboard("XY"))
        assert prompt.buffer.lines == ["XYllo world"]
        assert prompt.mode is Mode.NORMAL
        assert not prompt.buffer.has_selection

    def test_register_paste_replaces_selection(self) -> None:
        prompt = make_prompt("hello world")
        prompt.buffer.copy()
        press(prompt, "v", "ll", "p")
        assert prompt.buffer.lines == ["hello worldllo world"]


class TestPasteWarnings:
    """``p`` reports when neither register nor clipboard has text."""

    def make(self, text: str = "xy") -> tuple[Prompt, list[str]]:
        warnings: list[str] = []
        prompt = Prompt(TextBuffer(text), on_warning=warnings.append)
        return prompt, warnings

    def test_clipboard_failure_warns(self) -> None:
        prompt, warnings = self.make()
        press(prompt, "p", clipboard=FakeClipboard(fail=True))
        assert warnings == ["Clipboard unavailable: no clipboard"]
        assert prompt.buffer.lines == ["xy"]

    def test_empty_clipboard_warns(self) -> None:
        prompt, warnings = self.make()
        press(prompt, "p", clipboard=FakeClipboard(""))
        assert warnings == ["Nothing to paste"]

    def test_no_clipboard_warns(self) -> None:
        prompt, warnings = self.make()
        press(prompt, "p")
        assert warnings == ["Nothing to paste"]

    def test_successful_paste_is_silent(self) -> None:
        prompt, warnings = self.make()
        press(prompt, "p", clipboard=FakeClipboard("z"))
        assert warnings == []

    def test_yank_failure_is_silent(self) -> None:
        prompt, warnings = self.make()
        press(prompt, "y", clipboard=FakeClipboard(fail=True))
        assert warnings == []


# ---------------------------------------------------------------------------
# Layout metadata
# ---------------------------------------------------------------------------


class TestPromptLayout:
    """Height, border and title."""

    def test_height_grows_with_lines(self) -> None:
        prompt = make_prompt("a\nb\nc")
        assert prompt.height(20, 40) == 5

    def test_height_capped_at_forty_percent(self) -> None:
        prompt = make_prompt("\n".join("x" * 10))
        assert prompt.height(20, 20) == 8

    def test_height_counts_wrapped_rows(self) -> None:
        prompt = make_prompt("x" * 25)
        assert prompt.height(12, 40) == 5

    def test_border_follows_mode_and_focus(self) -> None:
        prompt = Prompt()
        assert prompt.border(True) == (BorderType.THICK, DEFAULT)
        assert prompt.border(False) == (BorderType.ROUNDED, DEFAULT)
        press(prompt, "i")
        assert prompt.border(True) == (BorderType.THICK, GREEN)
        press(prompt, ESCAPE, "v")
        assert prompt.border(True) == (BorderType.THICK, YELLOW)

    def test_title_shows_mode(self) -> None:
        prompt = Prompt()
        assert prompt.title == " Prompt [NORMAL] "
        press(prompt, "i")
        assert prompt.title == " Prompt [INSERT] "
