"""Multi-line text buffer with cursor, selection, undo and a yank register.

The buffer is a plain in-memory model; it knows nothing about modes or
keys. Columns are code-point offsets into a line, but left/right motions
and single-character deletes step over whole grapheme clusters.

Every mutating operation takes an undo snapshot before it changes anything
and is a silent no-op at document boundaries. Mutations other than
``paste`` and ``cut`` drop the selection, since its anchor may no longer
point at the same text.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import grapheme

from parley.tui.undo_stack import DEFAULT_MAX_DEPTH, UndoStack

Position = tuple[int, int]


@dataclass
class BufferState:
    lines: list[str] = field(default_factory=lambda: [""])
    cursor_line: int = 0
    cursor_col: int = 0


def _grapheme_len_before(line: str, col: int) -> int:
    last = ""
    for g in grapheme.graphemes(line[:col]):
        last = g
    return len(last)


def _grapheme_len_after(line: str, col: int) -> int:
    return len(next(iter(grapheme.graphemes(line[col:])), ""))


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


class TextBuffer:
    """Editable multi-line text with a single-slot yank register."""

    def __init__(self, text: str = "", *, undo_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._state = BufferState()
        self._undo_stack: UndoStack[BufferState] = UndoStack(undo_depth)
        self._anchor: Position | None = None
        self._register = ""
        if text:
            self._state.lines = _normalize_newlines(text).split("\n")

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def lines(self) -> list[str]:
        return list(self._state.lines)

    @property
    def text(self) -> str:
        return "\n".join(self._state.lines)

    @property
    def cursor(self) -> Position:
        return (self._state.cursor_line, self._state.cursor_col)

    @property
    def register(self) -> str:
        """Text held by the yank register."""
        return self._register

    @property
    def has_selection(self) -> bool:
        return self._anchor is not None

    @property
    def can_undo(self) -> bool:
        return self._undo_stack.length > 0

    def is_empty(self) -> bool:
        return self._state.lines == [""]

    def _current_line(self) -> str:
        return self._state.lines[self._state.cursor_line]

    def _last_line(self) -> int:
        return len(self._state.lines) - 1

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _push_undo_snapshot(self) -> None:
        self._undo_stack.push(self._state)

    def _check(self) -> None:
        s = self._state
        assert s.lines, "buffer must hold at least one line"
        assert 0 <= s.cursor_line < len(s.lines), f"cursor line {s.cursor_line} out of range"
        assert 0 <= s.cursor_col <= len(s.lines[s.cursor_line]), f"cursor col {s.cursor_col} out of range"
        if self._anchor is not None:
            line, col = self._anchor
            assert 0 <= line < len(s.lines) and 0 <= col <= len(s.lines[line]), "selection anchor out of range"

    def _set_cursor(self, line: int, col: int) -> None:
        s = self._state
        s.cursor_line = max(0, min(line, len(s.lines) - 1))
        s.cursor_col = max(0, min(col, len(s.lines[s.cursor_line])))

    def _text_between(self, start: Position, end: Position) -> str:
        (sl, sc), (el, ec) = start, end
        lines = self._state.lines
        if sl == el:
            return lines[sl][sc:ec]
        parts = [lines[sl][sc:], *lines[sl + 1 : el], lines[el][:ec]]
        return "\n".join(parts)

    def _delete_between(self, start: Position, end: Position) -> str:
        """Remove the text in ``[start, end)`` and put the cursor at *start*."""
        removed = self._text_between(start, end)
        (sl, sc), (el, ec) = start, end
        lines = self._state.lines
        lines[sl : el + 1] = [lines[sl][:sc] + lines[el][ec:]]
        self._set_cursor(sl, sc)
        return removed

    def _insert_text_at_cursor(self, text: str) -> None:
        s = self._state
        line = self._current_line()
        before, after = line[: s.cursor_col], line[s.cursor_col :]
        segments = text.split("\n")

        if len(segments) == 1:
            s.lines[s.cursor_line] = before + text + after
            s.cursor_col += len(text)
            return

        new_lines = [before + segments[0], *segments[1:-1], segments[-1] + after]
        s.lines[s.cursor_line : s.cursor_line + 1] = new_lines
        s.cursor_line += len(segments) - 1
        s.cursor_col = len(segments[-1])

    def _join_with_next_line(self) -> None:
        s = self._state
        s.lines[s.cursor_line : s.cursor_line + 2] = [s.lines[s.cursor_line] + s.lines[s.cursor_line + 1]]

    def _join_with_previous_line(self) -> None:
        s = self._state
        prev_len = len(s.lines[s.cursor_line - 1])
        s.lines[s.cursor_line - 1 : s.cursor_line + 1] = [s.lines[s.cursor_line - 1] + s.lines[s.cursor_line]]
        s.cursor_line -= 1
        s.cursor_col = prev_len

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    def insert_char(self, c: str) -> None:
        if not c:
            return
        if c == "\n":
            self.insert_newline()
            return
        self._push_undo_snapshot()
        self._anchor = None
        self._insert_text_at_cursor(c)
        self._check()

    def insert_str(self, text: str) -> None:
        """Insert *text* verbatim; embedded newlines split lines."""
        text = _normalize_newlines(text)
        if not text:
            return
        self._push_undo_snapshot()
        self._anchor = None
        self._insert_text_at_cursor(text)
        self._check()

    def insert_newline(self) -> None:
        self._push_undo_snapshot()
        self._anchor = None
        self._insert_text_at_cursor("\n")
        self._check()

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete_char_before_cursor(self) -> None:
        s = self._state
        if s.cursor_col == 0 and s.cursor_line == 0:
            return
        self._push_undo_snapshot()
        self._anchor = None
        if s.cursor_col > 0:
            line = self._current_line()
            width = _grapheme_len_before(line, s.cursor_col)
            s.lines[s.cursor_line] = line[: s.cursor_col - width] + line[s.cursor_col :]
            s.cursor_col -= width
        else:
            self._join_with_previous_line()
        self._check()

    def delete_char_at_cursor(self) -> None:
        s = self._state
        line = self._current_line()
        if s.cursor_col >= len(line) and s.cursor_line == self._last_line():
            return
        self._push_undo_snapshot()
        self._anchor = None
        if s.cursor_col < len(line):
            width = _grapheme_len_after(line, s.cursor_col)
            s.lines[s.cursor_line] = line[: s.cursor_col] + line[s.cursor_col + width :]
        else:
            self._join_with_next_line()
        self._check()

    def delete_word_forward(self) -> None:
        """Delete up to the start of the next word (``dw``).

        At the end of a line the next line is joined instead.
        """
        s = self._state
        line = self._current_line()
        col = s.cursor_col
        if col >= len(line):
            if s.cursor_line < self._last_line():
                self._push_undo_snapshot()
                self._anchor = None
                self._join_with_next_line()
                self._check()
            return

        end = col
        while end < len(line) and not line[end].isspace():
            end += 1
        while end < len(line) and line[end].isspace():
            end += 1

        self._push_undo_snapshot()
        self._anchor = None
        self._register = self._delete_between((s.cursor_line, col), (s.cursor_line, end))
        self._check()

    def delete_word_backward(self) -> None:
        """Delete back to the start of the previous word (``db``)."""
        s = self._state
        col = s.cursor_col
        if col == 0:
            if s.cursor_line > 0:
                self._push_undo_snapshot()
                self._anchor = None
                self._join_with_previous_line()
                self._check()
            return

        line = self._current_line()
        start = col
        while start > 0 and line[start - 1].isspace():
            start -= 1
        while start > 0 and not line[start - 1].isspace():
            start -= 1

        self._push_undo_snapshot()
        self._anchor = None
        self._register = self._delete_between((s.cursor_line, start), (s.cursor_line, col))
        self._check()

    def delete_to_line_end(self) -> None:
        s = self._state
        if s.cursor_col >= len(self._current_line()):
            return
        self._push_undo_snapshot()
        self._anchor = None
        end = (s.cursor_line, len(self._current_line()))
        self._register = self._delete_between(self.cursor, end)
        self._check()

    def delete_to_line_start(self) -> None:
        s = self._state
        if s.cursor_col == 0:
            return
        self._push_undo_snapshot()
        self._anchor = None
        self._register = self._delete_between((s.cursor_line, 0), self.cursor)
        self._check()

    def delete_current_line(self) -> None:
        """Remove the cursor's line (``dd``); the line text is yanked."""
        if self.is_empty():
            return
        s = self._state
        self._push_undo_snapshot()
        self._anchor = None
        self._register = s.lines[s.cursor_line]
        if len(s.lines) == 1:
            s.lines = [""]
        else:
            del s.lines[s.cursor_line]
        self._set_cursor(s.cursor_line, 0)
        self._check()

    # ------------------------------------------------------------------
    # Cursor motions
    # ------------------------------------------------------------------

    def move_left(self) -> None:
        s = self._state
        if s.cursor_col > 0:
            s.cursor_col -= _grapheme_len_before(self._current_line(), s.cursor_col)
        elif s.cursor_line > 0:
            s.cursor_line -= 1
            s.cursor_col = len(self._current_line())
        self._check()

    def move_right(self, *, wrap: bool = True) -> None:
        s = self._state
        line = self._current_line()
        if s.cursor_col < len(line):
            s.cursor_col += _grapheme_len_after(line, s.cursor_col)
        elif wrap and s.cursor_line < self._last_line():
            s.cursor_line += 1
            s.cursor_col = 0
        self._check()

    def move_up(self) -> None:
        s = self._state
        if s.cursor_line > 0:
            self._set_cursor(s.cursor_line - 1, s.cursor_col)
        self._check()

    def move_down(self) -> None:
        s = self._state
        if s.cursor_line < self._last_line():
            self._set_cursor(s.cursor_line + 1, s.cursor_col)
        self._check()

    def move_word_forward(self) -> None:
        s = self._state
        line = self._current_line()
        col = s.cursor_col
        if col >= len(line):
            if s.cursor_line < self._last_line():
                s.cursor_line += 1
                nxt = self._current_line()
                s.cursor_col = len(nxt) - len(nxt.lstrip())
            self._check()
            return
        while col < len(line) and not line[col].isspace():
            col += 1
        while col < len(line) and line[col].isspace():
            col += 1
        s.cursor_col = col
        self._check()

    def move_word_backward(self) -> None:
        s = self._state
        col = s.cursor_col
        if col == 0:
            if s.cursor_line > 0:
                s.cursor_line -= 1
                s.cursor_col = len(self._current_line())
            self._check()
            return
        line = self._current_line()
        while col > 0 and line[col - 1].isspace():
            col -= 1
        while col > 0 and not line[col - 1].isspace():
            col -= 1
        s.cursor_col = col
        self._check()

    def move_line_start(self) -> None:
        self._state.cursor_col = 0
        self._check()

    def move_line_end(self) -> None:
        self._state.cursor_col = len(self._current_line())
        self._check()

    def move_document_start(self) -> None:
        self._set_cursor(0, 0)
        self._check()

    def move_document_end(self) -> None:
        self._set_cursor(self._last_line(), self._state.cursor_col)
        self._check()

    def jump(self, line: int, col: int) -> None:
        """Move to ``(line, col)``, clamped to the buffer."""
        self._set_cursor(line, col)
        self._check()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def start_selection(self) -> None:
        self._anchor = self.cursor

    def cancel_selection(self) -> None:
        self._anchor = None

    def selection_range(self) -> tuple[Position, Position] | None:
        """Return the selection as ``(start, end)`` in document order."""
        if self._anchor is None:
            return None
        return (min(self._anchor, self.cursor), max(self._anchor, self.cursor))

    def selected_text(self) -> str:
        rng = self.selection_range()
        return self._text_between(*rng) if rng else ""

    # ------------------------------------------------------------------
    # Register operations
    # ------------------------------------------------------------------

    def copy(self) -> str:
        """Yank the selection, or the current line when nothing is selected."""
        text = self.selected_text() or self._current_line()
        self._register = text
        self._anchor = None
        return text

    def cut(self) -> str:
        """Remove the selection (or the current line) into the register."""
        rng = self.selection_range()
        if rng is None or rng[0] == rng[1]:
            self._anchor = None
            text = self._current_line()
            self.delete_current_line()
            self._register = text
            return text

        self._push_undo_snapshot()
        self._anchor = None
        self._register = self._delete_between(*rng)
        self._check()
        return self._register

    def paste(self, text: str | None = None) -> bool:
        """Insert *text* (the register by default) at the cursor, replacing any selection.

        Returns ``False`` without touching the buffer when there is nothing
        to insert, so callers can fall back to another clipboard.
        """
        if text is None:
            text = self._register
        text = _normalize_newlines(text)
        if not text:
            return False
        self._push_undo_snapshot()
        rng = self.selection_range()
        self._anchor = None
        if rng is not None:
            self._delete_between(*rng)
        self._insert_text_at_cursor(text)
        self._check()
        return True

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        snapshot = self._undo_stack.pop()
        if snapshot is None:
            return False
        self._state = snapshot
        self._anchor = None
        self._check()
        return True

    def set_text(self, text: str) -> None:
        """Replace the whole content (undoable); the cursor goes to the end."""
        self._push_undo_snapshot()
        self._anchor = None
        self._state.lines = _normalize_newlines(text).split("\n")
        self._set_cursor(self._last_line(), len(self._state.lines[-1]))
        self._check()

    def clear(self) -> None:
        """Reset to one empty line and forget the undo history. The register survives."""
        self._state = BufferState()
        self._undo_stack.clear()
        self._anchor = None
