"""Modal (vim-style) interpreter for the prompt editor.

``Prompt`` turns ``KeyPress`` values into ``TextBuffer`` edits according to
the current ``Mode``. Two-key commands such as ``dd`` and ``gg`` are
recognised through ``previous_key``, the identifier of the last key
handled. Every key is recorded, including the second key of a pair, so
``ddd`` deletes two lines.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

from parley.app.clipboard import Clipboard
from parley.errors import ClipboardError
from parley.tui.box import DEFAULT, GREEN, YELLOW, BorderType
from parley.tui.buffer import TextBuffer
from parley.tui.keys import Key, KeyPress
from parley.tui.utils import split_by_width

logger = logging.getLogger(__name__)

MAX_HEIGHT_RATIO = 0.4


class Mode(Enum):
    NORMAL = "NORMAL"
    INSERT = "INSERT"
    VISUAL = "VISUAL"


# Arrow keys mirror their hjkl equivalents in Normal and Visual mode.
_ARROWS = {Key.left: "h", Key.down: "j", Key.up: "k", Key.right: "l"}

# Second key of a ``d`` pair mapped to the buffer deletion it triggers.
_DELETE_MOTIONS = {
    "d": TextBuffer.delete_current_line,
    "w": TextBuffer.delete_word_forward,
    "b": TextBuffer.delete_word_backward,
    "$": TextBuffer.delete_to_line_end,
    "0": TextBuffer.delete_to_line_start,
}


class Prompt:
    def __init__(
        self,
        buffer: TextBuffer | None = None,
        *,
        on_warning: Callable[[str], None] | None = None,
    ) -> None:
        self.buffer = buffer if buffer is not None else TextBuffer()
        self.on_warning = on_warning
        self.mode = Mode.NORMAL
        self.previous_key: str | None = None

    def handle_key(self, key: KeyPress, clipboard: Clipboard | None = None) -> None:
        """Apply one key press in the current mode and update ``previous_key``."""
        if self.mode is Mode.INSERT:
            self._handle_insert(key)
            self.previous_key = key.id
            return

        self._handle_normal(key, clipboard)
        if self.mode is Mode.VISUAL and not self.buffer.has_selection:
            self.mode = Mode.NORMAL
        self.previous_key = key.id

    # ------------------------------------------------------------------
    # Insert mode
    # ------------------------------------------------------------------

    def _handle_insert(self, key: KeyPress) -> None:
        buf = self.buffer
        if key.paste is not None:
            buf.insert_str(key.paste)
        elif key.key == Key.escape and not key.has_modifier:
            self.mode = Mode.NORMAL
        elif key.key == Key.enter and not key.has_modifier:
            buf.insert_newline()
        elif key.key == Key.backspace and not key.has_modifier:
            buf.delete_char_before_cursor()
        elif key.char is not None:
            buf.insert_char(key.char)

    # ------------------------------------------------------------------
    # Normal / Visual mode
    # ------------------------------------------------------------------

    def _handle_normal(self, key: KeyPress, clipboard: Clipboard | None) -> None:
        """Handle *key* outside Insert mode."""
        if key.ctrl or key.alt or key.paste is not None:
            return

        if key.key in _ARROWS:
            if key.shift:
                return
            name = _ARROWS[key.key]
        elif key.key == Key.escape:
            name = "escape"
        else:
            name = key.char
            if name is None:
                return

        buf = self.buffer
        pending = self.previous_key
        visual = self.mode is Mode.VISUAL

        if pending == "d" and not visual and name in _DELETE_MOTIONS:
            _DELETE_MOTIONS[name](buf)
            return
        if pending == "g" and name == "g":
            buf.jump(0, 0)
            return

        match name:
            case "escape":
                self._enter_normal()
            case "i":
                self._enter_insert()
            case "v":
                if visual:
                    self._enter_normal()
                else:
                    buf.start_selection()
                    self.mode = Mode.VISUAL
            case "h":
                buf.move_left()
            case "j":
                buf.move_down()
            case "k":
                buf.move_up()
            case "l":
                buf.move_right()
            case "w":
                buf.move_word_forward()
            case "b":
                buf.move_word_backward()
            case "0" | "^":
                buf.move_line_start()
            case "$":
                buf.move_line_end()
            case "G":
                buf.move_document_end()
            case "D":
                buf.delete_to_line_end()
            case "C":
                buf.delete_to_line_end()
                self._enter_insert()
            case "x" | "d" if visual:
                buf.cut()
                self._enter_normal()
            case "x":
                buf.delete_char_at_cursor()
            case "u":
                buf.undo()
            case "a":
                buf.move_right(wrap=False)
                self._enter_insert()
            case "A":
                buf.move_line_end()
                self._enter_insert()
            case "I":
                buf.move_line_start()
                self._enter_insert()
            case "o":
                buf.move_line_end()
                buf.insert_newline()
                self._enter_insert()
            case "O":
                buf.move_line_start()
                buf.insert_newline()
                buf.move_up()
                self._enter_insert()
            case "y":
                self._yank(clipboard)
            case "p":
                self._paste(clipboard)

    def _enter_normal(self) -> None:
        self.buffer.cancel_selection()
        self.mode = Mode.NORMAL

    def _enter_insert(self) -> None:
        self.buffer.cancel_selection()
        self.mode = Mode.INSERT

    def _yank(self, clipboard: Clipboard | None) -> None:
        text = self.buffer.copy()
        self.mode = Mode.NORMAL
        if clipboard is None:
            return
        try:
            clipboard.set_text(text)
        except ClipboardError as e:
            logger.debug("Clipboard copy failed: %s", e)

    def _paste(self, clipboard: Clipboard | None) -> None:
        """Paste the register, or the clipboard when the register is empty.

        Either source replaces the selection. A warning is reported when
        neither has any text.
        """
        if self.buffer.paste():
            return
        if clipboard is None:
            self._warn("Nothing to paste")
            return
        try:
            text = clipboard.get_text()
        except ClipboardError as e:
            logger.debug("Clipboard paste failed: %s", e)
            self._warn(f"Clipboard unavailable: {e}")
            return
        if not self.buffer.paste(text):
            self._warn("Nothing to paste")

    def _warn(self, message: str) -> None:
        if self.on_warning is not None:
            self.on_warning(message)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def height(self, width: int, max_height: int) -> int:
        """Rows the prompt pane needs at *width*, borders included.

        Capped at 40% of *max_height* but never below three rows.
        """
        inner = max(1, width - 2)
        wrapped = sum(len(split_by_width(line, inner)) for line in self.buffer.lines)
        cap = max(3, int(max_height * MAX_HEIGHT_RATIO))
        return min(wrapped + 2, cap)

    def border(self, focused: bool) -> tuple[BorderType, str]:
        """Border style and colour for the pane in the current mode."""
        border = BorderType.THICK if focused else BorderType.ROUNDED
        if self.mode is Mode.INSERT:
            return border, GREEN
        if self.mode is Mode.VISUAL:
            return border, YELLOW
        return border, DEFAULT

    @property
    def title(self) -> str:
        return f" Prompt [{self.mode.value}] "
