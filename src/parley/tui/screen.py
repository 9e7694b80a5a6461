"""Full-screen differential renderer.

Each call to ``Screen.draw`` receives a complete frame. Only rows that
differ from the previous frame are rewritten; a change in terminal size
forces a full redraw. The frame is written in a single ``terminal.write``
so the terminal never shows a half-painted screen.
"""

from __future__ import annotations

from dataclasses import dataclass

from parley.tui.terminal import Terminal
from parley.tui.utils import fit_to_width

_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_CLEAR_SCREEN = "\x1b[2J"
_CLEAR_LINE_RIGHT = "\x1b[K"
_MOVE_FMT = "\x1b[{};{}H"


@dataclass
class Frame:
    """Rows of styled text plus an optional hardware cursor position."""

    lines: list[str]
    cursor: tuple[int, int] | None = None


class Screen:
    def __init__(self, terminal: Terminal) -> None:
        self.terminal = terminal
        self._previous_lines: list[str] = []
        self._previous_size: tuple[int, int] = (0, 0)
        self._full_redraw_count = 0

    @property
    def full_redraws(self) -> int:
        return self._full_redraw_count

    def invalidate(self) -> None:
        """Forget the previous frame so the next draw repaints everything."""
        self._previous_lines = []
        self._previous_size = (0, 0)

    def draw(self, frame: Frame) -> None:
        columns = self.terminal.columns
        rows = self.terminal.rows
        if columns <= 0 or rows <= 0:
            return

        lines = [fit_to_width(line, columns) for line in frame.lines[:rows]]
        lines.extend(" " * columns for _ in range(rows - len(lines)))

        out: list[str] = [_HIDE_CURSOR]
        force_full = (columns, rows) != self._previous_size
        if force_full:
            self._full_redraw_count += 1
            out.append(_CLEAR_SCREEN)

        for i, line in enumerate(lines):
            previous = self._previous_lines[i] if i < len(self._previous_lines) and not force_full else None
            if line == previous:
                continue
            out.append(_MOVE_FMT.format(i + 1, 1))
            out.append(line)
            out.append(_CLEAR_LINE_RIGHT)

        if frame.cursor is not None:
            row, col = frame.cursor
            row = max(0, min(row, rows - 1))
            col = max(0, min(col, columns - 1))
            out.append(_MOVE_FMT.format(row + 1, col + 1))
            out.append(_SHOW_CURSOR)

        self._previous_lines = lines
        self._previous_size = (columns, rows)
        self.terminal.write("".join(out))
