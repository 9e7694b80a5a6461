"""Bordered boxes and overlay compositing for full-screen frames.

A frame is a list of ``rows`` strings, each ``columns`` visible cells wide.
``Box`` draws a titled border around already-rendered content lines;
``overlay`` pastes a block of lines onto a frame at a position.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from parley.tui.utils import RESET, fit_to_width, slice_by_column, truncate_to_width, visible_width


class BorderType(Enum):
    ROUNDED = "rounded"
    THICK = "thick"


# (top-left, top-right, bottom-left, bottom-right, horizontal, vertical)
_BORDER_CHARS: dict[BorderType, tuple[str, str, str, str, str, str]] = {
    BorderType.ROUNDED: ("╭", "╮", "╰", "╯", "─", "│"),
    BorderType.THICK: ("┏", "┓", "┗", "┛", "━", "┃"),
}

# SGR foreground colours
GREEN = "\x1b[32m"
YELLOW = "\x1b[33m"
RED = "\x1b[31m"
DEFAULT = ""


@dataclass
class Box:
    """A border with an optional centred title."""

    title: str = ""
    border: BorderType = BorderType.ROUNDED
    color: str = DEFAULT

    def render(self, content: list[str], width: int, height: int) -> list[str]:
        """Draw *content* inside the border; it is clipped or padded to fit."""
        if width < 2 or height < 2:
            return [" " * max(0, width) for _ in range(max(0, height))]

        tl, tr, bl, br, h, v = _BORDER_CHARS[self.border]
        inner_w = width - 2
        color = self.color
        reset = RESET if color else ""

        top_fill = h * inner_w
        if self.title and inner_w >= 2:
            title = truncate_to_width(self.title, inner_w, ellipsis="…")
            title_w = visible_width(title)
            left = (inner_w - title_w) // 2
            top_fill = h * left + title + h * (inner_w - left - title_w)

        side = f"{color}{v}{reset}"
        lines = [f"{color}{tl}{top_fill}{tr}{reset}"]
        body = content[: height - 2]
        for line in body:
            lines.append(side + fit_to_width(line, inner_w) + side)
        for _ in range(height - 2 - len(body)):
            lines.append(side + " " * inner_w + side)
        lines.append(f"{color}{bl}{h * inner_w}{br}{reset}")
        return lines


def overlay(frame: list[str], block: list[str], row: int, col: int) -> None:
    """Paste *block* onto *frame* in place, with its top-left cell at ``(row, col)``."""
    for offset, block_line in enumerate(block):
        target = row + offset
        if not 0 <= target < len(frame):
            continue
        base = frame[target]
        base_width = visible_width(base)
        if col >= base_width:
            continue
        w = min(visible_width(block_line), base_width - col)
        before = slice_by_column(base, 0, col)
        after = slice_by_column(base, col + w, base_width - col - w)
        frame[target] = before + fit_to_width(block_line, w) + after
