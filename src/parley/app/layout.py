"""Pane geometry shared by the renderer and the scroll offsets kept in ``App``."""

from __future__ import annotations

from dataclasses import dataclass

from parley.app.prompt import Prompt
from parley.tui.markdown import Markdown
from parley.tui.utils import wrap_text_with_ansi

HISTORY_SIZE_PERCENT = 80
HISTORY_LIST_MIN_WIDTH = 20


def split_rows(prompt: Prompt, columns: int, rows: int) -> tuple[int, int]:
    """Return ``(chat_height, prompt_height)`` for a frame of *rows* rows."""
    prompt_height = min(rows, prompt.height(columns, rows))
    return rows - prompt_height, prompt_height


def chat_lines(text: str, columns: int) -> list[str]:
    return Markdown(text).render(max(1, columns - 2))


def chat_scroll_limit(text: str, prompt: Prompt, columns: int, rows: int) -> int:
    """Largest chat offset that still fills the pane."""
    chat_height, _ = split_rows(prompt, columns, rows)
    inner_height = max(0, chat_height - 2)
    return max(0, len(chat_lines(text, columns)) - inner_height)


@dataclass(frozen=True)
class HistoryLayout:
    width: int
    height: int
    list_width: int

    @property
    def preview_width(self) -> int:
        return self.width - self.list_width


def history_layout(columns: int, rows: int) -> HistoryLayout | None:
    """Popup geometry, or ``None`` when the terminal is too small for it."""
    width = columns * HISTORY_SIZE_PERCENT // 100
    height = rows * HISTORY_SIZE_PERCENT // 100
    if width < 4 or height < 3:
        return None
    list_width = min(width // 2, max(width // 3, HISTORY_LIST_MIN_WIDTH))
    return HistoryLayout(width, height, list_width)


def preview_lines(text: str, layout: HistoryLayout) -> list[str]:
    return wrap_text_with_ansi(text, max(1, layout.preview_width - 2))


def preview_scroll_limit(text: str, columns: int, rows: int) -> int:
    layout = history_layout(columns, rows)
    if layout is None:
        return 0
    return max(0, len(preview_lines(text, layout)) - (layout.height - 2))
