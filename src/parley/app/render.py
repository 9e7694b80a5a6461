"""Build full-screen frames from application state.

The layout is a chat pane on top and the prompt pane below it. Popups
and notifications are composited over that base in a fixed order: help,
history, notifications.
"""

from __future__ import annotations

from parley.app.layout import chat_lines, history_layout, preview_lines, split_rows
from parley.app.notifications import Notification, NotificationLevel
from parley.app.prompt import Mode
from parley.app.state import App, Focus
from parley.tui.box import DEFAULT, GREEN, RED, YELLOW, BorderType, Box, overlay
from parley.tui.buffer import Position
from parley.tui.screen import Frame
from parley.tui.utils import RESET, split_by_width, truncate_to_width, visible_width, wrap_text_with_ansi

REVERSE = "\x1b[7m"

HELP_LINES = [
    "Global",
    "  ctrl+c        quit",
    "  ctrl+t        stop the streaming answer",
    "  ctrl+n        start a new chat",
    "  ctrl+s        save the chat to the archive file",
    "  ctrl+r        show chat history",
    "",
    "Normal mode",
    "  enter         send the prompt",
    "  tab           switch focus between chat and prompt",
    "  i a A I o O   enter insert mode",
    "  v             visual selection",
    "  h j k l       move",
    "  w b 0 ^ $     word and line motions",
    "  gg G          first / last line",
    "  x dd D C      delete",
    "  dw db d$ d0   delete by motion",
    "  y p u         yank, paste, undo",
    "  ?             this help",
    "  q             quit",
    "",
    "Chat pane",
    "  j k g G       scroll",
]

_LEVEL_COLORS = {
    NotificationLevel.INFO: GREEN,
    NotificationLevel.WARNING: YELLOW,
    NotificationLevel.ERROR: RED,
}

_NOTIFICATION_MAX_WIDTH = 40


def render_frame(app: App, columns: int, rows: int) -> Frame:
    if columns <= 0 or rows <= 0:
        return Frame([])

    chat_height, prompt_height = split_rows(app.prompt, columns, rows)

    lines = _render_chat(app, columns, chat_height)
    prompt_lines, cursor = _render_prompt(app, columns, prompt_height)
    lines.extend(prompt_lines)

    if app.show_help:
        _overlay_help(lines, columns, rows)
    if app.history_open:
        _overlay_history(app, lines, columns, rows)
    _overlay_notifications(list(app.notifications), lines, columns)

    if cursor is None or app.focus is not Focus.PROMPT or app.show_help:
        return Frame(lines)
    return Frame(lines, (cursor[0] + chat_height, cursor[1]))


# ---------------------------------------------------------------------------
# Chat pane
# ---------------------------------------------------------------------------


def _render_chat(app: App, columns: int, height: int) -> list[str]:
    if height <= 0:
        return []
    focused = app.focus is Focus.CHAT
    inner_height = max(0, height - 2)
    content = chat_lines(app.chat_text(), columns)

    max_scroll = max(0, len(content) - inner_height)
    top = max(0, min(app.chat_scroll, max_scroll)) if focused else max_scroll

    box = Box(title=" Chat ", border=BorderType.THICK if focused else BorderType.ROUNDED)
    return box.render(content[top : top + inner_height], columns, height)


# ---------------------------------------------------------------------------
# Prompt pane
# ---------------------------------------------------------------------------


def _render_prompt(app: App, columns: int, height: int) -> tuple[list[str], Position | None]:
    """Return the pane lines and the cursor cell relative to the pane."""
    prompt = app.prompt
    buffer = prompt.buffer
    focused = app.focus is Focus.PROMPT
    inner_width = max(1, columns - 2)
    inner_height = max(0, height - 2)

    cursor_line, cursor_col = buffer.cursor
    selection = buffer.selection_range()
    highlight_cursor = focused and prompt.mode is not Mode.INSERT

    rows: list[str] = []
    cursor_row = 0
    cursor_x = 0
    for index, line in enumerate(buffer.lines):
        segments = split_by_width(line, inner_width)
        for seg_index, (start, segment) in enumerate(segments):
            end = start + len(segment)
            last = seg_index == len(segments) - 1
            if index == cursor_line and start <= cursor_col and (cursor_col < end or last):
                cursor_row = len(rows)
                cursor_x = min(visible_width(line[start:cursor_col]), inner_width - 1)
            spans = _line_spans(index, line, selection)
            if highlight_cursor and index == cursor_line:
                spans.append((cursor_col, cursor_col + 1))
            rows.append(_style_segment(segment, start, spans, last))

    top = max(0, cursor_row - inner_height + 1)
    border, color = prompt.border(focused)
    box = Box(title=prompt.title, border=border, color=color)
    lines = box.render(rows[top : top + inner_height], columns, height)

    cursor = None
    if prompt.mode is Mode.INSERT and inner_height > 0:
        cursor = (1 + cursor_row - top, 1 + cursor_x)
    return lines, cursor


def _line_spans(index: int, line: str, selection: tuple[Position, Position] | None) -> list[tuple[int, int]]:
    """Selected code-point range of buffer line *index*, as a list of spans."""
    if selection is None:
        return []
    (start_line, start_col), (end_line, end_col) = selection
    if not start_line <= index <= end_line:
        return []
    start = start_col if index == start_line else 0
    end = end_col if index == end_line else len(line)
    return [(start, end)] if end > start else []


def _style_segment(segment: str, offset: int, spans: list[tuple[int, int]], at_line_end: bool) -> str:
    """Render *segment* with the code points inside *spans* in reverse video.

    *offset* is the segment's position within its line. When *at_line_end*
    is set, a span starting just past the segment shows as a reversed blank.
    """
    if not spans:
        return segment
    end = offset + len(segment)

    def selected(pos: int) -> bool:
        return any(a <= pos < b for a, b in spans)

    out: list[str] = []
    active = False
    for i, ch in enumerate(segment):
        want = selected(offset + i)
        if want != active:
            out.append(REVERSE if want else RESET)
            active = want
        out.append(ch)
    if active:
        out.append(RESET)
    if at_line_end and any(a == end for a, _ in spans):
        out.append(f"{REVERSE} {RESET}")
    return "".join(out)


# ---------------------------------------------------------------------------
# Overlays
# ---------------------------------------------------------------------------


def _centered(outer: int, size: int) -> int:
    return max(0, (outer - size) // 2)


def _overlay_help(lines: list[str], columns: int, rows: int) -> None:
    width = min(columns, max(visible_width(line) for line in HELP_LINES) + 4)
    height = min(rows, len(HELP_LINES) + 2)
    content = [" " + line for line in HELP_LINES]
    block = Box(title=" Help ", border=BorderType.THICK).render(content, width, height)
    overlay(lines, block, _centered(rows, height), _centered(columns, width))


def _overlay_history(app: App, lines: list[str], columns: int, rows: int) -> None:
    layout = history_layout(columns, rows)
    if layout is None:
        return
    width, height, list_width = layout.width, layout.height, layout.list_width
    title_width = max(1, list_width - 2)

    threads = app.history.threads
    if threads:
        entries = []
        for i, thread in enumerate(threads):
            title = truncate_to_width(thread.title, title_width, ellipsis="…")
            entries.append(f"{REVERSE}{title}{RESET}" if i == app.history_index else title)
    else:
        entries = [truncate_to_width("History is empty", title_width, ellipsis="…")]

    preview = preview_lines(app.history.preview(app.history_index), layout)
    max_scroll = max(0, len(preview) - (height - 2))
    preview = preview[min(app.history_preview_scroll, max_scroll) :]

    preview_focused = app.history_preview_focused
    list_box = Box(
        title=" History ",
        border=BorderType.ROUNDED if preview_focused else BorderType.THICK,
    )
    preview_box = Box(
        title=" Preview ",
        border=BorderType.THICK if preview_focused else BorderType.ROUNDED,
    )
    left = list_box.render(entries, list_width, height)
    right = preview_box.render(preview, layout.preview_width, height)
    block = [a + b for a, b in zip(left, right)]
    overlay(lines, block, _centered(rows, height), _centered(columns, width))


def _overlay_notifications(notifications: list[Notification], lines: list[str], columns: int) -> None:
    row = 0
    for notification in notifications:
        inner = min(_NOTIFICATION_MAX_WIDTH, max(1, columns - 2))
        body = wrap_text_with_ansi(notification.message, inner)
        width = min(columns, max(visible_width(line) for line in body) + 2)
        height = len(body) + 2
        color = _LEVEL_COLORS.get(notification.level, DEFAULT)
        block = Box(border=BorderType.ROUNDED, color=color).render(body, width, height)
        overlay(lines, block, row, columns - width)
        row += height
        if row >= len(lines):
            break
