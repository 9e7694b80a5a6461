"""Terminal text utilities: ANSI handling, width measurement, word wrapping.

Widths are measured per grapheme cluster so that emoji, CJK and combining
sequences line up with what the terminal actually draws.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

# ---------------------------------------------------------------------------
# Regex patterns for ANSI sequences
# ---------------------------------------------------------------------------

# CSI sequences: ESC[ <params> <final byte>
_CSI_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")
# OSC sequences terminated by BEL or ST
_OSC_RE = re.compile(r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")

_STRIP_RE = re.compile(
    r"\x1b\[[0-9;?]*[A-Za-z]"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
)

RESET = "\x1b[0m"

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


def grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster."""
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        # VS16, ZWJ, skin tone modifiers and regional indicators all
        # mean an emoji presentation.
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first_cp = ord(g[0])
    if first_cp >= 0x1F000 or 0x2600 <= first_cp <= 0x27BF:
        return 2

    cat = unicodedata.category(g[0])
    if cat.startswith("M") or cat == "Cf":
        return 0
    return max(_wcwidth.wcwidth(g[0]), 0)


def strip_ansi(text: str) -> str:
    return _STRIP_RE.sub("", text)


def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*.

    ANSI sequences are ignored and tabs count as 3 columns.
    """
    if not text:
        return 0

    stripped = _STRIP_RE.sub("", text).replace("\t", "   ")
    if not stripped:
        return 0

    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(grapheme_width(g) for g in grapheme.graphemes(stripped))
    return _cache_width(stripped, total)


def extract_ansi_code(text: str, pos: int) -> tuple[str, int] | None:
    """Return ``(code, length)`` for an escape sequence at *pos*, else ``None``."""
    if pos >= len(text) or text[pos] != "\x1b":
        return None
    m = _CSI_RE.match(text, pos) or _OSC_RE.match(text, pos)
    if m is None:
        return None
    code = m.group(0)
    return code, len(code)


# ---------------------------------------------------------------------------
# SGR state tracking
# ---------------------------------------------------------------------------


class AnsiCodeTracker:
    """Track which SGR codes are active so they can be re-applied after a wrap."""

    def __init__(self) -> None:
        self._active: list[str] = []

    def process(self, code: str) -> None:
        if not code.startswith("\x1b[") or not code.endswith("m"):
            return
        params = code[2:-1]
        if params in ("", "0"):
            self._active.clear()
            return
        self._active.append(code)

    def get_active_codes(self) -> str:
        return "".join(self._active)

    def has_active_codes(self) -> bool:
        return bool(self._active)


# ---------------------------------------------------------------------------
# wrap_text_with_ansi
# ---------------------------------------------------------------------------


def wrap_text_with_ansi(text: str, width: int) -> list[str]:
    """Word-wrap *text* to *width* columns, preserving ANSI escape codes.

    Embedded newlines start a new physical line. Styling carries across
    wrapped and physical lines.
    """
    if width <= 0:
        return [text]

    result: list[str] = []
    tracker = AnsiCodeTracker()
    for physical_line in text.split("\n"):
        result.extend(_wrap_single_line(physical_line, width, tracker))
    return result


def _wrap_single_line(line: str, width: int, tracker: AnsiCodeTracker) -> list[str]:
    if not line:
        return [""]

    result_lines: list[str] = []
    current: list[str] = []
    current_width = 0
    # index in ``current`` just after the last space, and the width before it
    break_at: int | None = None

    prefix = tracker.get_active_codes()
    if prefix:
        current.append(prefix)

    def finish(parts: list[str]) -> None:
        finished = "".join(parts)
        if tracker.has_active_codes():
            finished += RESET
        result_lines.append(finished)

    i = 0
    while i < len(line):
        extracted = extract_ansi_code(line, i)
        if extracted is not None:
            code, length = extracted
            tracker.process(code)
            current.append(code)
            i += length
            continue

        ch = line[i]
        ch_text = "   " if ch == "\t" else ch
        ch_width = 3 if ch == "\t" else grapheme_width(ch)

        if current_width + ch_width > width and current_width > 0:
            if break_at is not None and ch != " ":
                head, tail = current[:break_at], current[break_at:]
                finish(head)
                current = [tracker.get_active_codes(), *tail]
                current_width = visible_width("".join(tail))
            else:
                finish(current)
                current = [tracker.get_active_codes()]
                current_width = 0
            break_at = None
            if ch == " ":
                i += 1
                continue

        current.append(ch_text)
        current_width += ch_width
        if ch == " ":
            break_at = len(current)
        i += 1

    finish(current)
    return result_lines


# ---------------------------------------------------------------------------
# truncate / pad
# ---------------------------------------------------------------------------


def truncate_to_width(
    text: str,
    max_width: int,
    ellipsis: str = "...",
    pad: bool = False,
) -> str:
    """Truncate *text* to fit within *max_width* visible columns.

    The ellipsis counts towards the width. With *pad* the result is
    right-padded with spaces to exactly *max_width*.
    """
    if max_width <= 0:
        return ""

    text_width = visible_width(text)
    if text_width <= max_width:
        if pad:
            return text + " " * (max_width - text_width)
        return text

    ellipsis_width = visible_width(ellipsis)
    target_width = max_width - ellipsis_width
    if target_width <= 0:
        return take_columns(ellipsis, max_width)

    result = take_columns(text, target_width)
    if "\x1b[" in result:
        result += RESET
    result += ellipsis

    if pad:
        result_width = visible_width(result)
        if result_width < max_width:
            result += " " * (max_width - result_width)
    return result


def take_columns(text: str, max_cols: int) -> str:
    """Return a prefix of *text* that fits in *max_cols* columns, keeping ANSI codes."""
    result: list[str] = []
    cols = 0
    i = 0
    while i < len(text):
        extracted = extract_ansi_code(text, i)
        if extracted is not None:
            code, length = extracted
            result.append(code)
            i += length
            continue
        ch = text[i]
        w = grapheme_width(ch)
        if cols + w > max_cols:
            break
        result.append(ch)
        cols += w
        i += 1
    return "".join(result)


def fit_to_width(text: str, width: int) -> str:
    """Cut or pad *text* so that it occupies exactly *width* columns."""
    if width <= 0:
        return ""
    clipped = take_columns(text, width)
    if "\x1b[" in clipped:
        clipped += RESET
    return clipped + " " * (width - visible_width(clipped))


def slice_by_column(line: str, start_col: int, length: int) -> str:
    """Extract *length* visible columns starting at *start_col* from *line*.

    Wide characters cut by either boundary are replaced with spaces.
    Styling active at *start_col* is re-applied at the front of the slice.
    """
    if length <= 0:
        return ""

    end_col = start_col + length
    tracker = AnsiCodeTracker()
    result: list[str] = []
    col = 0
    started = False
    i = 0

    while i < len(line) and col < end_col:
        extracted = extract_ansi_code(line, i)
        if extracted is not None:
            code, code_len = extracted
            if started:
                result.append(code)
            else:
                tracker.process(code)
            i += code_len
            continue

        ch = line[i]
        w = grapheme_width(ch)
        char_end = col + w

        if char_end <= start_col:
            col = char_end
            i += 1
            continue

        if not started:
            started = True
            result.append(tracker.get_active_codes())

        if col < start_col or char_end > end_col:
            result.append(" " * (min(char_end, end_col) - max(col, start_col)))
        else:
            result.append(ch)
        col = char_end
        i += 1

    text = "".join(result)
    if "\x1b[" in text:
        text += RESET
    return text


# ---------------------------------------------------------------------------
# Hard wrapping for editable text
# ---------------------------------------------------------------------------


def split_by_width(line: str, width: int) -> list[tuple[int, str]]:
    """Break plain *line* into segments of at most *width* columns.

    Returns ``(start_offset, segment)`` pairs where ``start_offset`` is the
    code-point index of the segment in *line*. Graphemes are never split.
    An empty line yields one empty segment.
    """
    if width <= 0:
        return [(0, line)]
    segments: list[tuple[int, str]] = []
    start = 0
    offset = 0
    cols = 0
    for g in grapheme.graphemes(line):
        w = grapheme_width(g)
        if cols + w > width and offset > start:
            segments.append((start, line[start:offset]))
            start = offset
            cols = 0
        cols += w
        offset += len(g)
    segments.append((start, line[start:]))
    return segments
