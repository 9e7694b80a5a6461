"""Markdown renderer -- turns chat text into styled, wrapped terminal lines.

Parsing is done by ``markdown-it-py`` (open/close token model, inline
content in ``token.children``). Only the block types that show up in chat
answers are styled: headings, paragraphs, fenced and indented code,
lists, blockquotes and rules. Soft line breaks are kept as line breaks,
since chat text is usually written line by line.
"""

from __future__ import annotations

from dataclasses import dataclass

from markdown_it import MarkdownIt
from markdown_it.token import Token

from parley.tui.utils import visible_width, wrap_text_with_ansi

# ---------------------------------------------------------------------------
# ANSI helpers
# ---------------------------------------------------------------------------

_RESET = "\x1b[0m"
_BOLD = "\x1b[1m"
_DIM = "\x1b[2m"
_ITALIC = "\x1b[3m"
_UNDERLINE = "\x1b[4m"
_STRIKETHROUGH = "\x1b[9m"


@dataclass
class MarkdownTheme:
    """Colour / style theme for the markdown renderer."""

    heading_color: str = "\x1b[36m"
    code_fg: str = "\x1b[33m"
    inline_code_fg: str = "\x1b[33m"
    link_color: str = "\x1b[34m"
    quote_color: str = "\x1b[90m"
    rule_color: str = "\x1b[90m"


@dataclass
class _InlineStyle:
    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    link_href: str | None = None


_md_parser = MarkdownIt("commonmark").enable("strikethrough")


class Markdown:
    """Renders a markdown string to a list of terminal lines, with a width cache."""

    def __init__(self, text: str = "", *, theme: MarkdownTheme | None = None) -> None:
        self._text = text
        self._theme = theme or MarkdownTheme()
        self._cached_width: int | None = None
        self._cached_lines: list[str] | None = None

    @property
    def text(self) -> str:
        return self._text

    def set_text(self, text: str) -> None:
        if text != self._text:
            self._text = text
            self._cached_lines = None

    def render(self, width: int) -> list[str]:
        if self._cached_lines is not None and self._cached_width == width:
            return self._cached_lines

        lines = self._render_markdown(max(1, width))
        self._cached_width = width
        self._cached_lines = lines
        return lines

    # -- block-level token dispatch -----------------------------------------

    def _render_markdown(self, width: int) -> list[str]:
        if not self._text.strip():
            return []
        lines = self._render_tokens(_md_parser.parse(self._text), width)
        while lines and lines[-1] == "":
            lines.pop()
        return lines

    def _render_tokens(self, tokens: list[Token], width: int, depth: int = 0) -> list[str]:
        lines: list[str] = []
        i = 0
        n = len(tokens)

        while i < n:
            tok = tokens[i]
            t = tok.type

            if t == "heading_open":
                text = self._render_inline(tokens[i + 1])
                lines.extend(self._render_heading(text, int(tok.tag[1:] or 1), width))
                i = self._find_matching_close(tokens, i, "heading_open", "heading_close") + 1
                continue

            if t == "paragraph_open":
                text = self._render_inline(tokens[i + 1])
                lines.extend(wrap_text_with_ansi(text, width))
                if not tok.hidden:
                    lines.append("")
                i = self._find_matching_close(tokens, i, "paragraph_open", "paragraph_close") + 1
                continue

            if t in ("fence", "code_block"):
                lang = tok.info.strip() if t == "fence" else ""
                lines.extend(self._render_code_block(tok.content.rstrip("\n"), lang, width))
                i += 1
                continue

            if t in ("bullet_list_open", "ordered_list_open"):
                ordered = t == "ordered_list_open"
                close_type = "ordered_list_close" if ordered else "bullet_list_close"
                close_idx = self._find_matching_close(tokens, i, t, close_type)
                start = int(tok.attrs.get("start", 1)) if ordered else 1
                lines.extend(self._render_list(tokens[i + 1 : close_idx], ordered, width, depth, start))
                i = close_idx + 1
                continue

            if t == "blockquote_open":
                close_idx = self._find_matching_close(tokens, i, "blockquote_open", "blockquote_close")
                lines.extend(self._render_blockquote(tokens[i + 1 : close_idx], width, depth))
                i = close_idx + 1
                continue

            if t == "hr":
                lines.append(f"{self._theme.rule_color}{'─' * width}{_RESET}")
                lines.append("")
                i += 1
                continue

            if t == "html_block":
                for raw in tok.content.rstrip("\n").split("\n"):
                    lines.extend(wrap_text_with_ansi(raw, width))
                lines.append("")
                i += 1
                continue

            if t == "inline":
                lines.extend(wrap_text_with_ansi(self._render_inline(tok), width))
                i += 1
                continue

            i += 1

        return lines

    @staticmethod
    def _find_matching_close(tokens: list[Token], start: int, open_type: str, close_type: str) -> int:
        depth = 0
        for j in range(start, len(tokens)):
            if tokens[j].type == open_type:
                depth += 1
            elif tokens[j].type == close_type:
                depth -= 1
                if depth == 0:
                    return j
        return len(tokens) - 1

    # -- blocks -------------------------------------------------------------

    def _render_heading(self, text: str, level: int, width: int) -> list[str]:
        color = self._theme.heading_color
        if level == 1:
            styled = f"{color}{_BOLD}{_UNDERLINE}{text}{_RESET}"
        elif level == 2:
            styled = f"{color}{_BOLD}{text}{_RESET}"
        else:
            styled = f"{_DIM}{'#' * level}{_RESET} {color}{_BOLD}{text}{_RESET}"
        return [*wrap_text_with_ansi(styled, width), ""]

    def _render_code_block(self, code: str, lang: str, width: int) -> list[str]:
        fg = self._theme.code_fg
        lines = [f"{_DIM}```{lang}{_RESET}"]
        for code_line in code.split("\n"):
            code_line = code_line.replace("\t", "   ")
            for wrapped in wrap_text_with_ansi(code_line, max(1, width - 2)):
                lines.append(f"  {fg}{wrapped}{_RESET}")
        lines.append(f"{_DIM}```{_RESET}")
        lines.append("")
        return lines

    def _render_list(
        self,
        tokens: list[Token],
        ordered: bool,
        width: int,
        depth: int,
        start: int = 1,
    ) -> list[str]:
        lines: list[str] = []
        number = start
        i = 0
        while i < len(tokens):
            if tokens[i].type != "list_item_open":
                i += 1
                continue
            close_idx = self._find_matching_close(tokens, i, "list_item_open", "list_item_close")
            bullet = f"{number}. " if ordered else "• "
            number += 1
            indent = " " * visible_width(bullet)
            body = self._render_tokens(tokens[i + 1 : close_idx], max(1, width - len(indent)), depth + 1)
            while body and body[-1] == "":
                body.pop()
            for j, item_line in enumerate(body or [""]):
                if j == 0:
                    lines.append(bullet + item_line)
                else:
                    lines.append(indent + item_line if item_line else "")
            i = close_idx + 1
        if depth == 0:
            lines.append("")
        return lines

    def _render_blockquote(self, tokens: list[Token], width: int, depth: int) -> list[str]:
        color = self._theme.quote_color
        inner = self._render_tokens(tokens, max(1, width - 2), depth + 1)
        while inner and inner[-1] == "":
            inner.pop()
        return [*(f"{color}│{_RESET} {_ITALIC}{line}{_RESET}" for line in inner), ""]

    # -- inline rendering ---------------------------------------------------

    def _render_inline(self, tok: Token | None) -> str:
        """Render an ``inline`` token's children into a flat styled string."""
        if tok is None or tok.type != "inline":
            return ""
        if not tok.children:
            return tok.content

        theme = self._theme
        ctx = _InlineStyle()
        parts: list[str] = []

        for child in tok.children:
            ct = child.type
            if ct == "text":
                parts.append(self._styled_text(child.content, ctx))
            elif ct in ("softbreak", "hardbreak"):
                parts.append("\n")
            elif ct == "strong_open":
                ctx.bold = True
            elif ct == "strong_close":
                ctx.bold = False
            elif ct == "em_open":
                ctx.italic = True
            elif ct == "em_close":
                ctx.italic = False
            elif ct == "s_open":
                ctx.strikethrough = True
            elif ct == "s_close":
                ctx.strikethrough = False
            elif ct == "code_inline":
                parts.append(f"{theme.inline_code_fg}`{child.content}`{_RESET}")
            elif ct == "link_open":
                href = child.attrs.get("href", "")
                ctx.link_href = str(href) if href else None
            elif ct == "link_close":
                if ctx.link_href:
                    parts.append(f"{_DIM} ({ctx.link_href}){_RESET}")
                ctx.link_href = None
            elif ct == "image":
                parts.append(f"[{child.content or 'image'}]")
            elif child.content:
                parts.append(self._styled_text(child.content, ctx))

        return "".join(parts)

    def _styled_text(self, text: str, ctx: _InlineStyle) -> str:
        if not text:
            return ""
        codes: list[str] = []
        if ctx.link_href:
            codes.append(self._theme.link_color)
            codes.append(_UNDERLINE)
        if ctx.bold:
            codes.append(_BOLD)
        if ctx.italic:
            codes.append(_ITALIC)
        if ctx.strikethrough:
            codes.append(_STRIKETHROUGH)
        if not codes:
            return text
        return f"{''.join(codes)}{text}{_RESET}"
