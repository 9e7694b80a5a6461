"""parley.tui: terminal plumbing, text buffer and rendering primitives."""

from parley.tui.box import BorderType, Box, overlay
from parley.tui.buffer import BufferState, TextBuffer
from parley.tui.keys import Key, KeyPress, parse_key
from parley.tui.markdown import Markdown, MarkdownTheme
from parley.tui.screen import Frame, Screen
from parley.tui.stdin_buffer import StdinBuffer
from parley.tui.terminal import ProcessTerminal, Terminal
from parley.tui.undo_stack import UndoStack
from parley.tui.utils import truncate_to_width, visible_width, wrap_text_with_ansi

__all__ = [
    "BorderType",
    "Box",
    "BufferState",
    "Frame",
    "Key",
    "KeyPress",
    "Markdown",
    "MarkdownTheme",
    "ProcessTerminal",
    "Screen",
    "StdinBuffer",
    "Terminal",
    "TextBuffer",
    "UndoStack",
    "overlay",
    "parse_key",
    "truncate_to_width",
    "visible_width",
    "wrap_text_with_ansi",
]
