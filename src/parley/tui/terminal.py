"""Terminal abstraction for raw-mode, full-screen stdin/stdout interaction.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal`` that
manages raw mode, the alternate screen, bracketed paste and cursor
visibility via ANSI escape sequences, and reports resizes through an
asyncio SIGWINCH handler.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
import termios
import tty
from typing import Callable, Protocol

from parley.tui.stdin_buffer import BRACKETED_PASTE_END, BRACKETED_PASTE_START, StdinBuffer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_BRACKETED_PASTE_ENABLE = "\x1b[?2004h"
_BRACKETED_PASTE_DISABLE = "\x1b[?2004l"

_ALT_SCREEN_ENABLE = "\x1b[?1049h"
_ALT_SCREEN_DISABLE = "\x1b[?1049l"

_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_CLEAR_SCREEN = "\x1b[2J\x1b[H"


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for terminal I/O operations."""

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal backed by ``sys.stdin``/``sys.stdout``.

    ``start`` must be called from inside a running event loop: stdin is
    read with ``loop.add_reader`` and SIGWINCH with ``loop.add_signal_handler``.
    """

    def __init__(self) -> None:
        self._input_handler: Callable[[str], None] | None = None
        self._resize_handler: Callable[[], None] | None = None
        self._stdin_buffer: StdinBuffer | None = None
        self._original_termios: list | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).columns
        except (ValueError, OSError):
            return 80

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).lines
        except (ValueError, OSError):
            return 24

    # -- start / stop -------------------------------------------------------

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None:
        """Enter raw mode and the alternate screen, then begin reading stdin."""
        self._input_handler = on_input
        self._resize_handler = on_resize
        self._loop = asyncio.get_running_loop()

        fd = sys.stdin.fileno()
        self._original_termios = termios.tcgetattr(fd)
        tty.setraw(fd)

        self._raw_write(_ALT_SCREEN_ENABLE + _BRACKETED_PASTE_ENABLE + _HIDE_CURSOR + _CLEAR_SCREEN)

        self._stdin_buffer = StdinBuffer(timeout=0.01)
        self._stdin_buffer.on_data(self._on_buffer_data)
        self._stdin_buffer.on_paste(self._on_buffer_paste)

        self._loop.add_reader(fd, self._on_stdin_readable)
        self._loop.add_signal_handler(signal.SIGWINCH, self._on_sigwinch)
        logger.debug("terminal started (%dx%d)", self.columns, self.rows)

    def stop(self) -> None:
        """Restore terminal state and remove all handlers. Safe to call twice."""
        if self._original_termios is None:
            return

        if self._stdin_buffer is not None:
            self._stdin_buffer.clear()
            self._stdin_buffer = None

        if self._loop is not None:
            self._loop.remove_reader(sys.stdin.fileno())
            self._loop.remove_signal_handler(signal.SIGWINCH)
            self._loop = None

        self._raw_write(_SHOW_CURSOR + _BRACKETED_PASTE_DISABLE + _ALT_SCREEN_DISABLE)

        termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, self._original_termios)
        self._original_termios = None
        self._input_handler = None
        self._resize_handler = None
        logger.debug("terminal stopped")

    # -- output -------------------------------------------------------------

    def write(self, data: str) -> None:
        self._raw_write(data)

    # -- private: stdin -----------------------------------------------------

    def _on_buffer_data(self, data: str) -> None:
        if self._input_handler is not None:
            self._input_handler(data)

    def _on_buffer_paste(self, data: str) -> None:
        # Re-wrap with bracketed paste markers so the key parser sees a paste
        if self._input_handler is not None:
            self._input_handler(BRACKETED_PASTE_START + data + BRACKETED_PASTE_END)

    def _on_stdin_readable(self) -> None:
        try:
            raw = os.read(sys.stdin.fileno(), 4096)
        except OSError:
            return
        if not raw:
            return

        data = raw.decode("utf-8", errors="replace")
        if self._stdin_buffer is not None:
            self._stdin_buffer.process(data)

    def _on_sigwinch(self) -> None:
        if self._resize_handler is not None:
            self._resize_handler()

    def _raw_write(self, data: str) -> None:
        """Write directly to stdout, bypassing buffering."""
        try:
            sys.stdout.write(data)
            sys.stdout.flush()
        except OSError:
            pass
