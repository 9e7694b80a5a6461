"""StdinBuffer buffers raw input and emits complete sequences.

Stdin reads can split an escape sequence across chunks, or deliver several
keys in one chunk. Without buffering, a partial ``ESC [ A`` would be seen
as an Escape press followed by ``[`` and ``A``.
"""

from __future__ import annotations

import asyncio
from typing import Callable

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"


def _sequence_status(data: str) -> str:
    """Classify *data* as 'complete', 'incomplete' or 'not-escape'."""
    if not data.startswith(ESC):
        return "not-escape"

    if len(data) == 1:
        return "incomplete"

    after_esc = data[1:]

    # CSI: ESC [ params final
    if after_esc.startswith("["):
        if len(data) < 3:
            return "incomplete"
        return "complete" if 0x40 <= ord(data[-1]) <= 0x7E else "incomplete"

    # OSC / DCS / APC are terminated by ST (or BEL for OSC)
    if after_esc[0] in "]P_":
        if data.endswith(f"{ESC}\\") or (after_esc[0] == "]" and data.endswith("\x07")):
            return "complete"
        return "incomplete"

    # SS3: ESC O <char>
    if after_esc.startswith("O"):
        return "complete" if len(after_esc) >= 2 else "incomplete"

    # Meta key: ESC followed by a single character
    return "complete"


def extract_complete_sequences(buffer: str) -> tuple[list[str], str]:
    """Split accumulated *buffer* into complete sequences.

    Returns ``(sequences, remainder)``, where the remainder is an
    unfinished escape sequence waiting for more input.
    """
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        remaining = buffer[pos:]

        if not remaining.startswith(ESC):
            sequences.append(remaining[0])
            pos += 1
            continue

        # ESC ESC: the first one is a lone Escape press
        if len(remaining) > 1 and remaining[1] == ESC:
            sequences.append(ESC)
            pos += 1
            continue

        seq_end = 1
        while seq_end <= len(remaining):
            if _sequence_status(remaining[:seq_end]) == "complete":
                break
            seq_end += 1
        else:
            return sequences, remaining

        sequences.append(remaining[:seq_end])
        pos += seq_end

    return sequences, ""


class StdinBuffer:
    """Buffers stdin input and emits complete sequences.

    A lone trailing ``ESC`` is held for *timeout* seconds; if nothing
    follows it is flushed as an Escape key press.
    """

    def __init__(self, *, timeout: float = 0.01) -> None:
        self._buffer: str = ""
        self._timeout_handle: asyncio.TimerHandle | None = None
        self._timeout: float = timeout
        self._paste_mode: bool = False
        self._paste_buffer: str = ""

        self._on_data: Callable[[str], None] | None = None
        self._on_paste: Callable[[str], None] | None = None

    def on_data(self, callback: Callable[[str], None]) -> None:
        """Set callback for complete sequences."""
        self._on_data = callback

    def on_paste(self, callback: Callable[[str], None]) -> None:
        """Set callback for bracketed paste content."""
        self._on_paste = callback

    def _emit_data(self, data: str) -> None:
        if self._on_data:
            self._on_data(data)

    def _emit_paste(self, data: str) -> None:
        if self._on_paste:
            self._on_paste(data)

    def process(self, data: str) -> None:
        """Feed input data into the buffer."""
        self._cancel_timeout()
        self._buffer += data

        if not self._paste_mode:
            start_index = self._buffer.find(BRACKETED_PASTE_START)
            if start_index == -1:
                self._emit_sequences()
                return

            sequences, _ = extract_complete_sequences(self._buffer[:start_index])
            for sequence in sequences:
                self._emit_data(sequence)
            self._buffer = self._buffer[start_index + len(BRACKETED_PASTE_START):]
            self._paste_mode = True

        self._paste_buffer += self._buffer
        self._buffer = ""

        end_index = self._paste_buffer.find(BRACKETED_PASTE_END)
        if end_index == -1:
            return

        pasted = self._paste_buffer[:end_index]
        remaining = self._paste_buffer[end_index + len(BRACKETED_PASTE_END):]
        self._paste_mode = False
        self._paste_buffer = ""
        self._emit_paste(pasted)
        if remaining:
            self.process(remaining)

    def _emit_sequences(self) -> None:
        sequences, remainder = extract_complete_sequences(self._buffer)
        self._buffer = remainder

        for sequence in sequences:
            self._emit_data(sequence)

        if self._buffer:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                # No event loop: flush immediately
                for sequence in self.flush():
                    self._emit_data(sequence)
                return
            self._timeout_handle = loop.call_later(self._timeout, self._flush_timeout)

    def _cancel_timeout(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    def _flush_timeout(self) -> None:
        self._timeout_handle = None
        for sequence in self.flush():
            self._emit_data(sequence)

    def flush(self) -> list[str]:
        """Return whatever is buffered as a single sequence and empty the buffer."""
        self._cancel_timeout()
        if not self._buffer:
            return []
        sequences = [self._buffer]
        self._buffer = ""
        return sequences

    def clear(self) -> None:
        self._cancel_timeout()
        self._buffer = ""
        self._paste_mode = False
        self._paste_buffer = ""
