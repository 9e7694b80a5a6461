"""Tests for parley.tui.stdin_buffer.StdinBuffer."""

from __future__ import annotations

import asyncio

import pytest

from parley.tui.stdin_buffer import (
    BRACKETED_PASTE_END,
    BRACKETED_PASTE_START,
    ESC,
    StdinBuffer,
    extract_complete_sequences,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class Collector:
    """Collects emitted data/paste events for assertions."""

    def __init__(self) -> None:
        self.data: list[str] = []
        self.pastes: list[str] = []

    def on_data(self, d: str) -> None:
        self.data.append(d)

    def on_paste(self, d: str) -> None:
        self.pastes.append(d)


def make_buffer(timeout: float = 0.01) -> tuple[StdinBuffer, Collector]:
    buf = StdinBuffer(timeout=timeout)
    col = Collector()
    buf.on_data(col.on_data)
    buf.on_paste(col.on_paste)
    return buf, col


# ---------------------------------------------------------------------------
# Sequence splitting
# ---------------------------------------------------------------------------


class TestExtractCompleteSequences:
    """Splitting accumulated input into sequences."""

    def test_plain_characters_split(self) -> None:
        assert extract_complete_sequences("abc") == (["a", "b", "c"], "")

    def test_csi_kept_whole(self) -> None:
        assert extract_complete_sequences("x\x1b[Ay") == (["x", "\x1b[A", "y"], "")

    def test_incomplete_sequence_is_remainder(self) -> None:
        assert extract_complete_sequences("a\x1b[1;") == (["a"], "\x1b[1;")

    def test_double_escape(self) -> None:
        sequences, remainder = extract_complete_sequences(ESC + ESC + "[B")
        assert sequences == [ESC, "\x1b[B"]
        assert remainder == ""


# ---------------------------------------------------------------------------
# StdinBuffer
# ---------------------------------------------------------------------------


class TestStdinBuffer:
    """Buffering, flushing and paste handling."""

    @pytest.mark.asyncio
    async def test_split_sequence_is_joined(self) -> None:
        buf, col = make_buffer(timeout=1.0)
        buf.process("\x1b[")
        buf.process("A")
        assert col.data == ["\x1b[A"]

    def test_lone_escape_flushed_without_loop(self) -> None:
        buf, col = make_buffer()
        buf.process(ESC)
        assert col.data == [ESC]

    @pytest.mark.asyncio
    async def test_lone_escape_flushed_after_timeout(self) -> None:
        buf, col = make_buffer(timeout=0.01)
        buf.process(ESC)
        assert col.data == []
        await asyncio.sleep(0.05)
        assert col.data == [ESC]

    def test_bracketed_paste(self) -> None:
        buf, col = make_buffer()
        buf.process(f"a{BRACKETED_PASTE_START}pasted\ntext{BRACKETED_PASTE_END}b")
        assert col.data == ["a", "b"]
        assert col.pastes == ["pasted\ntext"]

    def test_paste_across_chunks(self) -> None:
        buf, col = make_buffer()
        buf.process(BRACKETED_PASTE_START + "one ")
        assert col.pastes == []
        buf.process("two" + BRACKETED_PASTE_END)
        assert col.pastes == ["one two"]

    def test_clear_discards_pending(self) -> None:
        buf, col = make_buffer()
        buf.process(BRACKETED_PASTE_START + "partial")
        buf.clear()
        buf.process("x")
        assert col.data == ["x"]
        assert col.pastes == []
