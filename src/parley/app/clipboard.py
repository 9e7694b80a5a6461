"""System clipboard access."""

from __future__ import annotations

from typing import Protocol

import pyperclip

from parley.errors import ClipboardError


class Clipboard(Protocol):
    def get_text(self) -> str: ...

    def set_text(self, text: str) -> None: ...


class PyperclipClipboard:
    """Clipboard backed by ``pyperclip``; failures raise ``ClipboardError``."""

    def get_text(self) -> str:
        try:
            return pyperclip.paste() or ""
        except pyperclip.PyperclipException as e:
            raise ClipboardError(str(e)) from e

    def set_text(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise ClipboardError(str(e)) from e
