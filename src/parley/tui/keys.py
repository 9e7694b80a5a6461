"""Keyboard input parsing for terminal applications.

Turns one complete input sequence (as emitted by ``StdinBuffer``) into a
``KeyPress``. Handles legacy xterm sequences, modified CSI sequences, the
kitty CSI-u encoding, control characters and bracketed paste.

Printable characters keep their case: typing ``D`` yields ``KeyPress("D")``
with ``shift`` unset, the same as a vi key table expects. The ``shift``
flag is only reported for named keys such as ``shift+tab`` or
``shift+up``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Key names
# ---------------------------------------------------------------------------


class Key:
    """Named key constants and modifier combinators."""

    escape = "escape"
    enter = "enter"
    tab = "tab"
    space = "space"
    backspace = "backspace"
    delete = "delete"
    insert = "insert"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"
    paste = "paste"

    @staticmethod
    def ctrl(key: str) -> str:
        return f"ctrl+{key}"

    @staticmethod
    def alt(key: str) -> str:
        return f"alt+{key}"

    @staticmethod
    def shift(key: str) -> str:
        return f"shift+{key}"


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
}

LOCK_MASK = 64 + 128

BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

# Legacy escape sequences -> key names (no modifiers)
LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[4~": "end",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1bOP": "f1",
    "\x1bOQ": "f2",
    "\x1bOR": "f3",
    "\x1bOS": "f4",
    "\x1b[15~": "f5",
    "\x1b[17~": "f6",
    "\x1b[18~": "f7",
    "\x1b[19~": "f8",
    "\x1b[20~": "f9",
    "\x1b[21~": "f10",
    "\x1b[23~": "f11",
    "\x1b[24~": "f12",
}

# Final byte of ``ESC[1;<mod><final>`` -> key name
_CSI_LETTER_KEYS: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
    "P": "f1",
    "Q": "f2",
    "R": "f3",
    "S": "f4",
}

# Number of ``ESC[<n>;<mod>~`` -> key name
_CSI_TILDE_KEYS: dict[int, str] = {
    1: "home",
    2: "insert",
    3: "delete",
    4: "end",
    5: "pageUp",
    6: "pageDown",
    15: "f5",
    17: "f6",
    18: "f7",
    19: "f8",
    20: "f9",
    21: "f10",
    23: "f11",
    24: "f12",
}

# Kitty CSI-u codepoints that name a key rather than a character
_KITTY_NAMED_CODEPOINTS: dict[int, str] = {
    27: "escape",
    9: "tab",
    13: "enter",
    57414: "enter",
    32: "space",
    127: "backspace",
}

_KITTY_CSI_U_RE = re.compile(
    r"^\x1b\[(\d+)(?::(\d+))?(?::\d+)?(?:;(\d+)(?::(\d+))?)?u$"
)
_MODIFIED_LETTER_RE = re.compile(r"^\x1b\[1;(\d+)(?::\d+)?([A-DHFPQRS])$")
_MODIFIED_TILDE_RE = re.compile(r"^\x1b\[(\d+);(\d+)(?::\d+)?~$")
_MODIFY_OTHER_KEYS_RE = re.compile(r"^\x1b\[27;(\d+);(\d+)~$")

# ---------------------------------------------------------------------------
# KeyPress
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyPress:
    """One decoded key event."""

    key: str
    ctrl: bool = False
    alt: bool = False
    shift: bool = False
    paste: str | None = None

    @property
    def id(self) -> str:
        """Key identifier such as ``"a"``, ``"ctrl+c"`` or ``"shift+up"``."""
        prefix = ""
        if self.ctrl:
            prefix += "ctrl+"
        if self.shift:
            prefix += "shift+"
        if self.alt:
            prefix += "alt+"
        return prefix + self.key

    @property
    def has_modifier(self) -> bool:
        return self.ctrl or self.alt or self.shift

    @property
    def char(self) -> str | None:
        """The text this key types, or ``None`` for non-printing keys."""
        if self.ctrl or self.alt:
            return None
        if self.key == Key.space:
            return " "
        if len(self.key) == 1 and self.key.isprintable():
            return self.key
        return None


def _decode_modifier(raw: int) -> tuple[bool, bool, bool]:
    """Return ``(ctrl, alt, shift)`` from an xterm/kitty modifier parameter."""
    mod = (raw - 1) & ~LOCK_MASK
    return (
        bool(mod & MODIFIERS["ctrl"]),
        bool(mod & MODIFIERS["alt"]),
        bool(mod & MODIFIERS["shift"]),
    )


def _char_press(ch: str, ctrl: bool, alt: bool, shift: bool) -> KeyPress:
    if shift and ch.isalpha():
        ch = ch.upper()
        shift = False
    elif shift and not ctrl and not alt:
        # shifted symbols arrive already shifted, e.g. "$"
        shift = False
    if ctrl and ch.isalpha():
        ch = ch.lower()
    return KeyPress(ch, ctrl=ctrl, alt=alt, shift=shift)


# ---------------------------------------------------------------------------
# parse_key
# ---------------------------------------------------------------------------


def parse_key(data: str) -> KeyPress | None:  # noqa: C901
    """Parse one complete terminal input sequence into a ``KeyPress``.

    Returns ``None`` for sequences that do not describe a key press
    (unknown escapes, key releases, terminal responses).
    """
    if not data:
        return None

    if data.startswith(BRACKETED_PASTE_START):
        content = data[len(BRACKETED_PASTE_START):]
        if content.endswith(BRACKETED_PASTE_END):
            content = content[: -len(BRACKETED_PASTE_END)]
        return KeyPress(Key.paste, paste=content)

    # --- kitty CSI u ---
    m = _KITTY_CSI_U_RE.match(data)
    if m:
        event_type = int(m.group(4)) if m.group(4) else 1
        if event_type == 3:
            return None
        codepoint = int(m.group(1))
        shifted = int(m.group(2)) if m.group(2) else None
        ctrl, alt, shift = _decode_modifier(int(m.group(3)) if m.group(3) else 1)
        name = _KITTY_NAMED_CODEPOINTS.get(codepoint)
        if name is not None:
            return KeyPress(name, ctrl=ctrl, alt=alt, shift=shift)
        if shifted is not None and shift:
            return _char_press(chr(shifted), ctrl, alt, False)
        ch = chr(codepoint)
        if ch.isprintable():
            return _char_press(ch, ctrl, alt, shift)
        return None

    # --- modifyOtherKeys: CSI 27;modifier;keycode ~ ---
    m = _MODIFY_OTHER_KEYS_RE.match(data)
    if m:
        ctrl, alt, shift = _decode_modifier(int(m.group(1)))
        keycode = int(m.group(2))
        name = _KITTY_NAMED_CODEPOINTS.get(keycode)
        if name is not None:
            return KeyPress(name, ctrl=ctrl, alt=alt, shift=shift)
        ch = chr(keycode)
        return _char_press(ch, ctrl, alt, shift) if ch.isprintable() else None

    # --- legacy sequences ---
    name = LEGACY_KEY_SEQUENCES.get(data)
    if name is not None:
        return KeyPress(name)

    m = _MODIFIED_LETTER_RE.match(data)
    if m:
        ctrl, alt, shift = _decode_modifier(int(m.group(1)))
        return KeyPress(_CSI_LETTER_KEYS[m.group(2)], ctrl=ctrl, alt=alt, shift=shift)

    m = _MODIFIED_TILDE_RE.match(data)
    if m:
        name = _CSI_TILDE_KEYS.get(int(m.group(1)))
        if name is None:
            return None
        ctrl, alt, shift = _decode_modifier(int(m.group(2)))
        return KeyPress(name, ctrl=ctrl, alt=alt, shift=shift)

    if data == "\x1b[Z":
        return KeyPress(Key.tab, shift=True)

    # --- single-byte keys ---
    if data == "\x1b":
        return KeyPress(Key.escape)
    if data in ("\r", "\n"):
        return KeyPress(Key.enter)
    if data == "\t":
        return KeyPress(Key.tab)
    if data == " ":
        return KeyPress(Key.space)
    if data in ("\x7f", "\x08"):
        return KeyPress(Key.backspace)
    if data == "\x00":
        return KeyPress(Key.space, ctrl=True)

    # Ctrl + letter (0x01 - 0x1a)
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return KeyPress(chr(ord(data) + ord("a") - 1), ctrl=True)

    # Alt + key (ESC prefix)
    if len(data) == 2 and data[0] == "\x1b":
        inner = parse_key(data[1])
        if inner is None or inner.alt:
            return None
        return KeyPress(inner.key, ctrl=inner.ctrl, alt=True, shift=inner.shift)

    # Plain printable character
    if len(data) == 1 and data.isprintable():
        return KeyPress(data)

    return None
