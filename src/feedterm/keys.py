"""Decoding of raw terminal input sequences.

Turns one complete input sequence (as split by ``StdinBuffer``) into a
``KeyEvent``, a ``MouseEvent`` or a focus event.  Handles the kitty keyboard
protocol (which reports press/repeat/release), xterm ``modifyOtherKeys``,
legacy escape sequences with modifier parameters, SGR mouse reports and
focus reports.
"""

from __future__ import annotations

import re

from feedterm.events import (
    FocusGainedEvent,
    FocusLostEvent,
    KeyEvent,
    KeyEventKind,
    MouseButton,
    MouseEvent,
    MouseEventKind,
)

__all__ = [
    "InputOccurrence",
    "decode_input",
    "is_key_release",
    "is_key_repeat",
]

InputOccurrence = KeyEvent | MouseEvent | FocusGainedEvent | FocusLostEvent

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
}

LOCK_MASK = 64 + 128

_EVENT_KINDS: dict[int, KeyEventKind] = {
    1: "press",
    2: "repeat",
    3: "release",
}

# Kitty CSI-u codepoints with a name
_KITTY_CODEPOINTS: dict[int, str] = {
    27: "escape",
    9: "tab",
    13: "enter",
    32: "space",
    127: "backspace",
    57414: "enter",  # keypad enter
    **{57364 + i: f"f{i + 1}" for i in range(12)},
}

# Final byte of ``CSI [1;mod] X`` and ``SS3 X`` sequences
_LETTER_KEYS: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
    "E": "clear",
    "P": "f1",
    "Q": "f2",
    "R": "f3",
    "S": "f4",
}

# Number of ``CSI n [;mod] ~`` sequences
_TILDE_KEYS: dict[int, str] = {
    1: "home",
    2: "insert",
    3: "delete",
    4: "end",
    5: "pageUp",
    6: "pageDown",
    7: "home",
    8: "end",
    15: "f5",
    17: "f6",
    18: "f7",
    19: "f8",
    20: "f9",
    21: "f10",
    23: "f11",
    24: "f12",
}

# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

# CSI u: \x1b[<codepoint>(:<shifted>(:<base>))?(;<modifier>(:<event>))?u
_KITTY_CSI_U_RE = re.compile(
    r"\x1b\[(\d+)(?::(\d+)(?::(\d+))?)?(?:;(\d+)(?::(\d+))?)?u"
)

# \x1b[A, \x1b[1;5A, \x1b[1;5:3A (kitty adds the event type)
_CSI_LETTER_RE = re.compile(r"\x1b\[(?:1;(\d+)(?::(\d+))?)?([ABCDEFHPQRS])")

# \x1b[3~, \x1b[3;5~, \x1b[15;2:3~
_CSI_TILDE_RE = re.compile(r"\x1b\[(\d+)(?:;(\d+)(?::(\d+))?)?~")

# \x1bOA, \x1bO5P
_SS3_RE = re.compile(r"\x1bO(\d)?([ABCDEFHPQRS])")

# modifyOtherKeys: \x1b[27;<modifier>;<keycode>~
_MODIFY_OTHER_KEYS_RE = re.compile(r"\x1b\[27;(\d+);(\d+)~")

# SGR mouse: \x1b[<b;x;yM (press/motion) or ...m (release)
_SGR_MOUSE_RE = re.compile(r"\x1b\[<(\d+);(\d+);(\d+)([Mm])")

_BRACKETED_PASTE_RE = re.compile(r"\x1b\[200~")

_RELEASE_PATTERNS = re.compile(
    r"(?::3u|;[^:]*:3~|;[^:]*:3[ABCDHF]|;[^:]*:3[PQRS])"
)

_REPEAT_PATTERNS = re.compile(
    r"(?::2u|;[^:]*:2~|;[^:]*:2[ABCDHF]|;[^:]*:2[PQRS])"
)


def is_key_release(data: str) -> bool:
    """Check if data contains a key release event pattern."""
    if _BRACKETED_PASTE_RE.search(data):
        return False
    return bool(_RELEASE_PATTERNS.search(data))


def is_key_repeat(data: str) -> bool:
    """Check if data contains a key repeat event pattern."""
    if _BRACKETED_PASTE_RE.search(data):
        return False
    return bool(_REPEAT_PATTERNS.search(data))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _key(code: str, modifier: int = 1, event_type: int = 1) -> KeyEvent:
    """Build a ``KeyEvent`` from a 1-based xterm/kitty modifier value."""
    mod = (modifier - 1) & ~LOCK_MASK
    return KeyEvent(
        code=code,
        shift=bool(mod & MODIFIERS["shift"]),
        alt=bool(mod & MODIFIERS["alt"]),
        ctrl=bool(mod & MODIFIERS["ctrl"]),
        kind=_EVENT_KINDS.get(event_type, "press"),
    )


def _int(group: str | None, default: int) -> int:
    return int(group) if group else default


def _char_key(ch: str, modifier: int = 1, event_type: int = 1) -> KeyEvent | None:
    if not ch.isprintable():
        return None
    if ch.isalpha() and ch.isupper():
        # Shifted letters are normalised to lowercase + shift
        modifier = ((modifier - 1) | MODIFIERS["shift"]) + 1
        ch = ch.lower()
    return _key(ch, modifier, event_type)


def _decode_kitty_u(m: re.Match[str]) -> KeyEvent | None:
    codepoint = int(m.group(1))
    modifier = _int(m.group(4), 1)
    event_type = _int(m.group(5), 1)

    name = _KITTY_CODEPOINTS.get(codepoint)
    if name is not None:
        return _key(name, modifier, event_type)
    if codepoint <= 0 or codepoint > 0x10FFFF:
        return None
    return _char_key(chr(codepoint), modifier, event_type)


def _decode_mouse(m: re.Match[str]) -> MouseEvent:
    cb = int(m.group(1))
    column = int(m.group(2)) - 1
    row = int(m.group(3)) - 1
    released = m.group(4) == "m"

    buttons: tuple[MouseButton, ...] = ("left", "middle", "right", "none")
    button = buttons[cb & 3]
    kind: MouseEventKind
    if cb & 64:
        kind = "scroll_down" if cb & 1 else "scroll_up"
        button = "none"
    elif cb & 32:
        kind = "moved" if button == "none" else "drag"
    elif released:
        kind = "up"
    else:
        kind = "down"

    return MouseEvent(
        kind=kind,
        button=button,
        column=max(column, 0),
        row=max(row, 0),
        shift=bool(cb & 4),
        alt=bool(cb & 8),
        ctrl=bool(cb & 16),
    )


# ---------------------------------------------------------------------------
# decode_input
# ---------------------------------------------------------------------------


def decode_input(data: str) -> InputOccurrence | None:  # noqa: C901
    """Decode one complete input sequence.

    Returns ``None`` for empty input and for sequences that carry no key,
    mouse or focus meaning (terminal query responses, unknown CSI, ...).
    """
    if not data:
        return None

    if data == "\x1b[I":
        return FocusGainedEvent()
    if data == "\x1b[O":
        return FocusLostEvent()

    m = _SGR_MOUSE_RE.fullmatch(data)
    if m:
        return _decode_mouse(m)

    m = _KITTY_CSI_U_RE.fullmatch(data)
    if m:
        return _decode_kitty_u(m)

    m = _MODIFY_OTHER_KEYS_RE.fullmatch(data)
    if m:
        keycode = int(m.group(2))
        name = _KITTY_CODEPOINTS.get(keycode)
        if name is not None:
            return _key(name, int(m.group(1)))
        return _char_key(chr(keycode), int(m.group(1))) if keycode > 0 else None

    if data == "\x1b[Z":
        return KeyEvent(code="tab", shift=True)

    m = _CSI_LETTER_RE.fullmatch(data)
    if m:
        return _key(_LETTER_KEYS[m.group(3)], _int(m.group(1), 1), _int(m.group(2), 1))

    m = _CSI_TILDE_RE.fullmatch(data)
    if m:
        name = _TILDE_KEYS.get(int(m.group(1)))
        if name is None:
            return None
        return _key(name, _int(m.group(2), 1), _int(m.group(3), 1))

    m = _SS3_RE.fullmatch(data)
    if m:
        return _key(_LETTER_KEYS[m.group(2)], _int(m.group(1), 1))

    # --- Simple single-byte keys ---
    if data == "\x1b":
        return KeyEvent(code="escape")
    if data in ("\r", "\n"):
        return KeyEvent(code="enter")
    if data == "\t":
        return KeyEvent(code="tab")
    if data == " ":
        return KeyEvent(code="space")
    if data in ("\x7f", "\x08"):
        return KeyEvent(code="backspace")
    if data == "\x00":
        return KeyEvent(code="space", ctrl=True)

    # Ctrl + letter (0x01 - 0x1a)
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return KeyEvent(code=chr(ord(data) + ord("a") - 1), ctrl=True)

    # Alt + key (ESC prefix)
    if len(data) == 2 and data[0] == "\x1b":
        inner = decode_input(data[1])
        if isinstance(inner, KeyEvent):
            return inner.model_copy(update={"alt": True})
        return None

    if len(data) == 1:
        return _char_key(data)

    return None
