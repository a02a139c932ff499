"""
Raw terminal event types and escape-sequence decoding.

The keyboard reader hands complete input sequences (a single character,
or an escape sequence read to its final byte) to decode_sequence(), which
turns them into one of:

- KeyEvent: a key press with modifier flags
- MouseEvent: an SGR mouse report (requires mouse capture)
- FocusEvent / PasteEvent / UnknownEvent: everything else the terminal
  may send; the input pump discards these

Decoding follows xterm conventions: control bytes 0x01-0x1A are Ctrl+letter
(Tab and Enter excepted), CSI/SS3 cursor keys carry an optional modifier
parameter where value - 1 is a bit set of Shift=1, Alt=2, Ctrl=4.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, Flag, auto

ESC = "\x1b"


class Modifiers(Flag):
    """Modifier keys held during a key or mouse event."""

    NONE = 0
    SHIFT = auto()
    ALT = auto()
    CONTROL = auto()


class KeyCode(Enum):
    """Non-character keys. Printable keys use KeyCode.CHAR plus the char."""

    CHAR = "char"
    ENTER = "enter"
    ESC = "esc"
    TAB = "tab"
    BACK_TAB = "back_tab"
    BACKSPACE = "backspace"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    HOME = "home"
    END = "end"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    INSERT = "insert"
    DELETE = "delete"
    F1 = "f1"
    F2 = "f2"
    F3 = "f3"
    F4 = "f4"
    F5 = "f5"
    F6 = "f6"
    F7 = "f7"
    F8 = "f8"
    F9 = "f9"
    F10 = "f10"
    F11 = "f11"
    F12 = "f12"


class MouseKind(Enum):
    DOWN = "down"
    UP = "up"
    DRAG = "drag"
    MOVED = "moved"
    SCROLL_UP = "scroll_up"
    SCROLL_DOWN = "scroll_down"


@dataclass(frozen=True)
class KeyEvent:
    """
    A key press.

    Attributes:
        code: Which key
        char: The character for KeyCode.CHAR, empty otherwise
        modifiers: Modifier flags held with the key
    """

    code: KeyCode
    char: str = ""
    modifiers: Modifiers = Modifiers.NONE


@dataclass(frozen=True)
class MouseEvent:
    """
    A mouse report. Column and row are zero-based.

    Attributes:
        kind: Press, release, drag, move or scroll
        button: 0 left, 1 middle, 2 right (None for moves and scrolls)
        column: Zero-based column
        row: Zero-based row
        modifiers: Modifier flags held during the event
    """

    kind: MouseKind
    button: int | None
    column: int
    row: int
    modifiers: Modifiers = Modifiers.NONE


@dataclass(frozen=True)
class FocusEvent:
    gained: bool


@dataclass(frozen=True)
class PasteEvent:
    start: bool


@dataclass(frozen=True)
class UnknownEvent:
    raw: str


RawEvent = KeyEvent | MouseEvent | FocusEvent | PasteEvent | UnknownEvent

# Final byte of "CSI <params> X" / "SS3 X"
_LETTER_KEYS = {
    "A": KeyCode.UP,
    "B": KeyCode.DOWN,
    "C": KeyCode.RIGHT,
    "D": KeyCode.LEFT,
    "H": KeyCode.HOME,
    "F": KeyCode.END,
    "P": KeyCode.F1,
    "Q": KeyCode.F2,
    "R": KeyCode.F3,
    "S": KeyCode.F4,
}

# Number in "CSI <n> ~"
_TILDE_KEYS = {
    1: KeyCode.HOME,
    2: KeyCode.INSERT,
    3: KeyCode.DELETE,
    4: KeyCode.END,
    5: KeyCode.PAGE_UP,
    6: KeyCode.PAGE_DOWN,
    7: KeyCode.HOME,
    8: KeyCode.END,
    11: KeyCode.F1,
    12: KeyCode.F2,
    13: KeyCode.F3,
    14: KeyCode.F4,
    15: KeyCode.F5,
    17: KeyCode.F6,
    18: KeyCode.F7,
    19: KeyCode.F8,
    20: KeyCode.F9,
    21: KeyCode.F10,
    23: KeyCode.F11,
    24: KeyCode.F12,
}


def is_csi_final(char: str) -> bool:
    """True for the byte range that terminates a CSI sequence."""
    return "\x40" <= char <= "\x7e"


def _modifiers_from_param(param: str) -> Modifiers:
    """Decode an xterm modifier parameter ("5" means Ctrl)."""
    try:
        bits = int(param) - 1
    except ValueError:
        return Modifiers.NONE
    modifiers = Modifiers.NONE
    if bits & 1:
        modifiers |= Modifiers.SHIFT
    if bits & 2:
        modifiers |= Modifiers.ALT
    if bits & 4:
        modifiers |= Modifiers.CONTROL
    return modifiers


def _decode_char(char: str, modifiers: Modifiers = Modifiers.NONE) -> KeyEvent:
    if char == "\r":
        return KeyEvent(KeyCode.ENTER, modifiers=modifiers)
    if char == "\t":
        return KeyEvent(KeyCode.TAB, modifiers=modifiers)
    if char == "\x7f":
        return KeyEvent(KeyCode.BACKSPACE, modifiers=modifiers)
    if char == ESC:
        return KeyEvent(KeyCode.ESC, modifiers=modifiers)
    if char == "\x00":
        return KeyEvent(KeyCode.CHAR, " ", modifiers | Modifiers.CONTROL)
    if "\x01" <= char <= "\x1a":
        letter = chr(ord(char) - 1 + ord("a"))
        return KeyEvent(KeyCode.CHAR, letter, modifiers | Modifiers.CONTROL)
    return KeyEvent(KeyCode.CHAR, char, modifiers)


def _decode_sgr_mouse(body: str, final: str) -> RawEvent:
    """Decode the part of "ESC [ < b ; x ; y M|m" after the '<'."""
    try:
        cb, cx, cy = (int(part) for part in body.split(";"))
    except ValueError:
        return UnknownEvent(f"{ESC}[<{body}{final}")

    modifiers = Modifiers.NONE
    if cb & 4:
        modifiers |= Modifiers.SHIFT
    if cb & 8:
        modifiers |= Modifiers.ALT
    if cb & 16:
        modifiers |= Modifiers.CONTROL

    button = cb & 3
    if cb & 64:
        kind = MouseKind.SCROLL_UP if button == 0 else MouseKind.SCROLL_DOWN
        return MouseEvent(kind, None, cx - 1, cy - 1, modifiers)
    if cb & 32:
        if button == 3:
            return MouseEvent(MouseKind.MOVED, None, cx - 1, cy - 1, modifiers)
        return MouseEvent(MouseKind.DRAG, button, cx - 1, cy - 1, modifiers)
    kind = MouseKind.DOWN if final == "M" else MouseKind.UP
    return MouseEvent(kind, button, cx - 1, cy - 1, modifiers)


def _decode_csi(body: str, final: str) -> RawEvent:
    """Decode "ESC [ <body> <final>"."""
    raw = f"{ESC}[{body}{final}"

    if body.startswith("<") and final in ("M", "m"):
        return _decode_sgr_mouse(body[1:], final)
    if body == "" and final in ("I", "O"):
        return FocusEvent(gained=final == "I")
    if body == "" and final == "Z":
        return KeyEvent(KeyCode.BACK_TAB, modifiers=Modifiers.SHIFT)

    params = body.split(";") if body else []

    if final in _LETTER_KEYS:
        modifiers = _modifiers_from_param(params[1]) if len(params) > 1 else Modifiers.NONE
        return KeyEvent(_LETTER_KEYS[final], modifiers=modifiers)

    if final == "~" and params:
        if params[0] in ("200", "201"):
            return PasteEvent(start=params[0] == "200")
        try:
            code = _TILDE_KEYS[int(params[0])]
        except (KeyError, ValueError):
            return UnknownEvent(raw)
        modifiers = _modifiers_from_param(params[1]) if len(params) > 1 else Modifiers.NONE
        return KeyEvent(code, modifiers=modifiers)

    return UnknownEvent(raw)


def decode_sequence(seq: str) -> RawEvent:
    """
    Decode one complete input sequence into an event.

    Args:
        seq: A single character, or an escape sequence read to completion

    Returns:
        The decoded event (UnknownEvent for anything unrecognized)

    Example:
        decode_sequence("\\x1b[1;5A")  # KeyEvent(UP, modifiers=CONTROL)
        decode_sequence("\\x0b")       # KeyEvent(CHAR, "k", CONTROL)
    """
    if not seq:
        return UnknownEvent(seq)
    if len(seq) == 1:
        return _decode_char(seq)

    if not seq.startswith(ESC):
        return UnknownEvent(seq)

    if seq.startswith(f"{ESC}[") and len(seq) >= 3:
        return _decode_csi(seq[2:-1], seq[-1])
    if seq.startswith(f"{ESC}O") and len(seq) == 3:
        code = _LETTER_KEYS.get(seq[2])
        return KeyEvent(code) if code is not None else UnknownEvent(seq)
    if len(seq) == 2:
        # Meta-prefixed key
        return _decode_char(seq[1], Modifiers.ALT)
    return UnknownEvent(seq)
