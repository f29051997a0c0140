"""
Keyboard input decoding for legacy (xterm/VT) terminal sequences.

API:
- split_sequences(buffer): split raw input into complete key sequences
- matches_key(data, key_id): check if one sequence matches a key identifier
- is_printable(data): whether a sequence is text to insert
"""
from __future__ import annotations

import re

from .utils import is_control_char

ESC = "\x1b"

KeyId = str

# Legacy sequences for named keys
_LEGACY_KEY_SEQS: dict[str, tuple[str, ...]] = {
    "up": ("\x1b[A", "\x1bOA"),
    "down": ("\x1b[B", "\x1bOB"),
    "right": ("\x1b[C", "\x1bOC"),
    "left": ("\x1b[D", "\x1bOD"),
    "home": ("\x1b[H", "\x1bOH", "\x1b[1~", "\x1b[7~"),
    "end": ("\x1b[F", "\x1bOF", "\x1b[4~", "\x1b[8~"),
    "delete": ("\x1b[3~",),
    "insert": ("\x1b[2~",),
    "pageup": ("\x1b[5~",),
    "pagedown": ("\x1b[6~",),
    "enter": ("\r", "\n", "\x1bOM"),
    "tab": ("\t",),
    "backspace": ("\x7f", "\x08"),
    "escape": ("\x1b",),
}

_KEY_ALIASES = {"return": "enter", "esc": "escape", "pageUp": "pageup", "pageDown": "pagedown"}

_CSI_FINAL_RE = re.compile(r"[\x40-\x7e]")


# ─────────────────────────────────────────────────────────────────────────────
# Sequence splitting
# ─────────────────────────────────────────────────────────────────────────────

def _sequence_length(data: str) -> int | None:
    """Length of the escape sequence at the start of data, None if incomplete."""
    if len(data) == 1:
        return None
    second = data[1]
    if second == "[":
        for i in range(2, len(data)):
            if _CSI_FINAL_RE.match(data[i]):
                return i + 1
        return None
    if second == "O":
        return 3 if len(data) >= 3 else None
    # ESC + one char (alt+key)
    return 2


def split_sequences(buffer: str) -> tuple[list[str], str]:
    """
    Split buffer into complete sequences.
    Returns (sequences, remainder); the remainder is an unfinished escape
    sequence to be prefixed to the next read.
    """
    sequences: list[str] = []
    pos = 0
    while pos < len(buffer):
        remaining = buffer[pos:]
        if remaining.startswith(ESC):
            length = _sequence_length(remaining)
            if length is None:
                return sequences, remaining
            sequences.append(remaining[:length])
            pos += length
        else:
            sequences.append(remaining[0])
            pos += 1
    return sequences, ""


# ─────────────────────────────────────────────────────────────────────────────
# Key matching
# ─────────────────────────────────────────────────────────────────────────────

def _parse_key_id(key_id: KeyId) -> tuple[str, bool, bool] | None:
    parts = key_id.split("+")
    key = parts[-1]
    if not key:
        return None
    mods = {p.lower() for p in parts[:-1]}
    if mods - {"ctrl", "alt"}:
        return None
    return _KEY_ALIASES.get(key, key.lower() if len(key) > 1 else key), "ctrl" in mods, "alt" in mods


def _raw_ctrl_char(key: str) -> str | None:
    """Get control character for key (ctrl+a → chr(1), etc.)."""
    if len(key) != 1:
        return None
    ch = key.lower()
    code = ord(ch)
    if (97 <= code <= 122) or ch in ("[", "\\", "]", "_"):
        return chr(code & 0x1f)
    return None


def matches_key(data: str, key_id: KeyId) -> bool:
    """Check if data (one complete input sequence) matches key_id, e.g. "ctrl+a"."""
    parsed = _parse_key_id(key_id)
    if not parsed:
        return False
    key, ctrl, alt = parsed

    if alt:
        if not data.startswith(ESC) or len(data) < 2:
            return False
        rest = data[1:]
        inner = f"ctrl+{key}" if ctrl else key
        return matches_key(rest, inner)

    if ctrl:
        raw = _raw_ctrl_char(key)
        return raw is not None and data == raw

    seqs = _LEGACY_KEY_SEQS.get(key)
    if seqs is not None:
        return data in seqs
    if key == "space":
        return data == " "
    return len(key) == 1 and data == key


def is_printable(data: str) -> bool:
    """True for text input (no escape prefix, no control characters)."""
    if not data or data.startswith(ESC):
        return False
    return not any(is_control_char(c) for c in data)
