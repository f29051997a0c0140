"""
Terminal text utilities.

Provides:
- char_width(): terminal column width of a single code point
- is_control_char(): code points that must never reach the terminal raw
- visible_width(): terminal column width of a string (ANSI-aware)
- truncate_to_width(): clip to a column width, optional padding
"""
from __future__ import annotations

import re
import unicodedata

from wcwidth import wcwidth

TAB_WIDTH = 8

# ─────────────────────────────────────────────────────────────────────────────
# Width cache (small LRU-style)
# ─────────────────────────────────────────────────────────────────────────────
_WIDTH_CACHE_SIZE = 512
_width_cache: dict[str, int] = {}
_width_cache_order: list[str] = []

_ANSI_CSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")
_ANSI_OSC_RE = re.compile(r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")


def is_control_char(ch: str) -> bool:
    """C0 controls, DEL and C1 controls (Unicode category Cc)."""
    return unicodedata.category(ch) == "Cc"


def char_width(ch: str) -> int:
    """
    Column width of one code point: 0, 1 or 2.

    Control characters report 0; callers that print raw text must drop them
    (see is_control_char) since they can move the cursor.
    """
    if is_control_char(ch):
        return 0
    w = wcwidth(ch)
    if w < 0:
        return 0
    return w


def visible_width(s: str) -> int:
    """
    Calculate the visible terminal column width of a string.
    ANSI escape sequences and control characters count as zero.
    """
    if not s:
        return 0

    # Fast path: pure ASCII printable
    if all(0x20 <= ord(c) <= 0x7e for c in s):
        return len(s)

    cached = _width_cache.get(s)
    if cached is not None:
        return cached

    clean = s
    if "\x1b" in clean:
        clean = _ANSI_CSI_RE.sub("", clean)
        clean = _ANSI_OSC_RE.sub("", clean)

    width = sum(char_width(c) for c in clean)

    if len(_width_cache) >= _WIDTH_CACHE_SIZE:
        oldest = _width_cache_order.pop(0) if _width_cache_order else next(iter(_width_cache))
        _width_cache.pop(oldest, None)
    _width_cache[s] = width
    _width_cache_order.append(s)

    return width


def truncate_to_width(text: str, max_width: int, pad: bool = False) -> str:
    """
    Clip plain text to max_width columns.
    A wide character that would straddle the limit is left out entirely.
    With pad=True the result is space-filled to exactly max_width columns.
    """
    if max_width <= 0:
        return ""

    text_visible = visible_width(text)
    if text_visible <= max_width:
        if pad:
            return text + " " * (max_width - text_visible)
        return text

    result: list[str] = []
    current_width = 0
    for ch in text:
        w = char_width(ch)
        if current_width + w > max_width:
            break
        result.append(ch)
        current_width += w

    truncated = "".join(result)
    if pad:
        return truncated + " " * (max_width - current_width)
    return truncated
