"""Terminal text utilities: visible-width measurement and truncation.

Widths are measured per grapheme cluster with ANSI escape sequences
ignored, so styled text and wide characters (CJK, emoji) line up in the
frame grid.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

__all__ = ["fit_to_width", "grapheme_width", "strip_ansi", "truncate_to_width", "visible_width"]

# CSI sequences (SGR and friends), OSC 8 hyperlinks, APC payloads
_ANSI_RE = re.compile(
    r"\x1b\[[0-9;?]*[A-Za-z]"
    r"|\x1b\]8;;[^\x07]*\x07"
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"
)

_SGR_RESET = "\x1b[0m"

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


def grapheme_width(g: str) -> int:
    """Terminal display width of one grapheme cluster."""
    if not g:
        return 0

    first = ord(g[0])
    if len(g) == 1:
        if first < 0x20 or 0x7F <= first <= 0x9F:
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        # VS16, ZWJ, skin tone modifiers, regional indicators
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    if first >= 0x1F000 or 0x2600 <= first <= 0x27BF:
        return 2

    category = unicodedata.category(g[0])
    if category.startswith("M") or category == "Cf":
        return 0
    return max(_wcwidth.wcwidth(g[0]), 0)


def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*.

    ANSI sequences count as zero columns and tabs as three.
    """
    if not text:
        return 0

    stripped = strip_ansi(text).replace("\t", "   ")
    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(grapheme_width(g) for g in grapheme.graphemes(stripped))
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[stripped] = total
    return total


def _take_columns(text: str, max_cols: int) -> tuple[str, int, bool]:
    """Longest prefix of *text* within *max_cols* columns.

    Returns ``(prefix, width, styled)``; ANSI codes are kept and *styled*
    tells whether any were seen, so the caller can reset them.
    """
    parts: list[str] = []
    cols = 0
    styled = False
    pos = 0

    while pos < len(text):
        m = _ANSI_RE.match(text, pos)
        if m:
            parts.append(m.group(0))
            styled = True
            pos = m.end()
            continue

        # Advance by one grapheme cluster
        g = next(grapheme.graphemes(text[pos : pos + 16]))
        w = grapheme_width(g)
        if cols + w > max_cols:
            break
        parts.append(g)
        cols += w
        pos += len(g)

    return "".join(parts), cols, styled


def truncate_to_width(text: str, max_width: int, ellipsis: str = "…") -> str:
    """Truncate *text* to *max_width* columns, ending with *ellipsis* if cut."""
    if max_width <= 0:
        return ""
    if visible_width(text) <= max_width:
        return text

    target = max_width - visible_width(ellipsis)
    if target <= 0:
        return _take_columns(ellipsis, max_width)[0]

    prefix, _, styled = _take_columns(text, target)
    return prefix + (_SGR_RESET if styled else "") + ellipsis


def fit_to_width(text: str, width: int) -> str:
    """Truncate or right-pad *text* so it occupies exactly *width* columns."""
    if width <= 0:
        return ""
    clipped, cols, styled = _take_columns(text.replace("\t", "   "), width)
    if styled:
        clipped += _SGR_RESET
    return clipped + " " * (width - cols)
