"""Drawing surface handed to components.

A ``Frame`` is a grid of terminal cells covering the whole screen.  Each
component receives the same frame and a ``Rect`` describing its region;
regions do not overlap by convention, but nothing enforces it -- the last
writer of a cell wins.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass

import grapheme

from feedterm.utils import fit_to_width, grapheme_width, truncate_to_width, visible_width

__all__ = ["Frame", "Rect", "SizeValue"]

_ANSI_CODE = r"\x1b\[[0-9;?]*[A-Za-z]|\x1b\]8;;[^\x07]*\x07|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"
_ANSI_PREFIX_RE = re.compile(f"(?:{_ANSI_CODE})+")
_ANSI_CODE_RE = re.compile(_ANSI_CODE)

# int  ->  exact number of columns/rows
# str  ->  percentage string like "50%"
SizeValue = int | str


def _resolve_size(value: SizeValue, total: int) -> int:
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, str) and value.endswith("%"):
        try:
            return max(0, math.floor(total * float(value[:-1]) / 100))
        except ValueError:
            pass
    raise ValueError(f"invalid size value: {value!r}")


@dataclass(frozen=True)
class Rect:
    """A rectangular region in cell coordinates (0-based)."""

    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def inner(self, margin: int = 1) -> Rect:
        """Shrink by *margin* cells on every side (never below zero size)."""
        return Rect(
            self.x + margin,
            self.y + margin,
            max(0, self.width - 2 * margin),
            max(0, self.height - 2 * margin),
        )

    def split_vertical(self, sizes: Sequence[SizeValue]) -> list[Rect]:
        """Stack regions top to bottom.  The last region takes what is left."""
        rects: list[Rect] = []
        y = self.y
        for i, size in enumerate(sizes):
            remaining = self.bottom - y
            h = remaining if i == len(sizes) - 1 else min(_resolve_size(size, self.height), remaining)
            rects.append(Rect(self.x, y, self.width, h))
            y += h
        return rects

    def split_horizontal(self, sizes: Sequence[SizeValue]) -> list[Rect]:
        """Place regions left to right.  The last region takes what is left."""
        rects: list[Rect] = []
        x = self.x
        for i, size in enumerate(sizes):
            remaining = self.right - x
            w = remaining if i == len(sizes) - 1 else min(_resolve_size(size, self.width), remaining)
            rects.append(Rect(x, self.y, w, self.height))
            x += w
        return rects


_RESET = "\x1b[0m"

# (style, text): the SGR codes active for the cell and its grapheme
Cell = tuple[str, str]
_BLANK: Cell = ("", " ")


def _is_sgr_reset(code: str) -> bool:
    return code[2:-1] in ("", "0")


def _to_cells(text: str) -> list[Cell]:
    """Split styled text into one cell per terminal column.

    Every cell records the SGR style in effect for it, so overwriting part
    of a styled run never leaves an unbalanced style behind.  Other escape
    codes are attached to the following grapheme; a wide grapheme is
    followed by an empty placeholder cell.
    """
    cells: list[Cell] = []
    style = ""
    pending = ""
    pos = 0
    while pos < len(text):
        m = _ANSI_PREFIX_RE.match(text, pos)
        if m:
            for code in _ANSI_CODE_RE.findall(m.group(0)):
                if not (code.startswith("\x1b[") and code.endswith("m")):
                    pending += code
                elif _is_sgr_reset(code):
                    style = ""
                elif code[2:].startswith("0;"):
                    style = code
                else:
                    style += code
            pos = m.end()
            continue
        g = next(grapheme.graphemes(text[pos : pos + 16]))
        pos += len(g)
        width = grapheme_width(g)
        if width == 0:
            if cells:
                prev_style, prev_text = cells[-1]
                cells[-1] = (prev_style, prev_text + pending + g)
                pending = ""
            continue
        cells.append((style, pending + g))
        pending = ""
        if width == 2:
            cells.append((style, ""))
    if pending and cells:
        prev_style, prev_text = cells[-1]
        cells[-1] = (prev_style, prev_text + pending)
    return cells


class Frame:
    """A full-screen cell buffer."""

    BORDER = ("┌", "─", "┐", "│", "└", "┘")

    def __init__(self, area: Rect) -> None:
        self.area = area
        self._cells: list[list[Cell]] = [
            [_BLANK] * area.width for _ in range(area.height)
        ]

    def _put(self, x: int, y: int, text: str) -> None:
        if not 0 <= y < self.area.height:
            return
        row = self._cells[y]
        for offset, cell in enumerate(_to_cells(text)):
            col = x + offset
            if 0 <= col < self.area.width:
                row[col] = cell

    def render_text(self, rect: Rect, lines: Sequence[str]) -> None:
        """Write *lines* into *rect*, clipping and padding each to its width.

        Rows of *rect* beyond ``len(lines)`` are cleared.
        """
        if rect.width <= 0:
            return
        for i in range(rect.height):
            line = lines[i] if i < len(lines) else ""
            self._put(rect.x, rect.y + i, fit_to_width(line, rect.width))

    def render_block(self, rect: Rect, title: str = "", lines: Sequence[str] = ()) -> Rect:
        """Draw a bordered box with *title* and *lines* inside.

        Returns the inner region.
        """
        if rect.width < 2 or rect.height < 2:
            return Rect(rect.x, rect.y, 0, 0)
        tl, h, tr, v, bl, br = self.BORDER
        inner_width = rect.width - 2
        top = h * inner_width
        if title:
            label = truncate_to_width(title, inner_width)
            top = label + h * (inner_width - visible_width(label))
        self._put(rect.x, rect.y, tl + top + tr)
        for row in range(rect.y + 1, rect.bottom - 1):
            self._put(rect.x, row, v)
            self._put(rect.right - 1, row, v)
        self._put(rect.x, rect.bottom - 1, bl + h * inner_width + br)

        inner = rect.inner(1)
        self.render_text(inner, lines)
        return inner

    def lines(self) -> list[str]:
        """The composed screen, one string per row."""
        return [_compose(row) for row in self._cells]


def _compose(row: list[Cell]) -> str:
    parts: list[str] = []
    current = ""
    for style, text in row:
        if style != current:
            if current:
                parts.append(_RESET)
            parts.append(style)
            current = style
        parts.append(text)
    if current:
        parts.append(_RESET)
    return "".join(parts)
