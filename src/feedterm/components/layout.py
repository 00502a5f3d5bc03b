"""Screen layout shared by the built-in components."""

from __future__ import annotations

from feedterm.frame import Rect

__all__ = ["screen_regions", "visible_range"]


def screen_regions(area: Rect) -> tuple[Rect, Rect, Rect]:
    """Split the screen into ``(header, body, status)`` rows."""
    header, body, status = area.split_vertical([1, max(0, area.height - 2), 1])
    return header, body, status


def visible_range(selected: int, count: int, max_visible: int) -> tuple[int, int]:
    """Window of at most *max_visible* rows keeping *selected* centred."""
    if max_visible <= 0 or count == 0:
        return 0, 0
    start = max(0, min(selected - max_visible // 2, count - max_visible))
    return start, min(start + max_visible, count)
