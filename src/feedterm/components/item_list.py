"""Items of one feed."""

from __future__ import annotations

from feedterm.action import Action, RenderAction
from feedterm.component import Component
from feedterm.components.layout import visible_range
from feedterm.events import KeyEvent, MouseEvent
from feedterm.feeds import FeedStore
from feedterm.frame import Frame, Rect
from feedterm.utils import truncate_to_width


class ItemList(Component):
    """Lists the items of the feed at ``index`` in ``store``.

    The feed is looked up on every draw, so a refresh that replaces the
    feed's items shows up without re-opening the list.  ``escape`` sets
    :attr:`done`; the owner drops the list when it sees that.
    """

    def __init__(self, store: FeedStore, index: int) -> None:
        self.store = store
        self.index = index
        self.selected = 0
        self.done = False

    def _count(self) -> int:
        feed = self.store.get(self.index)
        return len(feed.items) if feed else 0

    def _move(self, delta: int) -> Action | None:
        count = self._count()
        if count == 0:
            return None
        self.selected = (self.selected + delta) % count
        return RenderAction()

    def handle_key_events(self, key: KeyEvent) -> Action | None:
        match key.code:
            case "up" | "k":
                return self._move(-1)
            case "down" | "j":
                return self._move(1)
            case "escape":
                self.done = True
                return RenderAction()
        return None

    def handle_mouse_events(self, mouse: MouseEvent) -> Action | None:
        if mouse.kind == "scroll_up":
            return self._move(-1)
        if mouse.kind == "scroll_down":
            return self._move(1)
        return None

    def draw(self, frame: Frame, area: Rect) -> None:
        feed = self.store.get(self.index)
        if feed is None:
            frame.render_block(area, " Feed ", ["  Feed no longer exists"])
            return

        items = feed.items
        self.selected = min(self.selected, max(0, len(items) - 1))
        inner_width = max(0, area.width - 2)
        if not items:
            lines = ["  No items yet, press r to refresh"]
        else:
            start, end = visible_range(self.selected, len(items), max(0, area.height - 2))
            lines = []
            for i in range(start, end):
                item = items[i]
                text = item.title or item.link or "(untitled)"
                if item.published:
                    text = f"{text}  \x1b[2m{item.published}\x1b[0m"
                if i == self.selected:
                    lines.append("\x1b[7m→ " + truncate_to_width(text, inner_width - 2, "") + "\x1b[0m")
                else:
                    lines.append("  " + truncate_to_width(text, inner_width - 2, ""))
        frame.render_block(area, f" {feed.title or feed.url} ", lines)
