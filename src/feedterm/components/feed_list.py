"""List of subscribed feeds.

Handles navigation, opens an :class:`ItemList` for the selected feed and
refreshes all feeds in the background on ``Refresh``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import httpx

from feedterm.action import Action, ErrorAction, HelpAction, RefreshAction, RenderAction
from feedterm.channel import ChannelClosed
from feedterm.component import Component
from feedterm.components.item_list import ItemList
from feedterm.components.layout import screen_regions, visible_range
from feedterm.events import KeyEvent, MouseEvent
from feedterm.feeds import DEFAULT_FETCH_LIMIT, DEFAULT_TIMEOUT, FeedRefreshError, FeedStore
from feedterm.frame import Frame, Rect
from feedterm.utils import truncate_to_width

logger = logging.getLogger(__name__)


def _default_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)


class FeedList(Component):
    """Draws the feed titles; opens the selected feed on ``enter``.

    Parameters
    ----------
    store:
        The subscribed feeds.
    client_factory:
        Builds the HTTP client used for one refresh.  The client is closed
        when the refresh finishes.
    """

    def __init__(
        self,
        store: FeedStore,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self.store = store
        self.selected = 0
        self.item_list: ItemList | None = None
        self.help_open = False
        self._client_factory = client_factory or _default_client
        self._task: asyncio.Task[None] | None = None

    @property
    def refreshing(self) -> bool:
        return self._task is not None and not self._task.done()

    # -- input ----------------------------------------------------------------

    def _move(self, delta: int) -> Action | None:
        if len(self.store) == 0:
            return None
        self.selected = (self.selected + delta) % len(self.store)
        return RenderAction()

    def handle_key_events(self, key: KeyEvent) -> Action | None:
        if self.help_open:
            return None
        if self.item_list is not None:
            result = self.item_list.handle_key_events(key)
            if self.item_list.done:
                self.item_list = None
            return result

        match key.code:
            case "up" | "k":
                return self._move(-1)
            case "down" | "j":
                return self._move(1)
            case "enter":
                if self.store.get(self.selected) is None:
                    return None
                self.item_list = ItemList(self.store, self.selected)
                return RenderAction()
        return None

    def handle_mouse_events(self, mouse: MouseEvent) -> Action | None:
        if self.help_open:
            return None
        if self.item_list is not None:
            return self.item_list.handle_mouse_events(mouse)
        if mouse.kind == "scroll_up":
            return self._move(-1)
        if mouse.kind == "scroll_down":
            return self._move(1)
        return None

    # -- actions --------------------------------------------------------------

    def update(self, action: Action) -> Action | None:
        if isinstance(action, HelpAction):
            self.help_open = not self.help_open
        elif isinstance(action, RefreshAction):
            if self.refreshing:
                logger.debug("refresh already running")
            else:
                self._task = asyncio.create_task(self._refresh_all(), name="feedterm-refresh")
        return None

    async def _refresh_all(self) -> None:
        limit = self.config.max_concurrent_fetches if self.config else DEFAULT_FETCH_LIMIT
        try:
            async with self._client_factory() as client:
                await self.store.refresh_all(client, limit=limit)
        except FeedRefreshError as e:
            self._emit(ErrorAction(message=str(e)))
        except Exception as e:
            logger.exception("feed refresh failed")
            self._emit(ErrorAction(message=f"refresh failed: {e}"))
        else:
            self._emit(RenderAction())

    def _emit(self, action: Action) -> None:
        if self.command_tx is None:
            return
        try:
            self.command_tx.send(action)
        except ChannelClosed:
            logger.debug("action channel closed; dropping %s", action.type)

    async def dispose(self) -> None:
        """Cancel a running refresh and wait for its client to close."""
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            logger.debug("feed refresh cancelled")

    async def wait_refreshed(self) -> None:
        """Wait for a running background refresh, if any."""
        if self._task is not None:
            await self._task

    # -- drawing --------------------------------------------------------------

    def draw(self, frame: Frame, area: Rect) -> None:
        _, body, _ = screen_regions(area)
        if self.item_list is not None:
            self.item_list.draw(frame, body)
            return

        feeds = self.store.feeds
        inner_width = max(0, body.width - 2)
        if not feeds:
            lines = ["  No feeds configured"]
        else:
            self.selected = min(self.selected, len(feeds) - 1)
            start, end = visible_range(self.selected, len(feeds), max(0, body.height - 2))
            lines = []
            for i in range(start, end):
                feed = feeds[i]
                label = f"{feed.title or feed.url} ({len(feed.items)})"
                if feed.last_error:
                    label += " \x1b[31m!\x1b[0m"
                label = truncate_to_width(label, inner_width - 2, "")
                lines.append(f"\x1b[7m→ {label}\x1b[0m" if i == self.selected else f"  {label}")

        title = " Feeds (refreshing…) " if self.refreshing else " Feeds "
        frame.render_block(body, title, lines)
