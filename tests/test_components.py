"""Tests for the built-in feed reader components."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from feedterm.action import ErrorAction, HelpAction, RefreshAction, RenderAction
from feedterm.channel import channel
from feedterm.components import FeedList, Home, ItemList, screen_regions, visible_range
from feedterm.config import Config
from feedterm.events import KeyEvent, MouseEvent
from feedterm.feeds import FeedItem, FeedStore
from feedterm.frame import Frame, Rect

RSS = """<?xml version="1.0"?>
<rss version="2.0"><channel><title>T</title>
<item><title>Only item</title><link>https://example.com/1</link></item>
</channel></rss>
"""


def key(code: str, **mods: bool) -> KeyEvent:
    return KeyEvent(code=code, **mods)


def make_store(*titles: str) -> FeedStore:
    store = FeedStore()
    for title in titles:
        store.add(title, f"https://{title.lower()}.example/rss")
    return store


def screen(component, width: int = 30, height: int = 8) -> list[str]:
    frame = Frame(Rect(0, 0, width, height))
    component.draw(frame, frame.area)
    return frame.lines()


# ---------------------------------------------------------------------------
# Layout helpers
# ---------------------------------------------------------------------------


class TestLayout:
    def test_screen_regions(self) -> None:
        header, body, status = screen_regions(Rect(0, 0, 10, 6))
        assert header == Rect(0, 0, 10, 1)
        assert body == Rect(0, 1, 10, 4)
        assert status == Rect(0, 5, 10, 1)

    def test_visible_range_keeps_selection_in_view(self) -> None:
        assert visible_range(0, 10, 4) == (0, 4)
        assert visible_range(5, 10, 4) == (3, 7)
        assert visible_range(9, 10, 4) == (6, 10)
        assert visible_range(0, 0, 4) == (0, 0)


# ---------------------------------------------------------------------------
# Home
# ---------------------------------------------------------------------------


class TestHome:
    def test_greeting_in_status_line(self) -> None:
        lines = screen(Home(greeting="hello world"))
        assert "feedterm" in lines[0]
        assert lines[-1].startswith("hello world")

    def test_help_toggles(self) -> None:
        home = Home()
        home.update(HelpAction())
        assert home.show_help
        home.update(HelpAction())
        assert not home.show_help

    def test_help_panel_lists_keybindings(self) -> None:
        home = Home()
        home.register_config_handler(Config())
        home.update(HelpAction())
        text = "\n".join(screen(home, width=40, height=16))
        assert "Help" in text
        assert "Quit" in text
        assert "ctrl+z" in text

    def test_escape_closes_help(self) -> None:
        home = Home()
        home.update(HelpAction())
        assert home.handle_key_events(key("escape")) == HelpAction()
        home.update(HelpAction())
        assert not home.show_help
        assert home.handle_key_events(key("escape")) is None

    def test_last_error_is_shown_until_refresh(self) -> None:
        home = Home()
        home.update(ErrorAction(message="network down"))
        assert "network down" in screen(home)[-1]
        home.update(RefreshAction())
        assert home.last_error is None


# ---------------------------------------------------------------------------
# ItemList
# ---------------------------------------------------------------------------


class TestItemList:
    def make(self) -> tuple[ItemList, FeedStore]:
        store = make_store("News")
        store.get(0).items = [FeedItem(title="one"), FeedItem(title="two")]
        return ItemList(store, 0), store

    def test_draws_items_of_its_feed(self) -> None:
        items, _ = self.make()
        lines = screen(items)
        assert "News" in lines[0]
        assert "→ one" in lines[1]
        assert "two" in lines[2]

    def test_navigation_wraps(self) -> None:
        items, _ = self.make()
        assert items.handle_key_events(key("j")) == RenderAction()
        assert items.selected == 1
        items.handle_key_events(key("down"))
        assert items.selected == 0
        items.handle_key_events(key("up"))
        assert items.selected == 1

    def test_mouse_wheel_moves(self) -> None:
        items, _ = self.make()
        items.handle_mouse_events(MouseEvent(kind="scroll_down", column=0, row=0))
        assert items.selected == 1

    def test_escape_marks_done(self) -> None:
        items, _ = self.make()
        items.handle_key_events(key("escape"))
        assert items.done

    def test_sees_replaced_items(self) -> None:
        items, store = self.make()
        store.get(0).items = [FeedItem(title="fresh")]
        assert "fresh" in "\n".join(screen(items))

    def test_missing_feed(self) -> None:
        items = ItemList(FeedStore(), 4)
        assert "no longer exists" in "\n".join(screen(items))
        assert items.handle_key_events(key("j")) is None


# ---------------------------------------------------------------------------
# FeedList
# ---------------------------------------------------------------------------


class TestFeedList:
    def test_draws_feed_titles(self) -> None:
        lines = screen(FeedList(make_store("Alpha", "Beta")))
        assert "Feeds" in lines[1]
        assert "→ Alpha (0)" in lines[2]
        assert "Beta (0)" in lines[3]

    def test_empty_store(self) -> None:
        feeds = FeedList(FeedStore())
        assert "No feeds configured" in "\n".join(screen(feeds))
        assert feeds.handle_key_events(key("down")) is None
        assert feeds.handle_key_events(key("enter")) is None

    def test_navigation(self) -> None:
        feeds = FeedList(make_store("A", "B", "C"))
        feeds.handle_key_events(key("k"))
        assert feeds.selected == 2
        feeds.handle_key_events(key("down"))
        assert feeds.selected == 0

    def test_enter_opens_and_escape_returns(self) -> None:
        store = make_store("A", "B")
        store.get(1).items = [FeedItem(title="inside b")]
        feeds = FeedList(store)
        feeds.handle_key_events(key("j"))

        assert feeds.handle_key_events(key("enter")) == RenderAction()
        assert feeds.item_list is not None
        assert feeds.item_list.index == 1
        assert "inside b" in "\n".join(screen(feeds))

        feeds.handle_key_events(key("escape"))
        assert feeds.item_list is None
        assert "→ B" in "\n".join(screen(feeds))

    def test_escape_with_help_open_only_closes_help(self) -> None:
        store = make_store("A")
        store.get(0).items = [FeedItem(title="inside a")]
        feeds = FeedList(store)
        home = Home()
        feeds.handle_key_events(key("enter"))
        for component in (feeds, home):
            component.update(HelpAction())

        replies = [c.handle_key_events(key("escape")) for c in (feeds, home)]
        assert replies == [None, HelpAction()]
        for component in (feeds, home):
            component.update(HelpAction())

        assert not home.show_help
        assert feeds.item_list is not None
        assert "inside a" in "\n".join(screen(feeds))

    def test_navigation_is_ignored_while_help_is_open(self) -> None:
        feeds = FeedList(make_store("A", "B"))
        feeds.update(HelpAction())
        assert feeds.handle_key_events(key("j")) is None
        assert feeds.handle_mouse_events(MouseEvent(kind="scroll_down", column=0, row=0)) is None
        assert feeds.selected == 0

    @pytest.mark.asyncio
    async def test_refresh_runs_in_background_and_reports_render(self) -> None:
        store = make_store("Good")
        feeds = FeedList(
            store,
            client_factory=lambda: httpx.AsyncClient(
                transport=httpx.MockTransport(lambda r: httpx.Response(200, text=RSS))
            ),
        )
        tx, rx = channel()
        feeds.register_action_handler(tx)

        assert feeds.update(RefreshAction()) is None
        assert feeds.refreshing
        assert "refreshing" in screen(feeds)[1]
        await asyncio.wait_for(feeds.wait_refreshed(), 1.0)

        assert rx.try_recv() == RenderAction()
        assert store.get(0).items[0].title == "Only item"

    @pytest.mark.asyncio
    async def test_refresh_failure_is_reported_as_error(self) -> None:
        store = make_store("Down")
        feeds = FeedList(
            store,
            client_factory=lambda: httpx.AsyncClient(
                transport=httpx.MockTransport(lambda r: httpx.Response(500))
            ),
        )
        tx, rx = channel()
        feeds.register_action_handler(tx)
        feeds.register_config_handler(Config(max_concurrent_fetches=1))

        feeds.update(RefreshAction())
        await asyncio.wait_for(feeds.wait_refreshed(), 1.0)

        action = rx.try_recv()
        assert isinstance(action, ErrorAction)
        assert "Down" in action.message
        assert "!" in screen(feeds)[2]

    @pytest.mark.asyncio
    async def test_refresh_is_not_started_twice(self) -> None:
        started = 0

        async def handler(request: httpx.Request) -> httpx.Response:
            nonlocal started
            started += 1
            await asyncio.sleep(0.01)
            return httpx.Response(200, text=RSS)

        feeds = FeedList(
            make_store("A"),
            client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        feeds.update(RefreshAction())
        feeds.update(RefreshAction())
        await asyncio.wait_for(feeds.wait_refreshed(), 1.0)
        assert started == 1

    @pytest.mark.asyncio
    async def test_closed_channel_is_tolerated(self) -> None:
        feeds = FeedList(
            make_store("A"),
            client_factory=lambda: httpx.AsyncClient(
                transport=httpx.MockTransport(lambda r: httpx.Response(200, text=RSS))
            ),
        )
        tx, rx = channel()
        feeds.register_action_handler(tx)
        rx.close()
        feeds.update(RefreshAction())
        await asyncio.wait_for(feeds.wait_refreshed(), 1.0)

    @pytest.mark.asyncio
    async def test_dispose_cancels_refresh_and_closes_client(self) -> None:
        started = asyncio.Event()
        clients: list[httpx.AsyncClient] = []

        async def hang(request: httpx.Request) -> httpx.Response:
            started.set()
            await asyncio.Event().wait()
            return httpx.Response(200, text=RSS)

        def make_client() -> httpx.AsyncClient:
            client = httpx.AsyncClient(transport=httpx.MockTransport(hang))
            clients.append(client)
            return client

        feeds = FeedList(make_store("Slow"), client_factory=make_client)
        feeds.update(RefreshAction())
        await asyncio.wait_for(started.wait(), 1.0)

        await asyncio.wait_for(feeds.dispose(), 1.0)

        assert not feeds.refreshing
        assert clients[0].is_closed

    @pytest.mark.asyncio
    async def test_dispose_without_refresh(self) -> None:
        await FeedList(make_store("A")).dispose()
