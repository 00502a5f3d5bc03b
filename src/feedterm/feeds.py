"""Feed subscriptions and fetching.

``FeedStore`` keeps the subscribed feeds in display order.  Refreshing
downloads each feed with ``httpx`` and parses it with ``feedparser``;
``refresh_all`` fetches concurrently, with a cap on in-flight requests, and
reports every failure at once after all fetches have finished.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

import feedparser
import httpx

__all__ = [
    "DEFAULT_FETCH_LIMIT",
    "Feed",
    "FeedError",
    "FeedItem",
    "FeedRefreshError",
    "FeedStore",
]

logger = logging.getLogger(__name__)

DEFAULT_FETCH_LIMIT = 100
DEFAULT_TIMEOUT = 25.0


class FeedError(Exception):
    """A single feed could not be fetched or parsed."""


class FeedRefreshError(Exception):
    """One or more feeds failed during :meth:`FeedStore.refresh_all`.

    ``failures`` maps each failed feed's index to its exception.
    """

    def __init__(self, failures: dict[int, BaseException], titles: list[str]) -> None:
        self.failures = failures
        self.titles = titles
        super().__init__(f"{len(failures)} feed(s) failed to refresh: {', '.join(titles)}")


@dataclass(frozen=True)
class FeedItem:
    title: str
    link: str = ""
    summary: str = ""
    published: str = ""


@dataclass
class Feed:
    """A subscribed feed and the items of its last successful fetch."""

    title: str
    url: str
    items: list[FeedItem] = field(default_factory=list)
    last_error: str | None = None


def _parse_items(text: str, url: str) -> tuple[str | None, list[FeedItem]]:
    parsed = feedparser.parse(text)
    if parsed.bozo and not parsed.entries:
        raise FeedError(f"{url}: not a valid feed ({parsed.get('bozo_exception')})")

    items = [
        FeedItem(
            title=entry.get("title", "").strip(),
            link=entry.get("link", ""),
            summary=(entry.get("summary", "") or entry.get("description", "")).strip(),
            published=entry.get("published") or entry.get("updated") or "",
        )
        for entry in parsed.entries
    ]
    return parsed.feed.get("title"), items


class FeedStore:
    """Ordered list of subscribed feeds.  Feeds are addressed by index."""

    def __init__(self) -> None:
        self._feeds: list[Feed] = []

    def __len__(self) -> int:
        return len(self._feeds)

    def __iter__(self) -> Iterator[Feed]:
        return iter(self._feeds)

    @property
    def feeds(self) -> list[Feed]:
        return list(self._feeds)

    def add(self, title: str, url: str) -> int:
        """Subscribe to *url*; returns the new feed's index."""
        self._feeds.append(Feed(title=title, url=url))
        return len(self._feeds) - 1

    def get(self, index: int) -> Feed | None:
        if 0 <= index < len(self._feeds):
            return self._feeds[index]
        return None

    async def refresh(self, index: int, client: httpx.AsyncClient) -> list[FeedItem]:
        """Re-fetch one feed and replace its items.

        Returns the previous items.  On failure the error is recorded on the
        feed, its items are left alone, and the exception propagates.
        """
        feed = self.get(index)
        if feed is None:
            raise IndexError(f"no feed at index {index}")

        try:
            response = await client.get(feed.url, follow_redirects=True)
            response.raise_for_status()
            title, items = _parse_items(response.text, feed.url)
        except Exception as e:
            feed.last_error = str(e) or type(e).__name__
            logger.warning("refreshing %s failed: %s", feed.url, feed.last_error)
            raise

        old_items, feed.items = feed.items, items
        feed.last_error = None
        if title and not feed.title:
            feed.title = title
        logger.debug("refreshed %s: %d items", feed.url, len(items))
        return old_items

    async def refresh_all(
        self,
        client: httpx.AsyncClient | None = None,
        limit: int = DEFAULT_FETCH_LIMIT,
    ) -> None:
        """Refresh every feed, at most *limit* requests in flight.

        A failing feed never stops the others.  Raises
        :class:`FeedRefreshError` after all fetches are done if any failed.
        """
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")

        owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)

        semaphore = asyncio.Semaphore(limit)

        async def fetch(index: int) -> list[FeedItem]:
            async with semaphore:
                return await self.refresh(index, client)

        try:
            results = await asyncio.gather(
                *(fetch(i) for i in range(len(self._feeds))),
                return_exceptions=True,
            )
        finally:
            if owns_client:
                await client.aclose()

        failures: dict[int, BaseException] = {}
        for index, result in enumerate(results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                failures[index] = result
        if failures:
            raise FeedRefreshError(failures, [self._feeds[i].title or self._feeds[i].url for i in failures])
