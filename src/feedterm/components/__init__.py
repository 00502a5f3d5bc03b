"""Built-in components of the feed reader."""

from feedterm.components.feed_list import FeedList
from feedterm.components.home import Home
from feedterm.components.item_list import ItemList
from feedterm.components.layout import screen_regions, visible_range

__all__ = ["FeedList", "Home", "ItemList", "screen_regions", "visible_range"]
