"""Application modes.  Keybindings are looked up per mode."""

from __future__ import annotations

from enum import StrEnum

__all__ = ["Mode"]


class Mode(StrEnum):
    HOME = "home"
    FEEDS = "feeds"

    @classmethod
    def default(cls) -> Mode:
        return cls.HOME
