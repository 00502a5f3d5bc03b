"""Cooperative cancellation token shared between a controller and one task."""

from __future__ import annotations

import asyncio


class CancellationToken:
    """One-shot flag that can be polled or awaited."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def cancelled(self) -> None:
        """Return once :meth:`cancel` has been called."""
        await self._event.wait()
