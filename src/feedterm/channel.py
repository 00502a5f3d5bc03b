"""Unbounded multi-producer, single-consumer channel.

Uses ``asyncio.Queue`` internally.  Every ``Sender`` handle counts as one
producer; when the last handle is closed the receiver drains what is left
and then sees ``None``.  Closing the receiver makes further sends raise
``ChannelClosed`` so producers learn that nobody is listening any more.
"""

from __future__ import annotations

import asyncio

__all__ = ["ChannelClosed", "Receiver", "Sender", "channel"]

_SENTINEL = object()


class ChannelClosed(Exception):
    """Raised by ``Sender.send`` when the channel no longer accepts items."""


class _ChannelState[T]:
    def __init__(self) -> None:
        self.queue: asyncio.Queue[T | object] = asyncio.Queue()
        self.senders = 0
        self.receiver_closed = False


class Sender[T]:
    """Producer handle.  Cheap to clone; close each clone when done."""

    def __init__(self, state: _ChannelState[T]) -> None:
        self._state = state
        self._closed = False
        state.senders += 1

    @property
    def is_closed(self) -> bool:
        """``True`` if this handle was closed or the receiver went away."""
        return self._closed or self._state.receiver_closed

    def send(self, item: T) -> None:
        """Queue *item* without blocking."""
        if self._closed:
            raise ChannelClosed("send on a closed sender")
        if self._state.receiver_closed:
            raise ChannelClosed("receiver has been closed")
        self._state.queue.put_nowait(item)

    def clone(self) -> Sender[T]:
        if self._closed:
            raise ChannelClosed("cannot clone a closed sender")
        return Sender(self._state)

    def close(self) -> None:
        """Drop this handle.  Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._state.senders -= 1
        if self._state.senders == 0:
            self._state.queue.put_nowait(_SENTINEL)


class Receiver[T]:
    """Consumer handle."""

    def __init__(self, state: _ChannelState[T]) -> None:
        self._state = state
        self._ended = False

    async def recv(self) -> T | None:
        """Wait for the next item; ``None`` once every sender is closed."""
        if self._ended:
            return None
        item = await self._state.queue.get()
        if item is _SENTINEL:
            self._ended = True
            return None
        return item  # type: ignore[return-value]

    def try_recv(self) -> T | None:
        """Return the next queued item without waiting, or ``None``."""
        if self._ended:
            return None
        try:
            item = self._state.queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        if item is _SENTINEL:
            self._ended = True
            return None
        return item  # type: ignore[return-value]

    def __len__(self) -> int:
        return self._state.queue.qsize()

    @property
    def is_ended(self) -> bool:
        return self._ended

    def close(self) -> None:
        """Stop accepting items; queued items can still be received."""
        self._state.receiver_closed = True


def channel[T]() -> tuple[Sender[T], Receiver[T]]:
    """Create a connected ``(Sender, Receiver)`` pair."""
    state: _ChannelState[T] = _ChannelState()
    return Sender(state), Receiver(state)
