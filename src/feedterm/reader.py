"""Async source of raw terminal input.

``InputReader`` registers stdin with the running event loop, reassembles
escape sequences with ``StdinBuffer``, decodes them with ``decode_input``
and queues the results.  ``SIGWINCH`` is turned into resize occurrences.
Consumers pull one occurrence at a time with ``await reader.next()``.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal
import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, TextIO

from feedterm.events import PasteEvent, ResizeEvent
from feedterm.keys import InputOccurrence, decode_input
from feedterm.stdin_buffer import Pasted, StdinBuffer

__all__ = ["InputError", "InputReader", "InputSource", "RawInput"]

logger = logging.getLogger(__name__)

_EOF = object()


@dataclass(frozen=True)
class InputError:
    """Unreadable or malformed terminal input.  Not fatal."""

    message: str


RawInput = InputOccurrence | PasteEvent | ResizeEvent | InputError


class InputSource(Protocol):
    """Anything the event pump can race for the next raw occurrence."""

    async def next(self) -> RawInput | None:
        """Wait for the next occurrence; ``None`` at end of input."""
        ...

    def close(self) -> None: ...


class InputReader:
    """Reads the controlling terminal through the asyncio event loop.

    Parameters
    ----------
    size:
        Callable returning ``(columns, rows)``; queried on every ``SIGWINCH``.
    input_stream:
        Stream whose file descriptor is read.  Defaults to ``sys.stdin``.
    escape_timeout:
        Seconds a partial escape sequence may wait for its remainder before
        it is released as-is (a lone ESC keypress looks like this).
    """

    def __init__(
        self,
        size: Callable[[], tuple[int, int]],
        input_stream: TextIO | None = None,
        escape_timeout: float = 0.05,
    ) -> None:
        self._size = size
        self._input = input_stream or sys.stdin
        self._escape_timeout = escape_timeout
        self._queue: asyncio.Queue[RawInput | object] = asyncio.Queue()
        self._buffer = StdinBuffer()
        self._decoder = codecs.getincrementaldecoder("utf-8")("replace")
        self._loop: asyncio.AbstractEventLoop | None = None
        self._flush_handle: asyncio.TimerHandle | None = None
        self._sigwinch_installed = False
        self._ended = False

    # -- public -------------------------------------------------------------

    async def next(self) -> RawInput | None:
        if self._ended:
            return None
        if self._loop is None:
            self._start()
        item = await self._queue.get()
        if item is _EOF:
            self._ended = True
            return None
        return item  # type: ignore[return-value]

    def close(self) -> None:
        """Detach from the event loop.  Idempotent."""
        loop = self._loop
        if loop is None:
            return
        self._loop = None
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None
        try:
            loop.remove_reader(self._input.fileno())
        except (ValueError, OSError):
            pass
        if self._sigwinch_installed:
            loop.remove_signal_handler(signal.SIGWINCH)
            self._sigwinch_installed = False
        self._buffer.clear()

    # -- private: loop registration -----------------------------------------

    def _start(self) -> None:
        loop = asyncio.get_running_loop()
        self._loop = loop
        loop.add_reader(self._input.fileno(), self._on_readable)
        sigwinch = getattr(signal, "SIGWINCH", None)
        if sigwinch is not None:
            try:
                loop.add_signal_handler(sigwinch, self._on_resize)
                self._sigwinch_installed = True
            except (NotImplementedError, RuntimeError):
                # Not on the main thread, or no signal support in this loop
                logger.debug("SIGWINCH handler unavailable; resize events disabled")

    # -- private: callbacks -------------------------------------------------

    def _on_readable(self) -> None:
        try:
            raw = os.read(self._input.fileno(), 4096)
        except OSError as exc:
            self._queue.put_nowait(InputError(f"failed to read terminal input: {exc}"))
            return

        if not raw:
            if self._loop is not None:
                self._loop.remove_reader(self._input.fileno())
            self._queue.put_nowait(_EOF)
            return

        data = self._decoder.decode(raw)
        if "\ufffd" in data:
            # Invalid bytes were replaced; the rest of the chunk is still delivered
            self._queue.put_nowait(InputError(f"malformed terminal input: {raw!r}"))
            data = data.replace("\ufffd", "")

        self._process(data)

    def _process(self, data: str) -> None:
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None

        for chunk in self._buffer.feed(data):
            if isinstance(chunk, Pasted):
                self._queue.put_nowait(PasteEvent(text=chunk.text))
            else:
                self._emit_sequence(chunk)

        if self._buffer.pending and not self._buffer.in_paste and self._loop is not None:
            self._flush_handle = self._loop.call_later(
                self._escape_timeout, self._flush_timeout
            )

    def _flush_timeout(self) -> None:
        self._flush_handle = None
        for sequence in self._buffer.flush():
            self._emit_sequence(sequence)

    def _emit_sequence(self, sequence: str) -> None:
        occurrence = decode_input(sequence)
        if occurrence is None:
            logger.debug("ignoring unrecognised input sequence %r", sequence)
            return
        self._queue.put_nowait(occurrence)

    def _on_resize(self) -> None:
        columns, rows = self._size()
        self._queue.put_nowait(ResizeEvent(width=columns, height=rows))
