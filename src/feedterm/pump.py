"""The event pump: one ordered ``Event`` stream from timers and input.

Each iteration races four sources -- the tick timer, the render timer, the
next raw input occurrence and the cancellation token -- and consumes exactly
one of them.  Sources that became ready but were not consumed stay armed
and win a later iteration, so nothing is lost; sources are checked in the
fixed order cancellation, tick, render, input.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from feedterm.cancellation import CancellationToken
from feedterm.channel import ChannelClosed, Sender
from feedterm.events import (
    ErrorEvent,
    Event,
    InitEvent,
    KeyEvent,
    KeyInputEvent,
    MouseEvent,
    MouseInputEvent,
    RenderEvent,
    TickEvent,
)
from feedterm.reader import InputError, InputSource, RawInput

__all__ = ["DEFAULT_FRAME_RATE", "DEFAULT_TICK_RATE", "EventPump", "Interval"]

logger = logging.getLogger(__name__)

DEFAULT_TICK_RATE = 4.0
DEFAULT_FRAME_RATE = 60.0
INPUT_RETRY_DELAY = 0.01
INPUT_RETRY_MAX_DELAY = 1.0


class Interval:
    """Periodic timer.  The first tick completes immediately.

    A tick is only consumed when :meth:`tick` returns; a cancelled wait
    leaves the deadline untouched.  When the consumer falls behind by more
    than a period, missed ticks are skipped instead of delivered in a burst.
    """

    def __init__(self, period: float) -> None:
        if period <= 0:
            raise ValueError(f"interval period must be positive, got {period}")
        self.period = period
        self._deadline: float | None = None

    async def tick(self) -> None:
        loop = asyncio.get_running_loop()
        if self._deadline is None:
            self._deadline = loop.time()
        delay = self._deadline - loop.time()
        if delay > 0:
            await asyncio.sleep(delay)

        now = loop.time()
        self._deadline += self.period
        if self._deadline <= now:
            self._deadline = now + self.period


class EventPump:
    """Background producer feeding ``Event`` values into *sender*.

    The pump owns *sender* and closes it when :meth:`run` returns, whatever
    the reason; that is how the receiving side learns the pump has ended.
    *source* belongs to the caller and outlives the pump.
    """

    def __init__(
        self,
        sender: Sender[Event],
        token: CancellationToken,
        source: InputSource,
        tick_rate: float = DEFAULT_TICK_RATE,
        frame_rate: float = DEFAULT_FRAME_RATE,
    ) -> None:
        self._sender = sender
        self._token = token
        self._source = source
        self._tick = Interval(1.0 / tick_rate)
        self._render = Interval(1.0 / frame_rate)

    async def run(self) -> None:
        tasks: dict[str, asyncio.Task[Any] | None] = {
            "cancel": None,
            "tick": None,
            "render": None,
            "input": None,
        }
        try:
            await self._run(tasks)
        finally:
            pending = [t for t in tasks.values() if t is not None and not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            self._sender.close()

    # -- private ------------------------------------------------------------

    async def _run(self, tasks: dict[str, asyncio.Task[Any] | None]) -> None:
        if self._token.is_cancelled or not self._send(InitEvent()):
            return

        input_open = True
        failures = 0
        tasks["cancel"] = asyncio.create_task(self._token.cancelled())

        while True:
            if self._token.is_cancelled:
                return

            self._arm(tasks, "tick", self._tick.tick)
            self._arm(tasks, "render", self._render.tick)
            if input_open:
                self._arm(tasks, "input", self._read_input(failures))

            waiting = [t for t in tasks.values() if t is not None]
            await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)

            if self._token.is_cancelled:
                return

            if self._take(tasks, "tick") is not None:
                if not self._send(TickEvent()):
                    return
                continue

            if self._take(tasks, "render") is not None:
                if not self._send(RenderEvent()):
                    return
                continue

            done = self._take(tasks, "input")
            if done is None:
                continue

            try:
                raw = done.result()
            except Exception:
                failures += 1
                logger.exception("terminal input source failed (attempt %d)", failures)
                if not self._send(ErrorEvent()):
                    return
                continue
            failures = 0

            if raw is None:
                logger.debug("terminal input reached end of stream")
                input_open = False
                continue

            event = self._translate(raw)
            if event is not None and not self._send(event):
                return

    def _read_input(
        self, failures: int
    ) -> Callable[[], Coroutine[Any, Any, RawInput | None]]:
        """Factory for the next read; waits out a backoff after failed reads."""
        if not failures:
            return self._source.next
        delay = min(INPUT_RETRY_DELAY * 2 ** (failures - 1), INPUT_RETRY_MAX_DELAY)

        async def read() -> RawInput | None:
            await asyncio.sleep(delay)
            return await self._source.next()

        return read

    @staticmethod
    def _arm(
        tasks: dict[str, asyncio.Task[Any] | None],
        name: str,
        factory: Callable[[], Coroutine[Any, Any, Any]],
    ) -> None:
        if tasks[name] is None:
            tasks[name] = asyncio.create_task(factory())

    @staticmethod
    def _take(
        tasks: dict[str, asyncio.Task[Any] | None], name: str
    ) -> asyncio.Task[Any] | None:
        task = tasks[name]
        if task is None or not task.done():
            return None
        tasks[name] = None
        return task

    @staticmethod
    def _translate(raw: RawInput) -> Event | None:
        if isinstance(raw, InputError):
            logger.warning("%s", raw.message)
            return ErrorEvent()
        if isinstance(raw, KeyEvent):
            # Release/repeat reports would dispatch the same action twice
            if raw.kind != "press":
                return None
            return KeyInputEvent(key=raw)
        if isinstance(raw, MouseEvent):
            return MouseInputEvent(mouse=raw)
        return raw

    def _send(self, event: Event) -> bool:
        """Send *event*; ``False`` once nobody is listening any more."""
        try:
            self._sender.send(event)
        except ChannelClosed:
            logger.debug("event receiver closed; stopping pump")
            return False
        return True
