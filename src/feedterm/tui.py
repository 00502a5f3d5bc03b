"""Lifecycle controller: terminal session plus event pump.

``Tui`` owns the terminal device and the single live event pump.  It
switches the terminal into raw/alternate-screen mode on :meth:`Tui.enter`,
restores it on :meth:`Tui.exit`, cooperates with shell job control through
:meth:`Tui.suspend` / :meth:`Tui.resume`, and draws frames with
differential rendering (only rows that changed are rewritten).

Use it as an async context manager so the terminal is restored on every
exit path::

    async with Tui().tick_rate(4).frame_rate(30) as tui:
        while (event := await tui.next()) is not None:
            ...
"""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Callable
from types import TracebackType

from feedterm.cancellation import CancellationToken
from feedterm.channel import Receiver, Sender, channel
from feedterm.events import Event
from feedterm.frame import Frame, Rect
from feedterm.pump import DEFAULT_FRAME_RATE, DEFAULT_TICK_RATE, EventPump
from feedterm.reader import InputReader, InputSource
from feedterm.terminal import ProcessTerminal, Terminal

__all__ = ["Tui"]

logger = logging.getLogger(__name__)

# stop(): poll interval and the two bounds (in polls) for abort / give up
_STOP_POLL_SECONDS = 0.001
_STOP_ABORT_AFTER = 50
_STOP_GIVE_UP_AFTER = 100

_CLEAR_SCREEN = "\x1b[2J"


def _default_input(terminal: Terminal) -> InputSource:
    return InputReader(terminal.size)


class Tui:
    """Terminal session with a bounded-shutdown event pump.

    Parameters
    ----------
    terminal:
        Terminal device; defaults to a ``ProcessTerminal`` on stdin/stderr.
    input_factory:
        Builds the raw input source raced by the pump.  Called on each
        :meth:`enter` after the previous source was closed by :meth:`exit`.
    """

    def __init__(
        self,
        terminal: Terminal | None = None,
        input_factory: Callable[[Terminal], InputSource] | None = None,
    ) -> None:
        self.terminal: Terminal = terminal if terminal is not None else ProcessTerminal()
        self._input_factory = input_factory or _default_input
        self._input: InputSource | None = None

        self._event_tx: Sender[Event]
        self._event_rx: Receiver[Event]
        self._event_tx, self._event_rx = channel()

        self._task: asyncio.Task[None] | None = None
        self._token = CancellationToken()

        self._tick_rate = DEFAULT_TICK_RATE
        self._frame_rate = DEFAULT_FRAME_RATE
        self._mouse = False
        self._paste = False

        # Differential rendering state
        self._previous_lines: list[str] = []
        self._force_redraw = True
        self._full_redraw_count = 0

    # ------------------------------------------------------------------
    # Configuration (fluent)
    # ------------------------------------------------------------------

    def tick_rate(self, rate: float) -> Tui:
        self._tick_rate = rate
        return self

    def frame_rate(self, rate: float) -> Tui:
        self._frame_rate = rate
        return self

    def mouse(self, enabled: bool) -> Tui:
        self._mouse = enabled
        return self

    def paste(self, enabled: bool) -> Tui:
        self._paste = enabled
        return self

    @property
    def task(self) -> asyncio.Task[None] | None:
        """The current pump task, if one was started."""
        return self._task

    @property
    def full_redraws(self) -> int:
        """Number of full (non-differential) redraws performed."""
        return self._full_redraw_count

    # ------------------------------------------------------------------
    # Pump control
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        self._token.cancel()

    def start(self) -> None:
        """Start a new pump, superseding any running one."""
        self.cancel()
        self._token = CancellationToken()
        if self._input is None:
            self._input = self._input_factory(self.terminal)
        pump = EventPump(
            self._event_tx.clone(),
            self._token,
            self._input,
            tick_rate=self._tick_rate,
            frame_rate=self._frame_rate,
        )
        self._task = asyncio.create_task(pump.run(), name="feedterm-event-pump")

    async def stop(self) -> None:
        """Cancel the pump and wait a bounded time for it to finish.

        After ~50 ms the task is aborted; after ~100 ms an error is logged
        and the method returns anyway.
        """
        self.cancel()
        task = self._task
        if task is None:
            return
        counter = 0
        while not task.done():
            await asyncio.sleep(_STOP_POLL_SECONDS)
            counter += 1
            if counter > _STOP_ABORT_AFTER:
                task.cancel()
            if counter > _STOP_GIVE_UP_AFTER:
                logger.error("Failed to abort task in 100 milliseconds for unknown reason")
                return
        if not task.cancelled() and task.exception() is not None:
            logger.error("event pump failed", exc_info=task.exception())

    # ------------------------------------------------------------------
    # Terminal session
    # ------------------------------------------------------------------

    async def enter(self) -> None:
        """Switch to raw mode and the alternate screen, then start the pump."""
        term = self.terminal
        term.enable_raw_mode()
        term.enter_alternate_screen()
        term.hide_cursor()
        if self._mouse:
            term.enable_mouse_capture()
        if self._paste:
            term.enable_bracketed_paste()
        self._force_redraw = True
        self.start()

    async def exit(self) -> None:
        """Stop the pump and restore the terminal.  Safe to call repeatedly."""
        await self.stop()
        if self._input is not None:
            self._input.close()
            self._input = None

        term = self.terminal
        if term.is_raw_mode_enabled():
            term.flush()
            if self._paste:
                term.disable_bracketed_paste()
            if self._mouse:
                term.disable_mouse_capture()
            term.leave_alternate_screen()
            term.show_cursor()
            term.disable_raw_mode()

    async def suspend(self) -> None:
        """Restore the terminal and stop the process (shell job control)."""
        await self.exit()
        sigtstp = getattr(signal, "SIGTSTP", None)
        if sigtstp is not None:
            signal.raise_signal(sigtstp)

    async def resume(self) -> None:
        await self.enter()

    async def next(self) -> Event | None:
        """Next event, or ``None`` once the event channel has closed."""
        return await self._event_rx.recv()

    def close(self) -> None:
        """Release the controller's own sender so the channel can close."""
        self._event_tx.close()

    async def __aenter__(self) -> Tui:
        try:
            await self.enter()
        except BaseException:
            # A partially entered terminal is still restored
            await self.exit()
            self.close()
            raise
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            await self.exit()
        finally:
            self.close()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def size(self) -> Rect:
        columns, rows = self.terminal.size()
        return Rect(0, 0, columns, rows)

    def resize(self, width: int, height: int) -> None:
        """Forget the previous frame so the next draw repaints everything."""
        logger.debug("terminal resized to %dx%d", width, height)
        self._force_redraw = True

    def clear(self) -> None:
        self._force_redraw = True

    def draw(self, render: Callable[[Frame], None]) -> Frame:
        """Compose a frame with *render* and write the rows that changed."""
        frame = Frame(self.size())
        render(frame)
        lines = frame.lines()

        full = self._force_redraw or len(lines) != len(self._previous_lines)
        out: list[str] = []
        if full:
            self._full_redraw_count += 1
            out.append(_CLEAR_SCREEN)
        for row, line in enumerate(lines):
            if full or line != self._previous_lines[row]:
                out.append(f"\x1b[{row + 1};1H{line}\x1b[0m")

        if out:
            self.terminal.write("".join(out))
            self.terminal.flush()

        self._previous_lines = lines
        self._force_redraw = False
        return frame
