"""Terminal abstraction: raw mode and mode-switching control sequences.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal`` that
puts the controlling tty into raw mode via :mod:`termios` / :mod:`tty` and
writes control sequences to ``stderr``, so that a redirected ``stdout``
never receives escape codes.
"""

from __future__ import annotations

import os
import sys
import termios
import tty
from typing import Protocol, TextIO

__all__ = ["ProcessTerminal", "Terminal", "TerminalError"]

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_ALT_SCREEN_ENABLE = "\x1b[?1049h"
_ALT_SCREEN_DISABLE = "\x1b[?1049l"

_BRACKETED_PASTE_ENABLE = "\x1b[?2004h"
_BRACKETED_PASTE_DISABLE = "\x1b[?2004l"

# Normal tracking, button-event tracking, any-event tracking, urxvt, SGR
_MOUSE_MODES = ("1000", "1002", "1003", "1015", "1006")
_MOUSE_CAPTURE_ENABLE = "".join(f"\x1b[?{m}h" for m in _MOUSE_MODES)
_MOUSE_CAPTURE_DISABLE = "".join(f"\x1b[?{m}l" for m in reversed(_MOUSE_MODES))

_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"


class TerminalError(OSError):
    """A terminal mode switch or control-sequence write failed."""


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for the terminal device owned by a ``Tui``."""

    def enable_raw_mode(self) -> None: ...

    def disable_raw_mode(self) -> None: ...

    def is_raw_mode_enabled(self) -> bool: ...

    def enter_alternate_screen(self) -> None: ...

    def leave_alternate_screen(self) -> None: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...

    def enable_mouse_capture(self) -> None: ...

    def disable_mouse_capture(self) -> None: ...

    def enable_bracketed_paste(self) -> None: ...

    def disable_bracketed_paste(self) -> None: ...

    def write(self, data: str) -> None: ...

    def flush(self) -> None: ...

    def size(self) -> tuple[int, int]:
        """Return ``(columns, rows)``."""
        ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal backed by the process's stdin (input modes) and stderr (output).

    Output is buffered until :meth:`flush`; mode switches flush immediately
    so that the terminal state changes in the order the calls were made.
    """

    def __init__(
        self,
        input_stream: TextIO | None = None,
        output_stream: TextIO | None = None,
    ) -> None:
        self._input = input_stream or sys.stdin
        self._output = output_stream or sys.stderr
        self._original_termios: list | None = None

    # -- raw mode -----------------------------------------------------------

    def enable_raw_mode(self) -> None:
        fd = self._input.fileno()
        try:
            if self._original_termios is None:
                self._original_termios = termios.tcgetattr(fd)
            tty.setraw(fd)
        except (termios.error, OSError) as exc:
            raise TerminalError(f"failed to enable raw mode: {exc}") from exc

    def disable_raw_mode(self) -> None:
        if self._original_termios is None:
            return
        fd = self._input.fileno()
        try:
            termios.tcsetattr(fd, termios.TCSADRAIN, self._original_termios)
        except (termios.error, OSError) as exc:
            raise TerminalError(f"failed to disable raw mode: {exc}") from exc
        self._original_termios = None

    def is_raw_mode_enabled(self) -> bool:
        """Ask the tty driver whether canonical mode and echo are off."""
        try:
            fd = self._input.fileno()
            attrs = termios.tcgetattr(fd)
        except (termios.error, OSError, ValueError):
            return False
        lflag = attrs[3]  # c_lflag
        return not bool(lflag & (termios.ICANON | termios.ECHO))

    # -- modes --------------------------------------------------------------

    def enter_alternate_screen(self) -> None:
        self._execute(_ALT_SCREEN_ENABLE)

    def leave_alternate_screen(self) -> None:
        self._execute(_ALT_SCREEN_DISABLE)

    def hide_cursor(self) -> None:
        self._execute(_HIDE_CURSOR)

    def show_cursor(self) -> None:
        self._execute(_SHOW_CURSOR)

    def enable_mouse_capture(self) -> None:
        self._execute(_MOUSE_CAPTURE_ENABLE)

    def disable_mouse_capture(self) -> None:
        self._execute(_MOUSE_CAPTURE_DISABLE)

    def enable_bracketed_paste(self) -> None:
        self._execute(_BRACKETED_PASTE_ENABLE)

    def disable_bracketed_paste(self) -> None:
        self._execute(_BRACKETED_PASTE_DISABLE)

    # -- output -------------------------------------------------------------

    def write(self, data: str) -> None:
        try:
            self._output.write(data)
        except OSError as exc:
            raise TerminalError(f"terminal write failed: {exc}") from exc

    def flush(self) -> None:
        try:
            self._output.flush()
        except OSError as exc:
            raise TerminalError(f"terminal flush failed: {exc}") from exc

    def size(self) -> tuple[int, int]:
        try:
            size = os.get_terminal_size(self._output.fileno())
        except (ValueError, OSError):
            return 80, 24
        return size.columns, size.lines

    def _execute(self, sequence: str) -> None:
        self.write(sequence)
        self.flush()
