"""Reassembly of raw stdin chunks into complete input sequences.

Terminal input can arrive split at arbitrary byte boundaries, most often in
the middle of an escape sequence (mouse reports are long and frequently
cut).  ``StdinBuffer`` holds partial sequences until they are complete and
extracts bracketed pastes as a single unit.  It does no timing of its own:
the reader decides when a dangling partial sequence (typically a lone ESC
keypress) has waited long enough and calls :meth:`StdinBuffer.flush`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

_SGR_MOUSE_RE = re.compile(r"<\d+;\d+;\d+[Mm]")

Completeness = Literal["complete", "incomplete", "not-escape"]


@dataclass(frozen=True)
class Pasted:
    """Text delivered between bracketed-paste markers."""

    text: str


Chunk = str | Pasted


def _sequence_status(data: str) -> Completeness:
    """Classify *data*: a complete escape sequence, a prefix of one, or plain text."""
    if not data.startswith(ESC):
        return "not-escape"
    if len(data) == 1:
        return "incomplete"

    introducer = data[1]

    if introducer == "[":
        # Legacy X10 mouse: ESC [ M b x y
        if data.startswith(f"{ESC}[M"):
            return "complete" if len(data) >= 6 else "incomplete"
        return _csi_status(data[2:])

    if introducer in ("]", "P", "_"):
        # OSC may end with BEL; OSC, DCS and APC all accept ST
        if data.endswith(f"{ESC}\\") and len(data) > 3:
            return "complete"
        if introducer == "]" and data.endswith("\x07"):
            return "complete"
        return "incomplete"

    if introducer == "O":
        # SS3 with an optional modifier digit: ESC O P, ESC O 5 P
        if len(data) < 3:
            return "incomplete"
        if data[2].isdigit() and len(data) < 4:
            return "incomplete"
        return "complete"

    # Meta key: ESC followed by a single character
    return "complete"


def _csi_status(payload: str) -> Completeness:
    if not payload:
        return "incomplete"
    final = ord(payload[-1])
    if not 0x40 <= final <= 0x7E:
        return "incomplete"
    if payload.startswith("<"):
        # SGR mouse: the final byte is only meaningful once all fields arrived
        return "complete" if _SGR_MOUSE_RE.fullmatch(payload) else "incomplete"
    return "complete"


def split_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete sequences.

    Returns ``(sequences, remainder)`` where *remainder* is an unfinished
    escape sequence at the end of the buffer.
    """
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        if buffer[pos] != ESC:
            sequences.append(buffer[pos])
            pos += 1
            continue

        end = pos + 1
        while True:
            status = _sequence_status(buffer[pos:end])
            if status != "incomplete":
                break
            if end >= len(buffer):
                return sequences, buffer[pos:]
            end += 1

        sequences.append(buffer[pos:end])
        pos = end

    return sequences, ""


class StdinBuffer:
    """Accumulates stdin data and hands back complete chunks."""

    def __init__(self) -> None:
        self._buffer: str = ""
        self._paste: str | None = None

    @property
    def pending(self) -> str:
        """Partial data held back waiting for the rest of a sequence."""
        return self._paste if self._paste is not None else self._buffer

    @property
    def in_paste(self) -> bool:
        return self._paste is not None

    def feed(self, data: str) -> list[Chunk]:
        """Add *data* and return every chunk that is now complete."""
        chunks: list[Chunk] = []
        self._buffer += data

        while self._buffer:
            if self._paste is not None:
                self._paste += self._buffer
                self._buffer = ""
                end = self._paste.find(BRACKETED_PASTE_END)
                if end == -1:
                    break
                content = self._paste[:end]
                self._buffer = self._paste[end + len(BRACKETED_PASTE_END) :]
                self._paste = None
                chunks.append(Pasted(content))
                continue

            start = self._buffer.find(BRACKETED_PASTE_START)
            if start == -1:
                sequences, self._buffer = split_sequences(self._buffer)
                chunks.extend(sequences)
                break

            sequences, rest = split_sequences(self._buffer[:start])
            chunks.extend(sequences)
            if rest:
                chunks.append(rest)
            self._paste = ""
            self._buffer = self._buffer[start + len(BRACKETED_PASTE_START) :]
            if not self._buffer:
                break

        return chunks

    def flush(self) -> list[str]:
        """Release a held partial sequence as-is (used after an idle timeout).

        An unterminated paste is not flushed; it stays buffered until its end
        marker arrives or :meth:`clear` is called.
        """
        if self._paste is not None or not self._buffer:
            return []
        sequences = [self._buffer]
        self._buffer = ""
        return sequences

    def clear(self) -> None:
        self._buffer = ""
        self._paste = None
