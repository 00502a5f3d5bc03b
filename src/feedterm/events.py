"""Low-level events produced by the event pump.

An ``Event`` is one occurrence from the terminal, the OS, or the pump's own
clocks.  Components see events through ``Component.handle_events``; the main
loop translates the interesting ones into actions.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

__all__ = [
    "ClosedEvent",
    "ErrorEvent",
    "Event",
    "FocusGainedEvent",
    "FocusLostEvent",
    "InitEvent",
    "KeyEvent",
    "KeyEventKind",
    "KeyInputEvent",
    "MouseButton",
    "MouseEvent",
    "MouseEventKind",
    "MouseInputEvent",
    "PasteEvent",
    "QuitEvent",
    "RenderEvent",
    "ResizeEvent",
    "TickEvent",
]

KeyEventKind = Literal["press", "repeat", "release"]

MouseEventKind = Literal["down", "up", "drag", "moved", "scroll_up", "scroll_down"]

MouseButton = Literal["left", "middle", "right", "none"]


# --- Input payloads ---


class KeyEvent(BaseModel):
    """A decoded key occurrence.

    ``code`` is either a single character (``"a"``, ``"?"``) or a key name
    (``"enter"``, ``"escape"``, ``"up"``, ``"f5"``, ``"pageUp"``).
    """

    model_config = ConfigDict(frozen=True)

    code: str
    ctrl: bool = False
    shift: bool = False
    alt: bool = False
    kind: KeyEventKind = "press"

    @property
    def key_id(self) -> str:
        """Key identifier in ``ctrl+shift+alt+<code>`` form, e.g. ``"ctrl+c"``."""
        prefix = ""
        if self.ctrl:
            prefix += "ctrl+"
        if self.shift:
            prefix += "shift+"
        if self.alt:
            prefix += "alt+"
        return prefix + self.code


class MouseEvent(BaseModel):
    """A decoded SGR mouse report.  Coordinates are 0-based cells."""

    model_config = ConfigDict(frozen=True)

    kind: MouseEventKind
    button: MouseButton = "none"
    column: int
    row: int
    ctrl: bool = False
    shift: bool = False
    alt: bool = False


# --- Event variants ---


class InitEvent(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["init"] = "init"


class QuitEvent(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["quit"] = "quit"


class ErrorEvent(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["error"] = "error"


class ClosedEvent(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["closed"] = "closed"


class TickEvent(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["tick"] = "tick"


class RenderEvent(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["render"] = "render"


class FocusGainedEvent(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["focus_gained"] = "focus_gained"


class FocusLostEvent(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["focus_lost"] = "focus_lost"


class PasteEvent(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["paste"] = "paste"
    text: str


class KeyInputEvent(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["key"] = "key"
    key: KeyEvent


class MouseInputEvent(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["mouse"] = "mouse"
    mouse: MouseEvent


class ResizeEvent(BaseModel):
    model_config = ConfigDict(frozen=True)
    type: Literal["resize"] = "resize"
    width: int
    height: int


Event = (
    InitEvent
    | QuitEvent
    | ErrorEvent
    | ClosedEvent
    | TickEvent
    | RenderEvent
    | FocusGainedEvent
    | FocusLostEvent
    | PasteEvent
    | KeyInputEvent
    | MouseInputEvent
    | ResizeEvent
)
