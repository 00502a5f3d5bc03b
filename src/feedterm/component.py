"""The component contract.

A component is an independently updatable, independently drawable unit of
UI.  It can react to raw input (``handle_key_events`` /
``handle_mouse_events``), to semantic actions (``update``), or both, and
talks to other components only by emitting actions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from feedterm.events import KeyEvent, KeyInputEvent, MouseEvent, MouseInputEvent

if TYPE_CHECKING:
    from feedterm.action import Action
    from feedterm.channel import Sender
    from feedterm.config import Config
    from feedterm.events import Event
    from feedterm.frame import Frame, Rect

__all__ = ["Component"]


class Component(ABC):
    """Base class for every UI component.

    Only :meth:`draw` is abstract; every other hook defaults to doing
    nothing.  ``command_tx`` and ``config`` stay ``None`` until the main loop
    registers them.
    """

    command_tx: Sender[Action] | None = None
    config: Config | None = None

    def register_action_handler(self, tx: Sender[Action]) -> None:
        """Install the sender used to emit actions.  Replaces any earlier one."""
        self.command_tx = tx

    def register_config_handler(self, config: Config) -> None:
        """Install the configuration snapshot.  Replaces any earlier one."""
        self.config = config

    def init(self, area: Rect) -> None:
        """One-time setup with the initial drawable area."""

    def handle_events(self, event: Event | None) -> Action | None:
        if isinstance(event, KeyInputEvent):
            return self.handle_key_events(event.key)
        if isinstance(event, MouseInputEvent):
            return self.handle_mouse_events(event.mouse)
        return None

    def handle_key_events(self, key: KeyEvent) -> Action | None:
        return None

    def handle_mouse_events(self, mouse: MouseEvent) -> Action | None:
        return None

    def update(self, action: Action) -> Action | None:
        """React to *action*; optionally return a follow-up action."""
        return None

    @abstractmethod
    def draw(self, frame: Frame, area: Rect) -> None:
        """Render the current state into *area* of *frame*."""

    async def dispose(self) -> None:
        """Release background work; called once when the main loop ends."""
