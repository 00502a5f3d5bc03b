"""Home component: title bar, status line and help overlay."""

from __future__ import annotations

from feedterm.action import Action, ErrorAction, HelpAction, RefreshAction, encode_action
from feedterm.component import Component
from feedterm.components.layout import screen_regions
from feedterm.events import KeyEvent
from feedterm.frame import Frame, Rect
from feedterm.mode import Mode

_TITLE = "\x1b[1mfeedterm\x1b[0m"
_HINT = "? help  r refresh  q quit"
_NAVIGATION_HELP = [
    ("up / k", "previous"),
    ("down / j", "next"),
    ("enter", "open feed"),
    ("escape", "back"),
]


class Home(Component):
    """Draws the title bar, the status line and the help panel.

    The help panel is drawn over the body, so register this component after
    the list components.  ``escape`` closes the panel by emitting ``Help``,
    which the list components also see; they ignore input while it is open.
    """

    def __init__(self, greeting: str = "Press r to refresh feeds") -> None:
        self.greeting = greeting
        self.show_help = False
        self.last_error: str | None = None

    def handle_key_events(self, key: KeyEvent) -> Action | None:
        if self.show_help and key.code == "escape":
            return HelpAction()
        return None

    def update(self, action: Action) -> Action | None:
        match action:
            case HelpAction():
                self.show_help = not self.show_help
            case ErrorAction(message=message):
                self.last_error = message
            case RefreshAction():
                self.last_error = None
        return None

    def help_lines(self) -> list[str]:
        bindings = self.config.keybindings.get(Mode.default(), {}) if self.config else {}
        rows = [(key, encode_action(action)) for key, action in sorted(bindings.items())]
        rows.extend(_NAVIGATION_HELP)
        width = max(len(key) for key, _ in rows)
        return [f"{key.ljust(width)}  {label}" for key, label in rows]

    def draw(self, frame: Frame, area: Rect) -> None:
        header, body, status = screen_regions(area)
        frame.render_text(header, [f"{_TITLE}  {_HINT}"])

        if self.last_error:
            frame.render_text(status, [f"\x1b[31merror: {self.last_error}\x1b[0m"])
        else:
            frame.render_text(status, [self.greeting])

        if self.show_help:
            lines = self.help_lines()
            width = min(body.width, max(len(line) for line in lines) + 4)
            height = min(body.height, len(lines) + 2)
            panel = Rect(
                body.x + (body.width - width) // 2,
                body.y + (body.height - height) // 2,
                width,
                height,
            )
            frame.render_block(panel, " Help ", lines)
