"""feedterm: terminal feed reader built on an async event pump."""

# Actions
from feedterm.action import (
    Action,
    ActionAdapter,
    ActionParseError,
    ErrorAction,
    HelpAction,
    QuitAction,
    RefreshAction,
    RenderAction,
    ResizeAction,
    ResumeAction,
    SuspendAction,
    TickAction,
    encode_action,
    parse_action,
)

# Application
from feedterm.app import App
from feedterm.cancellation import CancellationToken
from feedterm.channel import ChannelClosed, Receiver, Sender, channel

# Components
from feedterm.component import Component
from feedterm.config import Config, ConfigError, FeedSource, load_config

# Events
from feedterm.events import (
    ClosedEvent,
    ErrorEvent,
    Event,
    FocusGainedEvent,
    FocusLostEvent,
    InitEvent,
    KeyEvent,
    KeyInputEvent,
    MouseEvent,
    MouseInputEvent,
    PasteEvent,
    QuitEvent,
    RenderEvent,
    ResizeEvent,
    TickEvent,
)
from feedterm.frame import Frame, Rect
from feedterm.mode import Mode
from feedterm.pump import EventPump
from feedterm.router import ActionRouter

# Terminal
from feedterm.terminal import ProcessTerminal, Terminal, TerminalError
from feedterm.tui import Tui

__all__ = [
    "Action",
    "ActionAdapter",
    "ActionParseError",
    "ActionRouter",
    "App",
    "CancellationToken",
    "ChannelClosed",
    "ClosedEvent",
    "Component",
    "Config",
    "ConfigError",
    "ErrorAction",
    "ErrorEvent",
    "Event",
    "EventPump",
    "FeedSource",
    "FocusGainedEvent",
    "FocusLostEvent",
    "Frame",
    "HelpAction",
    "InitEvent",
    "KeyEvent",
    "KeyInputEvent",
    "Mode",
    "MouseEvent",
    "MouseInputEvent",
    "PasteEvent",
    "ProcessTerminal",
    "QuitAction",
    "QuitEvent",
    "Receiver",
    "RefreshAction",
    "RenderAction",
    "RenderEvent",
    "ResizeAction",
    "ResizeEvent",
    "ResumeAction",
    "Sender",
    "SuspendAction",
    "Terminal",
    "TerminalError",
    "TickAction",
    "TickEvent",
    "Tui",
    "channel",
    "encode_action",
    "load_config",
    "parse_action",
]
