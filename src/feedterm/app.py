"""Main loop: events in, actions through the router, frames out.

One iteration waits for the next ``Event`` from the lifecycle controller,
turns it into actions (fixed translations, keybindings of the current mode
and whatever the components return from ``handle_events``), then drains the
action channel: main-loop side effects first (quit, suspend, resize,
render) and the fan-out to every component after.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from feedterm.action import (
    Action,
    ErrorAction,
    QuitAction,
    RenderAction,
    ResizeAction,
    ResumeAction,
    SuspendAction,
    TickAction,
    encode_action,
)
from feedterm.channel import Receiver, Sender, channel
from feedterm.component import Component
from feedterm.components import FeedList, Home
from feedterm.config import Config
from feedterm.events import (
    ErrorEvent,
    Event,
    KeyInputEvent,
    QuitEvent,
    RenderEvent,
    ResizeEvent,
    TickEvent,
)
from feedterm.feeds import FeedStore
from feedterm.frame import Frame
from feedterm.mode import Mode
from feedterm.router import ActionRouter
from feedterm.tui import Tui

__all__ = ["App"]

logger = logging.getLogger(__name__)


def default_components(config: Config) -> list[Component]:
    """The feed reader: feed list first, then the home overlay."""
    store = FeedStore()
    for source in config.feeds:
        store.add(source.title, source.url)
    return [FeedList(store), Home()]


class App:
    """The application.

    Parameters
    ----------
    config:
        Configuration snapshot handed to every component.
    components:
        Components in registration order; this is also the order of
        updates and draws.  Defaults to the feed reader components.
    tui_factory:
        Builds the lifecycle controller; tests pass one wrapping a
        virtual terminal.
    """

    def __init__(
        self,
        config: Config | None = None,
        components: Sequence[Component] | None = None,
        tui_factory: Callable[[], Tui] = Tui,
    ) -> None:
        self.config = config if config is not None else Config()
        if components is None:
            components = default_components(self.config)
        self.router = ActionRouter(components)
        self.mode = Mode.default()
        self.should_quit = False
        self.should_suspend = False
        self.tui: Tui | None = None
        self._tui_factory = tui_factory

    @property
    def components(self) -> list[Component]:
        return self.router.components

    def _build_tui(self) -> Tui:
        return (
            self._tui_factory()
            .tick_rate(self.config.tick_rate)
            .frame_rate(self.config.frame_rate)
            .mouse(self.config.mouse)
            .paste(self.config.paste)
        )

    async def run(self) -> None:
        action_tx: Sender[Action]
        action_rx: Receiver[Action]
        action_tx, action_rx = channel()

        for component in self.components:
            component.register_action_handler(action_tx)
            component.register_config_handler(self.config)

        tui = self._build_tui()
        self.tui = tui
        try:
            async with tui:
                for component in self.components:
                    component.init(tui.size())

                while not self.should_quit:
                    event = await tui.next()
                    if event is None:
                        logger.debug("event stream closed")
                        break
                    self._handle_event(event, action_tx)
                    await self.router.drain(action_rx, action_tx, self._perform)

                    if self.should_suspend:
                        await tui.suspend()
                        self.should_suspend = False
                        action_tx.send(ResumeAction())
                        await self.router.drain(action_rx, action_tx, self._perform)
        finally:
            action_tx.close()
            action_rx.close()
            self.tui = None
            await self._dispose_components()

    async def _dispose_components(self) -> None:
        for component in self.components:
            try:
                await component.dispose()
            except Exception:
                logger.exception("failed to dispose %s", type(component).__name__)

    # -- events -> actions ------------------------------------------------------

    def _handle_event(self, event: Event, action_tx: Sender[Action]) -> None:
        match event:
            case QuitEvent():
                action_tx.send(QuitAction())
            case TickEvent():
                action_tx.send(TickAction())
            case RenderEvent():
                action_tx.send(RenderAction())
            case ResizeEvent(width=width, height=height):
                action_tx.send(ResizeAction(width=width, height=height))
            case ErrorEvent():
                action_tx.send(ErrorAction(message="terminal input error"))
            case KeyInputEvent(key=key):
                action = self.config.action_for(self.mode, key.key_id)
                if action is not None:
                    action_tx.send(action)

        for component in self.components:
            action = component.handle_events(event)
            if action is not None:
                action_tx.send(action)

    # -- main-loop side effects ---------------------------------------------------

    async def _perform(self, action: Action) -> None:
        if not isinstance(action, (TickAction, RenderAction)):
            logger.debug("action: %s", encode_action(action))

        tui = self.tui
        match action:
            case QuitAction():
                self.should_quit = True
            case SuspendAction():
                self.should_suspend = True
            case ResumeAction():
                if tui is not None:
                    await tui.resume()
            case ResizeAction(width=width, height=height):
                if tui is not None:
                    tui.resize(width, height)
                    self.render()
            case RenderAction():
                self.render()

    def render(self) -> None:
        tui = self.tui
        if tui is None:
            return

        def draw(frame: Frame) -> None:
            for component in self.components:
                component.draw(frame, frame.area)

        tui.draw(draw)
