"""Fan-out of actions to components.

Every queued action is offered to every registered component, in
registration order.  A component may answer with a follow-up action; the
follow-up is sent back through the action channel and processed in a later
drain, never recursively, so a chain of follow-ups cannot starve input
handling.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable

from feedterm.action import Action
from feedterm.channel import Receiver, Sender
from feedterm.component import Component

__all__ = ["ActionRouter"]

logger = logging.getLogger(__name__)


class ActionRouter:
    def __init__(self, components: Iterable[Component] = ()) -> None:
        self._components: list[Component] = list(components)

    @property
    def components(self) -> list[Component]:
        return list(self._components)

    def register(self, component: Component) -> None:
        self._components.append(component)

    def dispatch(self, action: Action) -> list[Action]:
        """Call ``update(action)`` on every component; collect follow-ups."""
        follow_ups: list[Action] = []
        for component in self._components:
            result = component.update(action)
            if result is not None:
                follow_ups.append(result)
        return follow_ups

    async def drain(
        self,
        receiver: Receiver[Action],
        sender: Sender[Action],
        on_action: Callable[[Action], Awaitable[None]] | None = None,
    ) -> int:
        """Process the actions queued on *receiver* when the drain starts.

        *on_action* runs before the fan-out of each action.  Follow-ups, and
        anything queued while draining, are handled on the next call.
        Returns the number of actions processed.
        """
        follow_ups: list[Action] = []
        count = 0
        for _ in range(len(receiver)):
            action = receiver.try_recv()
            if action is None:
                break
            count += 1
            if on_action is not None:
                await on_action(action)
            follow_ups.extend(self.dispatch(action))
        if follow_ups:
            logger.debug("queued %d follow-up action(s)", len(follow_ups))
        for action in follow_ups:
            sender.send(action)
        return count
