"""A bot instance together with the behaviour of its type."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from hailstorm.behaviour import BotBehaviour, BotState


async def _invoke(func: Callable[..., Any], *args: Any) -> Any:
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class ScriptedBot:
    """A bot built by a script: its instance and the actions it may run."""

    def __init__(self, behaviour: BotBehaviour, instance: Any) -> None:
        self._behaviour = behaviour
        self.instance = instance

    def __repr__(self) -> str:
        return f"ScriptedBot(instance={self.instance!r}, behaviour={self._behaviour!r})"

    def interval(self) -> timedelta:
        """The time between two periodic actions."""
        return self._behaviour.interval()

    async def run_random_action(self) -> None:
        """Run one periodic action chosen at random by weight."""
        action = self._behaviour.random_action()
        await _invoke(action, self.instance)

    async def execute_handler(self, handler: Callable[..., Any], param: Any) -> Any:
        """Call ``handler`` with the bot instance and ``param``; return its result."""
        return await _invoke(handler, self.instance, param)

    async def trigger_hook(self, state: BotState) -> None:
        """Run the hook registered for ``state``, if there is one."""
        hook = self._behaviour.hook_action(state)
        if hook is not None:
            await _invoke(hook, self.instance)