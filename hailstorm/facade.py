"""A narrow interface to a simulation for code outside of it."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from hailstorm.behaviour import BotState
from hailstorm.simulation import SimulationActor


class SimulationFacade:
    """Changes bot states and invokes handlers on a simulation."""

    def __init__(self, actor: SimulationActor) -> None:
        self._actor = actor

    def __repr__(self) -> str:
        return f"SimulationFacade(actor={self._actor!r})"

    def change_bot_state(self, bot_id: int, state: BotState) -> None:
        """Tell the simulation that bot ``bot_id`` entered ``state``."""
        self._actor.bot_state_change(bot_id, state)

    async def invoke_handler(self, bot_id: int, handler: Callable[..., Any], args: Any) -> Any:
        """Run ``handler`` on bot ``bot_id`` and return its result."""
        return await self._actor.invoke_handler(bot_id, handler, args)