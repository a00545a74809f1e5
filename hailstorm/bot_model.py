"""The bots of one model running in this agent."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Awaitable, Callable, Iterator
from typing import Any, Protocol

from hailstorm.behaviour import BotState
from hailstorm.bot_actor import BotActor, StateListener
from hailstorm.compound_id import CompoundId
from hailstorm.scripted import ScriptedBot
from hailstorm.sequential_id_generator import SequentialIdGenerator
from hailstorm.varint import decode_list

_log = logging.getLogger(__name__)

_ID_BYTES = 8


class _BotFactory(Protocol):
    def new_bot(self, compound_id: CompoundId) -> ScriptedBot | None: ...


def _sub_ids(ident: int) -> list[int]:
    return decode_list(ident.to_bytes(_ID_BYTES, "big"))


class SimulationBot:
    """A running bot as seen by its model: its state and its actor."""

    def __init__(self, state: BotState, actor: BotActor) -> None:
        self._state = state
        self._actor = actor
        self._pending: set[asyncio.Task[Any]] = set()

    def __repr__(self) -> str:
        return f"SimulationBot(state={self._state}, actor={self._actor!r})"

    @property
    def state(self) -> BotState:
        """The state the bot was last put in."""
        return self._state

    def stop_bot(self) -> None:
        """Ask the actor to stop and mark the bot as stopping."""
        if not self._actor.is_alive():
            _log.error("Error stopping bot - actor %s is stopped", self._actor.bot_id)
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as err:
            _log.error("Error stopping bot - %s", err)
            return
        task = loop.create_task(self._actor.stop())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        self._state = BotState.STOPPING

    async def execute_handler(self, handler: Callable[..., Any], args: Any) -> Any:
        """Run ``handler`` on the bot and return its result."""
        return await self._actor.execute_handler(handler, args)

    def change_state(self, state: BotState) -> Awaitable[None]:
        """Put the bot in ``state``; the returned awaitable runs the state's hook."""
        self._state = state
        return self._actor.trigger_hook(state)

    def is_connected(self) -> bool:
        """Whether the bot's actor is still running."""
        return self._actor.is_alive()


class BotModel:
    """Spawns, tracks and retires the bots of one model."""

    def __init__(self, agent_id: int, model_id: int, factory: _BotFactory) -> None:
        self.agent_id = agent_id
        self.model_id = model_id
        self._factory = factory
        self._id_generator = SequentialIdGenerator()
        self._bots: dict[int, SimulationBot] = {}

    def __repr__(self) -> str:
        return f"BotModel(agent_id={self.agent_id}, model_id={self.model_id}, bots={len(self._bots)})"

    def spawn_bot(self, on_state_change: StateListener) -> int | None:
        """Create and start a new bot; return its internal id, or None on failure."""
        bot_id = self._id_generator.next_id()
        compound_id = CompoundId(self.agent_id, self.model_id, bot_id)
        internal_id = compound_id.internal_id()
        behaviour = self._factory.new_bot(compound_id)
        if behaviour is None:
            self._id_generator.release_id(bot_id)
            _log.error("Failed to create bot, releasing ID %s", bot_id)
            return None
        actor = BotActor(internal_id, on_state_change, behaviour)
        actor.start()
        self._bots[internal_id] = SimulationBot(BotState.RUNNING, actor)
        return internal_id

    def count_by_state(self) -> dict[BotState, int]:
        """The number of bots in each state."""
        return dict(Counter(bot.state for bot in self._bots.values()))

    def count_active(self) -> int:
        """The number of bots that are not stopping."""
        return sum(1 for bot in self._bots.values() if bot.state != BotState.STOPPING)

    def retain(self, condition: Callable[[int, SimulationBot], bool]) -> None:
        """Keep only the bots for which ``condition(id, bot)`` holds."""
        kept: dict[int, SimulationBot] = {}
        for ident, bot in self._bots.items():
            if condition(ident, bot):
                kept[ident] = bot
                continue
            try:
                compound_id = CompoundId.from_internal_id(None, ident)
            except ValueError as exc:
                raise ValueError(f"internal id {ident:08x} is in unexpected format") from exc
            self._id_generator.release_id(compound_id.bot_id)
        self._bots = kept

    def bots(self) -> Iterator[SimulationBot]:
        """The bots of the model."""
        return iter(list(self._bots.values()))

    def contains_id(self, ident: int) -> bool:
        """Whether ``ident`` is the id of a bot of this model."""
        sub_ids = _sub_ids(ident)
        return sub_ids[0] == self.model_id and ident in self._bots

    def remove_bot(self, ident: int) -> None:
        """Forget the bot ``ident`` and release its bot id."""
        self._bots.pop(ident, None)
        sub_ids = _sub_ids(ident)
        if len(sub_ids) < 2:
            raise ValueError(f"internal id {ident:08x} is in unexpected format")
        self._id_generator.release_id(sub_ids[1])

    def get_bot(self, ident: int) -> SimulationBot | None:
        """The bot with id ``ident``, if present."""
        return self._bots.get(ident)