"""The simulation actor: keeps each model's bot count on its load shape."""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
import math
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, Union

from hailstorm.behaviour import BotState
from hailstorm.bot_actor import ActionExecutionError
from hailstorm.bot_model import BotModel
from hailstorm.registry import BotRegistry, LoadScriptError
from hailstorm.shape import ShapeFunction, SimulationError, parse_shape_fun
from hailstorm.timers import run_interval_synchro

_log = logging.getLogger(__name__)

TICK_PERIOD = timedelta(milliseconds=1500)

_USIZE_MAX = (1 << 64) - 1

Clock = Callable[[], float]


@dataclass(frozen=True)
class SimulationParams:
    """Limits applied while scaling bots: total running and spawned per tick."""

    max_running: int | None = None
    max_rate: int | None = None


class SimulationState(Enum):
    """Current state of the simulation from the agent's point of view."""

    IDLE = "idle"
    READY = "ready"
    WAITING = "waiting"
    RUNNING = "running"


@dataclass(frozen=True)
class ClientStats:
    """Number of bots by state for one model."""

    model: str
    timestamp: float
    count_by_state: dict[BotState, int]


@dataclass(frozen=True)
class SimulationStats:
    """Bot counts of every model together with the simulation state."""

    stats: list[ClientStats]
    timestamp: float
    state: SimulationState


@dataclass(frozen=True)
class LoadSimulation:
    """Load the load shapes of the models and the script defining the bots."""

    model_shapes: Mapping[str, str]
    script: Any


@dataclass(frozen=True)
class LaunchSimulation:
    """Start the loaded simulation at ``start_ts`` (seconds since the epoch)."""

    start_ts: float


@dataclass(frozen=True)
class UpdateAgentsCount:
    """Set the number of agents taking part in the simulation."""

    count: int


@dataclass(frozen=True)
class StopSimulation:
    """Stop the simulation; with ``reset`` also forget the script and shapes."""

    reset: bool = False


SimulationCommand = Union[LoadSimulation, LaunchSimulation, UpdateAgentsCount, StopSimulation]


async def _await_hook(pending: Awaitable[None], state: BotState) -> None:
    try:
        await pending
    except ActionExecutionError as err:
        _log.error("Error during hook %s execution - %s", state, err)


class SimulationActor:
    """Spawns and stops bots so that each model follows its load shape."""

    def __init__(
        self,
        agent_id: int,
        simulation_params: SimulationParams,
        bot_registry: BotRegistry,
        *,
        clock: Clock = time.time,
    ) -> None:
        self._agent_id = agent_id
        self._params = simulation_params
        self._registry = bot_registry
        self._clock = clock
        self._start_ts: float | None = None
        self._agents_count = 1
        self._model_shapes: dict[str, ShapeFunction] = {}
        self._bots: dict[str, BotModel] = {}
        self._ticker: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    def __repr__(self) -> str:
        return (
            f"SimulationActor(agent_id={self._agent_id}, start_ts={self._start_ts}, "
            f"models={list(self._bots)!r})"
        )

    @staticmethod
    def normalize_count(global_count: float, agent_id: int, agents_count: int) -> int:
        """This agent's share of ``global_count`` bots spread over all agents."""
        shift = (agent_id % agents_count) / agents_count
        value = global_count / agents_count + shift
        if math.isnan(value) or value <= 0:
            return 0
        if math.isinf(value):
            return _USIZE_MAX
        return min(math.floor(value), _USIZE_MAX)

    def start(self) -> None:
        """Begin ticking on wall-clock multiples of the tick period."""
        if self._ticker is not None and not self._ticker.done():
            raise RuntimeError("simulation actor is already started")
        self._ticker = run_interval_synchro(TICK_PERIOD, self.tick)

    def stop(self) -> None:
        """Stop ticking and cancel pending hook executions."""
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        for task in list(self._tasks):
            task.cancel()

    def _register_model(self, model: str, shape: str) -> None:
        self._model_shapes[model] = parse_shape_fun(shape)

    def _elapsed(self) -> float | None:
        if self._start_ts is None:
            return None
        now = self._clock()
        if not self._start_ts < now:
            return None
        return now - self._start_ts

    def tick(self) -> None:
        """Spawn or stop bots so that each model matches its shape right now."""
        elapsed = self._elapsed()
        if elapsed is None:
            for model in self._bots.values():
                for bot in model.bots():
                    if bot.state != BotState.STOPPING:
                        bot.stop_bot()
            return

        for model_name, shape in self._model_shapes.items():
            count = self.normalize_count(shape(elapsed), self._agent_id, self._agents_count)
            if self._params.max_running is not None:
                count = min(count, self._params.max_running)

            model = self._bots.get(model_name)
            if model is None:
                _log.warning("No bot-model defined with name %s", model_name)
                break

            running_count = model.count_active()
            model.retain(lambda _ident, bot: bot.is_connected())

            if count < running_count:
                active = (bot for bot in model.bots() if bot.state != BotState.STOPPING)
                for bot in itertools.islice(active, running_count - count):
                    bot.stop_bot()
            elif count > running_count:
                spawn_count = count - running_count
                if self._params.max_rate is not None:
                    spawn_count = min(spawn_count, self._params.max_rate)
                for _ in range(spawn_count):
                    model.spawn_bot(self.bot_state_change)

    def _schedule_hook(self, pending: Awaitable[None], state: BotState) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as err:
            if inspect.iscoroutine(pending):
                pending.close()
            _log.error("Mailbox error during hook %s execution - %s", state, err)
            return
        task = loop.create_task(_await_hook(pending, state))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def bot_state_change(self, bot_id: int, state: BotState) -> None:
        """Record that bot ``bot_id`` entered ``state`` and run the state's hook.

        A stopped bot is removed from its model.
        """
        model = next((m for m in self._bots.values() if m.contains_id(bot_id)), None)
        if state == BotState.STOPPED:
            if model is not None:
                model.remove_bot(bot_id)
            return
        bot = model.get_bot(bot_id) if model is not None else None
        if bot is None:
            return
        self._schedule_hook(bot.change_state(state), state)

    def _load(self, command: LoadSimulation) -> None:
        for model, shape in command.model_shapes.items():
            try:
                self._register_model(model, shape)
            except SimulationError as err:
                _log.error("Error registering simulation clients - %s", err)
                break

        try:
            self._registry.load_script(command.script)
        except LoadScriptError as err:
            _log.error("Error loading script - %s", err)

        self._bots = {}
        for idx, model in enumerate(self._registry.model_names()):
            factory = self._registry.build_factory(model)
            if factory is None:
                _log.error("No factory available for model '%s', skipping", model)
                continue
            self._bots[model] = BotModel(self._agent_id, idx, factory)

    def apply_commands(self, commands: Iterable[SimulationCommand]) -> None:
        """Apply control commands in order."""
        for command in commands:
            if isinstance(command, LoadSimulation):
                self._load(command)
            elif isinstance(command, LaunchSimulation):
                self._start_ts = command.start_ts
            elif isinstance(command, UpdateAgentsCount):
                if command.count > 0:
                    self._agents_count = command.count
                else:
                    _log.warning("Received agents_count = 0. setting it to 1")
                    self._agents_count = 1
            elif isinstance(command, StopSimulation):
                self._start_ts = None
                if command.reset:
                    self._registry.reset_script()
                    self._model_shapes.clear()
            else:
                raise TypeError(f"unsupported simulation command {command!r}")

    def fetch_stats(self) -> SimulationStats:
        """Bot counts by state for every model, and the simulation state."""
        if not self._registry.has_registered_models():
            state = SimulationState.IDLE
        elif self._start_ts is None:
            state = SimulationState.READY
        elif self._start_ts < self._clock():
            state = SimulationState.RUNNING
        else:
            state = SimulationState.WAITING

        stats = [
            ClientStats(model=name, timestamp=self._clock(), count_by_state=model.count_by_state())
            for name, model in self._bots.items()
        ]
        return SimulationStats(stats=stats, timestamp=self._clock(), state=state)

    async def invoke_handler(self, bot_id: int, handler: Callable[..., Any], args: Any) -> Any:
        """Run ``handler`` on bot ``bot_id`` and return its result."""
        bot = next(
            (
                found
                for found in (model.get_bot(bot_id) for model in self._bots.values())
                if found is not None
            ),
            None,
        )
        if bot is None:
            raise ActionExecutionError(f"No bot with id {bot_id}")
        return await bot.execute_handler(handler, args)


__all__ = [
    "ClientStats",
    "LaunchSimulation",
    "LoadSimulation",
    "SimulationActor",
    "SimulationCommand",
    "SimulationParams",
    "SimulationState",
    "SimulationStats",
    "StopSimulation",
    "TICK_PERIOD",
    "UpdateAgentsCount",
]

# keep dataclass import used for field defaults in future params
_ = field