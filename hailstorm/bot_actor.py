"""An actor that runs one bot: its periodic actions, hooks and handlers."""

from __future__ import annotations

import asyncio
import inspect
import logging
import random
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any, TypeVar

from hailstorm.behaviour import BotState
from hailstorm.scripted import ScriptedBot
from hailstorm.timers import run_interval_weak

_log = logging.getLogger(__name__)

T = TypeVar("T")

StateListener = Callable[[int, BotState], Any]


class ActionExecutionError(RuntimeError):
    """Raised when a bot action, hook or handler cannot be executed."""


class OccupiedBotError(ActionExecutionError):
    """Raised when the bot is already busy with another operation."""

    def __init__(self) -> None:
        super().__init__("Bot is currently occupied")


async def _run_periodic(actor: BotActor) -> None:
    try:
        await actor.do_action()
    except ActionExecutionError as err:
        _log.error("Error executing DoAction - %s", err)


class BotActor:
    """Runs a bot's operations one at a time and its actions periodically.

    ``on_state_change(bot_id, state)`` is told when the actor has stopped.
    """

    def __init__(
        self,
        bot_id: int,
        on_state_change: StateListener,
        bot: ScriptedBot,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self._bot_id = bot_id
        self._on_state_change = on_state_change
        self._bot: ScriptedBot | None = bot
        self._rng = rng if rng is not None else random.Random()
        self._lock = asyncio.Lock()
        self._owner: asyncio.Task[Any] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._started = False
        self._alive = True
        self._stopping = False

    def __repr__(self) -> str:
        return f"BotActor(bot_id={self._bot_id}, alive={self._alive})"

    @property
    def bot_id(self) -> int:
        """The id the actor reports its state changes with."""
        return self._bot_id

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def start(self) -> None:
        """Begin running periodic actions after a random initial delay."""
        if not self._alive:
            raise RuntimeError("bot actor is stopped")
        if self._started:
            raise RuntimeError("bot actor is already started")
        if self._bot is None:
            raise RuntimeError("bot actor has no bot")
        self._started = True
        _log.debug("Bot actor started")
        interval = self._bot.interval()
        interval_ms = int(interval / timedelta(milliseconds=1))
        delay_ms = self._rng.randrange(interval_ms) if interval_ms > 0 else 0
        loop = asyncio.get_running_loop()
        self._track(loop.create_task(self._delayed_start(delay_ms / 1000, interval)))

    async def _delayed_start(self, delay: float, interval: timedelta) -> None:
        await asyncio.sleep(delay)
        if self._alive:
            self._track(run_interval_weak(self, interval, _run_periodic))

    async def stop(self) -> None:
        """Run the stopping hook, then stop and report the stopped state."""
        if not self._alive or self._stopping:
            return
        self._stopping = True
        try:
            await self.trigger_hook(BotState.STOPPING)
        except ActionExecutionError as err:
            _log.error("Error executing stopping hook - %s", err)
        self._shutdown()

    def _shutdown(self) -> None:
        self._alive = False
        current = asyncio.current_task()
        for task in list(self._tasks):
            if task is not current:
                task.cancel()
        _log.debug("Bot actor stopped")
        try:
            outcome = self._on_state_change(self._bot_id, BotState.STOPPED)
            if inspect.isawaitable(outcome):
                self._track(asyncio.ensure_future(outcome))
        except Exception as err:
            _log.error("Error sending stopped bot state - %s", err)

    def is_alive(self) -> bool:
        """Whether the actor still accepts operations."""
        return self._alive

    def _ensure_alive(self) -> None:
        if not self._alive:
            raise ActionExecutionError(f"Mailbox error - bot actor {self._bot_id} is stopped")

    async def _with_bot(self, operation: Callable[[ScriptedBot], Awaitable[T]]) -> T:
        self._ensure_alive()
        current = asyncio.current_task()
        if current is not None and current is self._owner:
            _log.warning("Bot is occupied")
            raise OccupiedBotError()
        async with self._lock:
            self._ensure_alive()
            bot = self._bot
            if bot is None:
                _log.warning("Bot is occupied")
                raise OccupiedBotError()
            self._bot = None
            self._owner = current
            try:
                return await operation(bot)
            except Exception as exc:
                raise ActionExecutionError(f"Error during script execution - {exc}") from exc
            finally:
                self._bot = bot
                self._owner = None

    async def do_action(self) -> None:
        """Run one periodic action chosen at random."""
        await self._with_bot(lambda bot: bot.run_random_action())

    async def trigger_hook(self, state: BotState) -> None:
        """Run the hook registered for ``state``, if any."""
        await self._with_bot(lambda bot: bot.trigger_hook(state))

    async def execute_handler(self, handler: Callable[..., Any], args: Any) -> Any:
        """Call ``handler`` with the bot instance and ``args``; return its result."""
        return await self._with_bot(lambda bot: bot.execute_handler(handler, args))