"""Bot states, action triggers and the behaviour a bot type registers."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any, ClassVar, Protocol

_log = logging.getLogger(__name__)

_U32_MAX = 0xFFFF_FFFF

DEFAULT_INTERVAL = timedelta(milliseconds=5_000)

Action = Callable[..., Any]


class StateKind(Enum):
    """The kinds of bot state; the value is the state's base code."""

    IDLE = 0
    INITIALIZING = 1
    RUNNING = 2
    STOPPING = 3
    STOPPED = 4
    CUSTOM = 100


@dataclass(frozen=True)
class BotState:
    """Lifecycle state of a bot; custom states carry a numeric id."""

    kind: StateKind
    custom_id: int | None = None

    IDLE: ClassVar[BotState]
    INITIALIZING: ClassVar[BotState]
    RUNNING: ClassVar[BotState]
    STOPPING: ClassVar[BotState]
    STOPPED: ClassVar[BotState]

    def __post_init__(self) -> None:
        if self.kind is StateKind.CUSTOM:
            if self.custom_id is None or not 0 <= self.custom_id <= _U32_MAX:
                raise ValueError(f"custom state id {self.custom_id!r} is not a 32-bit unsigned value")
        elif self.custom_id is not None:
            raise ValueError(f"state {self.kind.name} takes no custom id")

    @classmethod
    def custom(cls, value: int) -> BotState:
        """A user-defined state with the given id."""
        return cls(StateKind.CUSTOM, value)

    def code(self) -> int:
        """The numeric code of the state; custom states start at 100."""
        if self.kind is StateKind.CUSTOM:
            return self.kind.value + (self.custom_id or 0)
        return self.kind.value

    def __str__(self) -> str:
        if self.kind is StateKind.CUSTOM:
            return f"Custom({self.custom_id})"
        return self.kind.name.capitalize()


BotState.IDLE = BotState(StateKind.IDLE)
BotState.INITIALIZING = BotState(StateKind.INITIALIZING)
BotState.RUNNING = BotState(StateKind.RUNNING)
BotState.STOPPING = BotState(StateKind.STOPPING)
BotState.STOPPED = BotState(StateKind.STOPPED)

_HOOKABLE_KINDS = {
    StateKind.INITIALIZING,
    StateKind.RUNNING,
    StateKind.STOPPING,
    StateKind.CUSTOM,
}


@dataclass(frozen=True)
class Alive:
    """Run the action periodically, chosen at random by weight."""

    weight: float


@dataclass(frozen=True)
class EnterState:
    """Run the action once when the bot enters the state."""

    state: BotState


def alive(weight: float) -> Alive:
    """Trigger for a periodic action with the given weight."""
    return Alive(float(weight))


def enter_state(state: BotState) -> EnterState:
    """Trigger for a hook run on entering ``state``.

    Only initializing, running, stopping and custom states can have hooks.
    """
    if state.kind not in _HOOKABLE_KINDS:
        raise ValueError(f"no hook can be registered for state {state}")
    return EnterState(state)


@dataclass(frozen=True)
class BotParams:
    """Identity handed to a bot when it is created."""

    bot_id: int
    internal_id: int
    global_id: int


class _RandomSource(Protocol):
    def random(self) -> float: ...


@dataclass(frozen=True)
class _WeightedAction:
    weight: float
    action: Action


class BotBehaviour:
    """Periodic actions, state hooks and tick interval of a bot type."""

    def __init__(self, *, rng: _RandomSource | None = None) -> None:
        self._rng: _RandomSource = rng if rng is not None else random.Random()
        self._total_weight = 0.0
        self._interval = DEFAULT_INTERVAL
        self._actions: list[_WeightedAction] = []
        self._hooks: dict[BotState, Action] = {}

    def __copy__(self) -> BotBehaviour:
        clone = BotBehaviour(rng=self._rng)
        clone._total_weight = self._total_weight
        clone._interval = self._interval
        clone._actions = list(self._actions)
        clone._hooks = dict(self._hooks)
        return clone

    def __repr__(self) -> str:
        return (
            f"BotBehaviour(interval={self._interval!r}, actions={len(self._actions)}, "
            f"hooks={[str(state) for state in self._hooks]})"
        )

    def register_action(self, trigger: Alive | EnterState, action: Action) -> None:
        """Register a periodic action or a state hook."""
        if isinstance(trigger, Alive):
            weight = trigger.weight if trigger.weight > 0.0 else 0.0
            self._total_weight += weight
            self._actions.append(_WeightedAction(weight, action))
        elif isinstance(trigger, EnterState):
            previous = self._hooks.get(trigger.state)
            self._hooks[trigger.state] = action
            if previous is not None:
                _log.warning("[%s] overridden: %r -> %r", trigger.state, previous, action)
        else:
            raise TypeError(f"unsupported trigger {trigger!r}")

    def set_interval_millis(self, interval: int) -> None:
        """Set the time between two periodic actions, in milliseconds."""
        if interval < 0:
            raise ValueError(f"interval {interval} must not be negative")
        self._interval = timedelta(milliseconds=interval)

    def random_action(self) -> Action:
        """Pick a periodic action at random, proportionally to its weight."""
        if not self._actions or self._total_weight <= 0.0:
            raise ValueError("no weighted actions registered")
        remaining = self._rng.random() * self._total_weight
        for entry in self._actions:
            remaining -= entry.weight
            if remaining <= 0.0:
                return entry.action
        return self._actions[-1].action

    def hook_action(self, state: BotState) -> Action | None:
        """The hook registered for ``state``, if any."""
        return self._hooks.get(state)

    def interval(self) -> timedelta:
        """The time between two periodic actions."""
        return self._interval