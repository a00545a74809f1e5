"""Discovery of bot types in a script and creation of their bots.

A script is an object that holds bot types: a module, a mapping of names to
types, or an iterable of named types. A bot type is anything with a callable
``new(params)`` that builds an instance and a callable ``register_bot(bot)``
that registers its actions on a :class:`BotBehaviour`.
"""

from __future__ import annotations

import copy
import logging
import types
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from hailstorm.behaviour import BotBehaviour, BotParams
from hailstorm.compound_id import CompoundId
from hailstorm.scripted import ScriptedBot

_log = logging.getLogger(__name__)

_CONSTRUCTOR = "new"
_REGISTER = "register_bot"


class BotError(RuntimeError):
    """Raised when a bot cannot be built from its type."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Build Error - {message}")


class LoadScriptError(ValueError):
    """Raised when a script cannot be loaded."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Invalid script - {message}")


def _construct(
    bot_type: Any, model: str, behaviour: BotBehaviour, compound_id: CompoundId
) -> ScriptedBot:
    params = BotParams(
        bot_id=compound_id.bot_id,
        internal_id=compound_id.internal_id(),
        global_id=compound_id.global_id(),
    )
    try:
        instance = getattr(bot_type, _CONSTRUCTOR)(params)
    except Exception as exc:
        raise BotError(f"error constructing bot '{model}': {exc}") from exc
    return ScriptedBot(copy.copy(behaviour), instance)


def _build_or_none(
    bot_type: Any, model: str, behaviour: BotBehaviour, compound_id: CompoundId
) -> ScriptedBot | None:
    try:
        return _construct(bot_type, model, behaviour, compound_id)
    except BotError as err:
        _log.error("%s", err)
        return None


@dataclass(frozen=True)
class BotModelFactory:
    """Builds bots of one model."""

    model: str
    behaviour: BotBehaviour
    bot_type: Any

    def new_bot(self, compound_id: CompoundId) -> ScriptedBot | None:
        """A new bot with the given id, or None if its constructor fails."""
        return _build_or_none(self.bot_type, self.model, self.behaviour, compound_id)


@dataclass(frozen=True)
class _BotType:
    bot_type: Any
    behaviour: BotBehaviour


def _script_members(script: Any) -> list[tuple[str, Any]]:
    if isinstance(script, (str, bytes, bytearray)):
        raise LoadScriptError("a script is an object holding bot types, not source text")
    if isinstance(script, types.ModuleType):
        return [(name, obj) for name, obj in vars(script).items() if not name.startswith("__")]
    if isinstance(script, Mapping):
        members = list(script.items())
        for name, _ in members:
            if not isinstance(name, str):
                raise LoadScriptError(f"type name {name!r} is not a string")
        return members
    if isinstance(script, Iterable):
        members = []
        seen: set[str] = set()
        for obj in script:
            name = getattr(obj, "__name__", None)
            if not isinstance(name, str):
                raise LoadScriptError(f"{obj!r} has no name")
            if name in seen:
                raise LoadScriptError(f"type '{name}' is defined more than once")
            seen.add(name)
            members.append((name, obj))
        return members
    raise LoadScriptError(f"unsupported script object of type {type(script).__name__}")


def _has_callable(obj: Any, attribute: str) -> bool:
    return callable(getattr(obj, attribute, None))


class BotRegistry:
    """Loads scripts, keeps the bot types they define and builds their bots."""

    def __init__(self) -> None:
        self._bot_types: dict[str, _BotType] = {}

    def __repr__(self) -> str:
        return f"BotRegistry(models={self.model_names()!r})"

    def load_script(self, script: Any) -> None:
        """Discover and register the bot types held by ``script``.

        Types whose registration fails are skipped. On error the previously
        loaded types are kept.
        """
        members = _script_members(script)
        discovered: dict[str, _BotType] = {}
        for name, obj in members:
            if isinstance(obj, types.ModuleType):
                continue
            has_new = _has_callable(obj, _CONSTRUCTOR)
            has_register = _has_callable(obj, _REGISTER)
            if not (has_new and has_register):
                _log.debug(
                    "Skipping %s - not a bot (has new: %s, has register: %s)",
                    name,
                    has_new,
                    has_register,
                )
                continue
            behaviour = BotBehaviour()
            try:
                getattr(obj, _REGISTER)(behaviour)
            except Exception as err:
                _log.error("Error registering bot '%s': %s", name, err)
                continue
            _log.debug("Registering %s", name)
            discovered[name] = _BotType(obj, behaviour)
        self._bot_types = discovered

    def reset_script(self) -> None:
        """Forget every loaded bot type."""
        self._bot_types = {}

    def has_registered_models(self) -> bool:
        """Whether at least one bot type is registered."""
        return bool(self._bot_types)

    def build_bot(self, compound_id: CompoundId, model: str) -> ScriptedBot | None:
        """A new bot of ``model``, or None if the model is unknown or fails to build."""
        entry = self._bot_types.get(model)
        if entry is None:
            return None
        return _build_or_none(entry.bot_type, model, entry.behaviour, compound_id)

    def count_bot_models(self) -> int:
        """The number of registered bot types."""
        return len(self._bot_types)

    def model_names(self) -> list[str]:
        """The names of the registered bot types."""
        return list(self._bot_types)

    def build_factory(self, model: str) -> BotModelFactory | None:
        """A factory for bots of ``model``, or None if the model is unknown."""
        entry = self._bot_types.get(model)
        if entry is None:
            return None
        return BotModelFactory(model, copy.copy(entry.behaviour), entry.bot_type)