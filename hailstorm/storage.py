"""Key/value storage shared between bots, seeded by an initializer."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from hailstorm.initializer import EmptyInitializer, StorageInitializer


class _SharedStore:
    """Values by bot id, then storage name, then key."""

    def __init__(self) -> None:
        self._data: dict[int, dict[str, dict[str, str]]] = {}
        self._lock = threading.Lock()

    def get(self, bot_id: int, name: str, key: str) -> str | None:
        with self._lock:
            return self._data.get(bot_id, {}).get(name, {}).get(key)

    def put(self, bot_id: int, name: str, key: str, value: str) -> None:
        with self._lock:
            self._data.setdefault(bot_id, {}).setdefault(name, {})[key] = value


class StorageSlice:
    """The part of the shared storage that belongs to one bot and name."""

    def __init__(self, bot_id: int, name: str, storage: _SharedStore) -> None:
        self._bot_id = bot_id
        self._name = name
        self._storage = storage

    def read(self, key: str) -> str | None:
        """The value written for ``key``, if any."""
        return self._storage.get(self._bot_id, self._name, key)

    def write(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""
        self._storage.put(self._bot_id, self._name, key, value)


class BotStorage:
    """A bot's view of a named storage: written values over initial ones."""

    def __init__(self, init: dict[str, str], storage: StorageSlice) -> None:
        self._init = dict(init)
        self._storage = storage

    def read(self, name: str) -> str | None:
        """The written value of ``name``, else its initial value, else None."""
        value = self._storage.read(name)
        return value if value is not None else self._init.get(name)

    def write(self, name: str, value: str) -> None:
        """Store ``value`` under ``name``."""
        self._storage.write(name, value)


class StorageRegistry:
    """Hands out bot storages that share one underlying store."""

    def __init__(self, initializer: StorageInitializer) -> None:
        self._initializer = initializer
        self._storage = _SharedStore()

    def get_bot_storage(self, name: str, bot_id: int) -> BotStorage:
        """The storage ``name`` of bot ``bot_id``."""
        return BotStorage(
            self._initializer.initial_values_for(name, bot_id),
            StorageSlice(bot_id, name, self._storage),
        )


@dataclass(frozen=True)
class StorageModuleArgs:
    """Settings of the storage module."""

    initializer: StorageInitializer = field(default_factory=EmptyInitializer)

    def with_initializer(self, initializer: StorageInitializer) -> StorageModuleArgs:
        """A copy of these settings using ``initializer``."""
        return StorageModuleArgs(initializer)


def storage_module(args: StorageModuleArgs) -> StorageRegistry:
    """The storage module: a registry from which bots get their storages."""
    return StorageRegistry(args.initializer)