"""Sources of initial per-bot storage values."""

from __future__ import annotations

import csv
import logging
import re
import threading
from abc import ABC, abstractmethod
from os import PathLike
from pathlib import Path

_log = logging.getLogger(__name__)

_U32_MAX = 0xFFFF_FFFF
_ID_COLUMN = "id"
_ID_PATTERN = re.compile(r"\+?[0-9]+")


class StorageInitializer(ABC):
    """Provides the initial key/value pairs of a named storage for a bot."""

    @abstractmethod
    def initial_values_for(self, name: str, bot_id: int) -> dict[str, str]:
        """Initial values of storage ``name`` for the bot ``bot_id``."""


class EmptyInitializer(StorageInitializer):
    """An initializer that never provides any value."""

    def initial_values_for(self, name: str, bot_id: int) -> dict[str, str]:
        """Always an empty mapping."""
        return {}


class _BadRecord(ValueError):
    pass


def _parse_id(raw: str | None) -> int:
    if raw is None or not _ID_PATTERN.fullmatch(raw):
        raise _BadRecord(f"invalid id {raw!r}")
    value = int(raw)
    if value > _U32_MAX:
        raise _BadRecord(f"id {raw} does not fit in 32 unsigned bits")
    return value


def _parse_record(row: dict[str | None, str | list[str] | None]) -> tuple[int, dict[str, str]]:
    if None in row:
        raise _BadRecord("record has more fields than the header")
    values: dict[str, str] = {}
    bot_id: int | None = None
    for key, raw in row.items():
        if not isinstance(raw, str):
            raise _BadRecord(f"record misses field {key!r}")
        if key == _ID_COLUMN:
            bot_id = _parse_id(raw)
        else:
            values[str(key)] = raw
    if bot_id is None:
        raise _BadRecord("missing field 'id'")
    return bot_id, values


class CsvStorageInitializer(StorageInitializer):
    """Loads initial values from ``<name>-<agent_id>.csv`` files in a directory.

    Each file needs an ``id`` column holding the bot id; every other column
    becomes a key of that bot's initial values. Files are read once, on first
    use, and a missing or unreadable file counts as empty.
    """

    def __init__(self, directory: str | PathLike[str], agent_id: int) -> None:
        self._base_path = Path(directory)
        self._agent_id = agent_id
        self._slices: dict[str, dict[int, dict[str, str]]] = {}
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return (
            f"CsvStorageInitializer(directory={str(self._base_path)!r}, "
            f"agent_id={self._agent_id})"
        )

    def _load_slice(self, name: str) -> dict[int, dict[str, str]]:
        path = self._base_path / f"{name}-{self._agent_id}.csv"
        entries: dict[int, dict[str, str]] = {}
        try:
            with path.open(newline="", encoding="utf-8") as handle:
                for row in csv.DictReader(handle):
                    try:
                        bot_id, values = _parse_record(row)
                    except _BadRecord as err:
                        _log.warning("Error parsing csv entry - %s", err)
                        continue
                    entries[bot_id] = values
        except (OSError, UnicodeDecodeError, csv.Error) as err:
            _log.debug("No initial values loaded from %s - %s", path, err)
        return entries

    def initial_values_for(self, name: str, bot_id: int) -> dict[str, str]:
        """Initial values of storage ``name`` for ``bot_id``, empty if unknown."""
        with self._lock:
            slice_values = self._slices.get(name)
            if slice_values is None:
                slice_values = self._load_slice(name)
                self._slices[name] = slice_values
            return dict(slice_values.get(bot_id, {}))