"""Values returned by bot handlers and their status codes.

Plain Python values stand for handler results: ``()`` is the unit value,
``None`` an empty option, a present option is its value itself, and
:class:`Ok` / :class:`Err` wrap results. Dicts, lists and other objects
carry no status.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

_U64_MASK = (1 << 64) - 1
_I64_SIGN = 1 << 63


@dataclass(frozen=True)
class Ok:
    """A successful result."""

    value: Any


@dataclass(frozen=True)
class Err:
    """A failed result."""

    value: Any


@dataclass(frozen=True)
class Opaque:
    """A value whose content cannot be carried outside the script."""


def _as_i64(value: int) -> int:
    wrapped = value & _U64_MASK
    return wrapped - (1 << 64) if wrapped & _I64_SIGN else wrapped


def extract_status(value: Any) -> int:
    """The numeric status of a handler result.

    Integers are their own status, an empty option is -1, results give
    the status of what they hold, and everything else is 0.
    """
    while isinstance(value, (Ok, Err)):
        value = value.value
    if value is None:
        return -1
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return _as_i64(value)
    return 0