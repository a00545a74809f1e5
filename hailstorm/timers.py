"""Periodic tasks on the asyncio event loop.

``run_interval_weak`` repeats a call for as long as its target object is
alive. ``run_interval_synchro`` fires on wall-clock multiples of its period,
so that every process using the same period ticks at the same moments.
"""

from __future__ import annotations

import asyncio
import inspect
import time
import weakref
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeVar

T = TypeVar("T")

Period = "timedelta | float"


def _millis(period: timedelta | float) -> int:
    if isinstance(period, timedelta):
        return int(period / timedelta(milliseconds=1))
    return int(period * 1000)


def _seconds(period: timedelta | float) -> float:
    if isinstance(period, timedelta):
        return period.total_seconds()
    return float(period)


def next_delay(period: timedelta | float, now: float | None = None) -> timedelta:
    """Time from ``now`` to the next wall-clock multiple of ``period``.

    ``now`` is in seconds since the epoch and defaults to the current time;
    a ``now`` that is already on a boundary waits a whole period.
    """
    period_ms = _millis(period)
    if period_ms <= 0:
        raise ValueError(f"period {period!r} must be at least one millisecond")
    now_ms = time.time_ns() // 1_000_000 if now is None else int(now * 1000)
    next_ms = (now_ms // period_ms + 1) * period_ms
    return timedelta(milliseconds=next_ms - now_ms)


def run_interval_weak(
    target: T, period: timedelta | float, func: Callable[[T], Any]
) -> asyncio.Task[None]:
    """Call ``func(target)`` every ``period`` while ``target`` is alive.

    Only a weak reference to ``target`` is kept, so the task does not keep it
    alive; once it has been collected the task ends. An awaitable returned by
    ``func`` is awaited before sleeping until the next call.
    """
    ref = weakref.ref(target)
    seconds = _seconds(period)

    async def loop() -> None:
        while True:
            current = ref()
            if current is None:
                return
            pending = func(current)
            del current
            if inspect.isawaitable(pending):
                await pending
            del pending
            await asyncio.sleep(seconds)

    return asyncio.get_running_loop().create_task(loop())


def run_interval_synchro(
    period: timedelta | float, func: Callable[[], Any]
) -> asyncio.Task[None]:
    """Call ``func()`` at every wall-clock multiple of ``period``."""
    next_delay(period)  # validates the period before the task starts

    async def loop() -> None:
        while True:
            await asyncio.sleep(next_delay(period).total_seconds())
            pending = func()
            if inspect.isawaitable(pending):
                await pending

    return asyncio.get_running_loop().create_task(loop())