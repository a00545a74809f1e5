"""Generator of small sequential ids that reuses released ones."""

from __future__ import annotations


class SequentialIdGenerator:
    """Hands out ids starting at 1, preferring the smallest released id."""

    def __init__(self) -> None:
        self._last_generated = 0
        self._released: set[int] = set()

    def next_id(self) -> int:
        """Return the smallest released id, or a fresh one if none is free."""
        if self._released:
            smallest = min(self._released)
            self._released.remove(smallest)
            return smallest
        self._last_generated += 1
        return self._last_generated

    def release_id(self, ident: int) -> None:
        """Give an id back so that it can be handed out again."""
        if ident != self._last_generated:
            self._released.add(ident)
            return
        self._last_generated = ident - 1
        for released in sorted(self._released, reverse=True):
            if released != self._last_generated:
                break
            self._last_generated = released - 1
        self._released = {r for r in self._released if r < self._last_generated}