"""Hierarchical identifiers made of an agent, a model and a bot id."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from hailstorm.varint import VarintDecodeError, decode_list, encode_list

_ID_BYTES = 8


class CompoundIdParseError(ValueError):
    """Raised when an internal id cannot be split into model and bot ids."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Bad Format - {message}")


def _pack(values: list[int]) -> int:
    encoded = encode_list(values)
    if len(encoded) > _ID_BYTES:
        raise OverflowError(f"encoded id takes {len(encoded)} bytes, more than {_ID_BYTES}")
    return int.from_bytes(encoded.rjust(_ID_BYTES, b"\x00"), "big")


@dataclass(frozen=True)
class CompoundId:
    """An agent id together with a model id and a bot id."""

    agent_id: Any
    model_id: int
    bot_id: int

    @classmethod
    def from_internal_id(cls, agent_id: Any, internal_id: int) -> CompoundId:
        """Rebuild an id from the agent id and a packed model/bot id."""
        try:
            sub_ids = decode_list(internal_id.to_bytes(_ID_BYTES, "big"))
        except VarintDecodeError as exc:
            raise CompoundIdParseError(str(exc)) from exc
        if len(sub_ids) != 2:
            raise CompoundIdParseError(
                f"Expected 2 subid in internal_id, found {len(sub_ids)}"
            )
        model_id, bot_id = sub_ids
        return cls(agent_id, model_id, bot_id)

    def internal_id(self) -> int:
        """The model and bot ids packed into one 64-bit integer."""
        return _pack([self.model_id, self.bot_id])

    def global_id(self) -> int:
        """The agent, model and bot ids packed into one 64-bit integer."""
        return _pack([self.agent_id, self.model_id, self.bot_id])

    def to_bytes(self) -> bytes:
        """The varint encoding of the agent, model and bot ids."""
        return encode_list([self.agent_id, self.model_id, self.bot_id])

    def with_agent_id(self, agent_id: Any) -> CompoundId:
        """A copy of this id with another agent id."""
        return replace(self, agent_id=agent_id)