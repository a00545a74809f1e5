"""Variable-length encoding of 32-bit unsigned integers.

Each encoded byte carries seven data bits in its upper part; the least
significant bit is set on the last byte of a value.
"""

from __future__ import annotations

from collections.abc import Iterable

_U32_MASK = 0xFFFF_FFFF
_MAX_ENCODED_LEN = 5


class VarintDecodeError(ValueError):
    """Raised when a byte sequence is too long to hold a 32-bit value."""

    def __init__(self, expected: int, found: int, arg: bytes) -> None:
        self.expected = expected
        self.found = found
        self.arg = bytes(arg)
        listing = ", ".join(f"{b:02X}" for b in self.arg)
        super().__init__(
            f"Varint overflow expected {expected} bytes, found {found} bytes [{listing}]"
        )


def encode_u32(value: int) -> bytes:
    """Encode a 32-bit unsigned integer into its varint form."""
    if not 0 <= value <= _U32_MASK:
        raise ValueError(f"value {value} does not fit in 32 unsigned bits")
    result_len = max((value.bit_length() + 6) // 7, 1)
    shifted = (value << 1) & _U32_MASK
    out = bytearray()
    for group in range(_MAX_ENCODED_LEN - result_len, _MAX_ENCODED_LEN):
        if group > 0:
            byte = (shifted >> ((4 - group) * 7)) & 0xFE
        else:
            byte = (value >> 27) & 0xFE
        out.append(byte)
    out[-1] |= 1
    return bytes(out)


def decode_u32(data: bytes | Iterable[int]) -> int:
    """Decode a single varint-encoded 32-bit unsigned integer."""
    raw = bytes(data)
    if len(raw) > _MAX_ENCODED_LEN:
        raise VarintDecodeError(_MAX_ENCODED_LEN, len(raw), raw)
    result = 0
    last = len(raw) - 1
    for position, byte in enumerate(raw):
        result |= ((byte >> 1) << ((last - position) * 7)) & _U32_MASK
    return result


def encode_list(values: Iterable[int]) -> bytes:
    """Encode a sequence of 32-bit unsigned integers, one after another."""
    return b"".join(encode_u32(value) for value in values)


def _split_groups(data: bytes) -> list[bytearray]:
    groups: list[bytearray] = [bytearray()]
    for byte in data:
        current = groups[-1]
        if not current:
            # Leading zero bytes act as padding and are skipped.
            if byte > 0:
                current.append(byte)
        elif current[-1] & 1 == 0:
            current.append(byte)
        elif byte > 0:
            groups.append(bytearray([byte]))
        else:
            groups.append(bytearray())
    return groups


def decode_list(data: bytes | Iterable[int]) -> list[int]:
    """Decode a concatenation of varint values.

    Zero padding bytes are skipped; empty input decodes to a single zero.
    """
    return [decode_u32(group) for group in _split_groups(bytes(data))]