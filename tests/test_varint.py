import random

import pytest

from hailstorm.varint import (
    VarintDecodeError,
    decode_list,
    decode_u32,
    encode_list,
    encode_u32,
)

U32_MAX = 0xFFFF_FFFF


def test_roundtrip_zero():
    assert decode_u32(encode_u32(0)) == 0


def test_roundtrip_one():
    assert decode_u32(encode_u32(1)) == 1


def test_roundtrip_max():
    assert decode_u32(encode_u32(U32_MAX)) == U32_MAX


def test_roundtrip_random():
    rng = random.Random(1234)
    for _ in range(100):
        value = rng.getrandbits(32)
        assert decode_u32(encode_u32(value)) == value, f"roundtrip failed for {value}"


def test_vec_roundtrip():
    arg = [0, random.Random(42).getrandbits(32), U32_MAX]
    assert decode_list(encode_list(arg)) == arg


def test_empty_vec_roundtrip():
    encoded = encode_list([])
    assert encoded == b""
    assert decode_list(encoded) == [0]


def test_overflow_returns_error():
    with pytest.raises(VarintDecodeError) as info:
        decode_u32(bytes(6))
    assert info.value.expected == 5
    assert info.value.found == 6


def test_overflow_message():
    with pytest.raises(VarintDecodeError, match=r"expected 5 bytes, found 6 bytes \[00, 00"):
        decode_u32(bytes(6))


def test_small_values_encode_compactly():
    assert len(encode_u32(0)) == 1
    assert len(encode_u32(1)) == 1
    assert len(encode_u32(127)) == 1
    assert len(encode_u32(128)) == 2


@pytest.mark.parametrize(
    "value, encoded",
    [(0, b"\x01"), (1, b"\x03"), (2, b"\x05"), (3, b"\x07"), (127, b"\xff"), (128, b"\x02\x01")],
)
def test_pinned_encodings(value, encoded):
    assert encode_u32(value) == encoded
    assert decode_u32(encoded) == value


def test_max_uses_five_bytes():
    assert len(encode_u32(U32_MAX)) == 5


def test_last_byte_is_terminated():
    for value in (0, 5, 300, 70000, U32_MAX):
        encoded = encode_u32(value)
        assert encoded[-1] & 1 == 1
        assert all(b & 1 == 0 for b in encoded[:-1])


def test_decode_list_skips_leading_padding():
    assert decode_list(b"\x00\x00\x00\x05\x07") == [2, 3]


def test_decode_list_group_overflow():
    with pytest.raises(VarintDecodeError):
        decode_list(b"\x02\x02\x02\x02\x02\x02\x03")


@pytest.mark.parametrize("value", [-1, U32_MAX + 1])
def test_encode_out_of_range(value):
    with pytest.raises(ValueError):
        encode_u32(value)