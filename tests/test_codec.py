from __future__ import annotations

import pytest

from pyjamstate._codec import (
    ensure_hex_prefix,
    is_hex_string,
    parse_hex,
    read_compact,
    read_uint_le,
    safe_parse_hex,
    to_u32,
    u32_le,
)


@pytest.mark.parametrize("value", ["0x", "0x00", "0xABcd", "0x" + "ff" * 32])
def test_is_hex_string_accepts_prefixed_even_hex(value: str) -> None:
    assert is_hex_string(value)


@pytest.mark.parametrize("value", ["", "00", "0x0", "0xzz", "0x 1", None, 12, b"0x00"])
def test_is_hex_string_rejects_malformed(value: object) -> None:
    assert not is_hex_string(value)


def test_parse_hex_raises_value_error() -> None:
    with pytest.raises(ValueError):
        parse_hex("0x123")
    assert safe_parse_hex("0x123") is None
    assert parse_hex("0x0aFF") == b"\x0a\xff"


def test_ensure_hex_prefix() -> None:
    assert ensure_hex_prefix("ab") == "0xab"
    assert ensure_hex_prefix("0xab") == "0xab"


def test_u32_wraps_negative_ids() -> None:
    assert to_u32(-1) == 0xFFFFFFFF
    assert u32_le(0x04030201) == b"\x01\x02\x03\x04"
    assert u32_le(-2) == b"\xfe\xff\xff\xff"


def test_read_uint_le_bounds() -> None:
    assert read_uint_le(b"\x01\x00\x02", 1, 2) == (0x200, 3)
    with pytest.raises(ValueError):
        read_uint_le(b"\x01", 0, 4)


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        (b"\x00", 0),
        (b"\x7f", 127),
        (b"\x80\x80", 128),
        (b"\xbf\xff", (1 << 14) - 1),
        (b"\xc0\x00\x40", 1 << 14),
        (b"\xff" + (2**40).to_bytes(8, "little"), 2**40),
    ],
)
def test_read_compact(data: bytes, expected: int) -> None:
    value, offset = read_compact(data, 0)
    assert value == expected
    assert offset == len(data)


def test_read_compact_truncated() -> None:
    with pytest.raises(ValueError):
        read_compact(b"\x80", 0)
    with pytest.raises(ValueError):
        read_compact(b"", 0)
