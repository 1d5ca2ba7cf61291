"""Hex and little-endian helpers.

Everything here parses untrusted snapshot content. Strict parsers raise
:class:`ValueError`; the ``safe_*`` variants return ``None`` instead.
"""

from __future__ import annotations

import string
from typing import Any

from pyjamstate._constants import U32_MODULUS

_HEX_DIGITS = frozenset(string.hexdigits)


def is_hex_string(value: Any) -> bool:
    """Return ``True`` for ``0x``-prefixed, even-length hex strings."""
    if not isinstance(value, str) or not value.startswith("0x"):
        return False
    body = value[2:]
    return len(body) % 2 == 0 and all(ch in _HEX_DIGITS for ch in body)


def parse_hex(value: str) -> bytes:
    """Decode a ``0x``-prefixed hex string into bytes."""
    if not is_hex_string(value):
        raise ValueError(f"not a 0x-prefixed even-length hex string: {value[:20]!r}")
    return bytes.fromhex(value[2:])


def safe_parse_hex(value: Any) -> bytes | None:
    """Like :func:`parse_hex`, but return ``None`` for anything that is not hex."""
    if not is_hex_string(value):
        return None
    return bytes.fromhex(value[2:])


def to_hex(data: bytes) -> str:
    """Encode *data* as a lower-case ``0x``-prefixed hex string."""
    return "0x" + data.hex()


def ensure_hex_prefix(value: str) -> str:
    return value if value.startswith("0x") else f"0x{value}"


def to_u32(value: int) -> int:
    """Wrap a signed or unsigned integer into the u32 range."""
    return value % U32_MODULUS


def u32_le(value: int) -> bytes:
    return to_u32(value).to_bytes(4, "little")


def read_uint_le(data: bytes, offset: int, size: int) -> tuple[int, int]:
    """Read a ``size``-byte little-endian integer, returning ``(value, next_offset)``."""
    end = offset + size
    if end > len(data):
        raise ValueError(f"need {size} bytes at offset {offset}, only {len(data) - offset} left")
    return int.from_bytes(data[offset:end], "little"), end


def read_compact(data: bytes, offset: int) -> tuple[int, int]:
    """Read a variable-length natural number (JAM compact encoding).

    The count of leading one bits in the first byte gives the number of
    extra little-endian bytes; the remaining low bits of the first byte are
    the most significant part of the value. A first byte of ``0xff`` means
    a full 8-byte value follows.
    """
    if offset >= len(data):
        raise ValueError("unexpected end of data while reading compact integer")
    first = data[offset]
    extra = 0
    while extra < 8 and first & (0x80 >> extra):
        extra += 1
    if extra == 8:
        return read_uint_le(data, offset + 1, 8)
    tail, next_offset = read_uint_le(data, offset + 1, extra)
    head = first & (0xFF >> (extra + 1))
    return (head << (8 * extra)) + tail, next_offset
