"""State key derivation for service-owned trie entries.

The engine never builds keys itself; it asks a :class:`KeyDerivation`
implementation. :class:`GrayPaperKeys` follows the JAM Gray Paper 0.7
layout and is what every public entry point uses unless another
implementation is passed in.
"""

from __future__ import annotations

from typing import Protocol

from pyjamstate._codec import u32_le
from pyjamstate._constants import (
    FULL_KEY_BYTES,
    NESTED_HASH_BYTES,
    PREIMAGE_KEY_PREFIX,
    SERVICE_ID_BYTES,
    SERVICE_INFO_MARKER,
    STORAGE_KEY_PREFIX,
)
from pyjamstate.hashing import blake2b_256


class KeyDerivation(Protocol):
    """Derives full-width (32-byte) state keys for one service."""

    def service_info_key(self, service_id: int) -> bytes: ...

    def service_storage_key(self, service_id: int, key: bytes) -> bytes: ...

    def service_preimage_key(self, service_id: int, preimage_hash: bytes) -> bytes: ...

    def service_lookup_history_key(self, service_id: int, preimage_hash: bytes, length: int) -> bytes: ...


class GrayPaperKeys:
    """Gray Paper key constructors.

    Account records live at ``[0xff, n0, 0, n1, 0, n2, 0, n3, 0, ...]``.
    Storage, preimage and lookup-history entries interleave the service id
    bytes with the first four bytes of ``blake2b(E4(prefix) ++ data)`` and
    append the next 24 digest bytes.
    """

    def service_info_key(self, service_id: int) -> bytes:
        key = bytearray(FULL_KEY_BYTES)
        key[0] = SERVICE_INFO_MARKER
        for i, byte in enumerate(u32_le(service_id)):
            key[1 + 2 * i] = byte
        return bytes(key)

    def service_storage_key(self, service_id: int, key: bytes) -> bytes:
        return self._nested(service_id, STORAGE_KEY_PREFIX, key)

    def service_preimage_key(self, service_id: int, preimage_hash: bytes) -> bytes:
        return self._nested(service_id, PREIMAGE_KEY_PREFIX, preimage_hash)

    def service_lookup_history_key(self, service_id: int, preimage_hash: bytes, length: int) -> bytes:
        return self._nested(service_id, length, preimage_hash)

    @staticmethod
    def _nested(service_id: int, prefix: int, data: bytes) -> bytes:
        digest = blake2b_256(u32_le(prefix) + data)[:NESTED_HASH_BYTES]
        key = bytearray(FULL_KEY_BYTES)
        for i, byte in enumerate(u32_le(service_id)):
            key[2 * i] = byte
            key[2 * i + 1] = digest[i]
        key[2 * SERVICE_ID_BYTES :] = digest[SERVICE_ID_BYTES:]
        return bytes(key)


DEFAULT_KEYS: KeyDerivation = GrayPaperKeys()
