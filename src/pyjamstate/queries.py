"""Point queries against one service.

Inputs are free text typed by a user, so every query returns either a
result or an ``"Error: ..."`` string and never raises.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from typing import Literal

from pyjamstate._codec import is_hex_string, parse_hex, to_hex
from pyjamstate._constants import FULL_KEY_BYTES, HASH_BYTES, STATE_KEY_BYTES
from pyjamstate.exceptions import KeyFormatError
from pyjamstate.hashing import blake2b_256
from pyjamstate.models.service import Service

_logger = logging.getLogger(__name__)

# Hex length of a 23-byte storage key prefix; shorter keys are zero padded.
_SHORT_STORAGE_KEY_LEN = 48

QueryResult = bytes | list[int] | str | None


@dataclasses.dataclass(frozen=True)
class ParsedKey:
    """A user-supplied key.

    ``kind`` is ``"storage"`` or ``"preimage"`` for keys to pass to the
    service, and ``"raw"`` for a full state key to read from the snapshot.
    """

    kind: Literal["storage", "preimage", "raw"]
    data: bytes

    @property
    def state_key(self) -> str:
        return to_hex(self.data)


def _parse_fixed(text: str, size: int) -> bytes:
    try:
        data = parse_hex(text)
    except ValueError as err:
        raise KeyFormatError(str(err)) from err
    if len(data) != size:
        raise KeyFormatError(f"expected {size} bytes, got {len(data)}")
    return data


def parse_storage_key(text: str) -> ParsedKey:
    """Interpret a storage query.

    A 32-byte hex string is a storage key, a 31-byte one a raw state key
    and a 23-byte one a storage key prefix padded with zeros. Anything
    else is hashed (BLAKE2b-256 of its UTF-8 bytes) into a storage key.
    """
    if text.startswith("0x"):
        if len(text) == 2 + 2 * FULL_KEY_BYTES:
            return ParsedKey("storage", _parse_fixed(text, FULL_KEY_BYTES))
        if len(text) == 2 + 2 * STATE_KEY_BYTES:
            return ParsedKey("raw", _parse_fixed(text, STATE_KEY_BYTES))
        if len(text) == _SHORT_STORAGE_KEY_LEN:
            padded = text + "0" * (2 + 2 * FULL_KEY_BYTES - _SHORT_STORAGE_KEY_LEN)
            return ParsedKey("storage", _parse_fixed(padded, FULL_KEY_BYTES))
    return ParsedKey("storage", blake2b_256(text.encode("utf-8")))


def parse_preimage_input(text: str) -> ParsedKey:
    """Interpret a preimage query: a 31-byte raw state key or a 32-byte hash."""
    if text.startswith("0x") and len(text) == 2 + 2 * STATE_KEY_BYTES:
        return ParsedKey("raw", _parse_fixed(text, STATE_KEY_BYTES))
    return ParsedKey("preimage", _parse_fixed(text, HASH_BYTES))


def _read_raw(parsed: ParsedKey, state: Mapping[str, str]) -> bytes | None:
    raw_value = state.get(parsed.state_key)
    return None if raw_value is None else parse_hex(raw_value)


def _error(err: Exception) -> str:
    return f"Error: {str(err) or type(err).__name__}"


def get_storage_value(service: Service, key: str, state: Mapping[str, str]) -> QueryResult:
    try:
        parsed = parse_storage_key(key)
        if parsed.kind == "storage":
            return service.get_storage(parsed.data)
        return _read_raw(parsed, state)
    except Exception as err:
        _logger.debug("Storage query %r failed", key, exc_info=True)
        return _error(err)


def get_preimage_value(service: Service, preimage_hash: str, state: Mapping[str, str]) -> QueryResult:
    try:
        parsed = parse_preimage_input(preimage_hash)
        if parsed.kind == "raw":
            return _read_raw(parsed, state)
        if not service.has_preimage(parsed.data):
            return None
        return service.get_preimage(parsed.data)
    except Exception as err:
        _logger.debug("Preimage query %r failed", preimage_hash, exc_info=True)
        return _error(err)


def get_lookup_history_value(
    service: Service,
    preimage_hash: str,
    length: str,
    state: Mapping[str, str],
) -> QueryResult:
    try:
        parsed = parse_preimage_input(preimage_hash)
        if parsed.kind == "raw":
            return _read_raw(parsed, state)
        try:
            preimage_length = int(length.strip(), 10)
        except ValueError:
            return "Error: Invalid length"
        return service.get_lookup_history(parsed.data, preimage_length)
    except Exception as err:
        _logger.debug("Lookup history query %r failed", preimage_hash, exc_info=True)
        return _error(err)


def calculate_preimage_hash(raw_value: str) -> str:
    """Return the ``0x``-hex BLAKE2b-256 digest of a hex blob, or an error string."""
    if not is_hex_string(raw_value):
        return "Error: value is not a 0x-prefixed hex string"
    return to_hex(blake2b_256(parse_hex(raw_value)))
