"""Service capability backed directly by a raw snapshot.

Reads account records, storage items, preimages and lookup histories
straight from the trie entries, using the same key derivation as the
discovery engine.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pyjamstate._codec import parse_hex, read_compact, read_uint_le, to_hex, to_u32
from pyjamstate._constants import HASH_BYTES, STATE_KEY_BYTES
from pyjamstate.exceptions import JamStateError, ServiceDecodeError, ServiceNotFoundError
from pyjamstate.keys import DEFAULT_KEYS, KeyDerivation
from pyjamstate.models.service import AccountInfo, ServiceData

_logger = logging.getLogger(__name__)

_U64_FIELDS: tuple[str, ...] = (
    "balance",
    "accumulate_min_gas",
    "on_transfer_min_gas",
    "storage_utilisation_bytes",
    "gratis_storage",
)
_U32_FIELDS: tuple[str, ...] = (
    "storage_utilisation_count",
    "created",
    "last_accumulation",
    "parent_service",
)
ACCOUNT_INFO_BYTES = HASH_BYTES + 8 * len(_U64_FIELDS) + 4 * len(_U32_FIELDS)


def decode_account_info(service_id: int, data: bytes, *, key: str = "") -> AccountInfo:
    """Decode an account record.

    Accepts the bare 88-byte layout and the one prefixed by a zero
    version byte.
    """
    if len(data) == ACCOUNT_INFO_BYTES + 1 and data[0] == 0:
        data = data[1:]
    if len(data) != ACCOUNT_INFO_BYTES:
        raise ServiceDecodeError(
            f"account record must be {ACCOUNT_INFO_BYTES} bytes, got {len(data)}",
            key=key,
        )

    fields: dict[str, int] = {}
    offset = HASH_BYTES
    for name in _U64_FIELDS:
        fields[name], offset = read_uint_le(data, offset, 8)
    for name in _U32_FIELDS:
        fields[name], offset = read_uint_le(data, offset, 4)
    return AccountInfo(service_id=to_u32(service_id), code_hash=data[:HASH_BYTES], **fields)


def decode_lookup_slots(data: bytes, *, key: str = "") -> list[int]:
    """Decode a length-prefixed sequence of u32 timeslots."""
    try:
        count, offset = read_compact(data, 0)
        slots: list[int] = []
        for _ in range(count):
            slot, offset = read_uint_le(data, offset, 4)
            slots.append(slot)
    except ValueError as err:
        raise ServiceDecodeError(f"malformed lookup history: {err}", key=key) from err
    if offset != len(data):
        raise ServiceDecodeError(f"{len(data) - offset} trailing bytes after lookup history", key=key)
    return slots


class RawStateService:
    """:class:`pyjamstate.models.Service` implementation over a snapshot."""

    def __init__(self, state: Mapping[str, str], service_id: int, *, keys: KeyDerivation = DEFAULT_KEYS) -> None:
        self._state = state
        self._service_id = to_u32(service_id)
        self._keys = keys

    @property
    def service_id(self) -> int:
        return self._service_id

    def _lookup(self, full_key: bytes) -> tuple[str, str] | None:
        for width in (STATE_KEY_BYTES, len(full_key)):
            key = to_hex(full_key[:width])
            raw = self._state.get(key)
            if raw is not None:
                return key, raw
        return None

    def _read(self, full_key: bytes) -> bytes | None:
        found = self._lookup(full_key)
        if found is None:
            return None
        key, raw = found
        try:
            return parse_hex(raw)
        except ValueError as err:
            raise ServiceDecodeError(f"value at {key} is not hex", key=key) from err

    def exists(self) -> bool:
        return self._lookup(self._keys.service_info_key(self._service_id)) is not None

    def get_info(self) -> AccountInfo:
        info_key = self._keys.service_info_key(self._service_id)
        data = self._read(info_key)
        if data is None:
            raise ServiceNotFoundError(self._service_id)
        return decode_account_info(self._service_id, data, key=to_hex(info_key[:STATE_KEY_BYTES]))

    def get_storage(self, key: bytes) -> bytes | None:
        return self._read(self._keys.service_storage_key(self._service_id, key))

    def has_preimage(self, preimage_hash: bytes) -> bool:
        return self._lookup(self._keys.service_preimage_key(self._service_id, preimage_hash)) is not None

    def get_preimage(self, preimage_hash: bytes) -> bytes | None:
        return self._read(self._keys.service_preimage_key(self._service_id, preimage_hash))

    def get_lookup_history(self, preimage_hash: bytes, length: int) -> list[int] | None:
        lookup_key = self._keys.service_lookup_history_key(self._service_id, preimage_hash, length)
        data = self._read(lookup_key)
        if data is None:
            return None
        return decode_lookup_slots(data, key=to_hex(lookup_key[:STATE_KEY_BYTES]))

    def __repr__(self) -> str:
        return f"RawStateService(service_id={self._service_id})"


def _load_side(
    state: Mapping[str, str],
    service_id: int,
    keys: KeyDerivation,
) -> tuple[RawStateService | None, str | None]:
    service = RawStateService(state, service_id, keys=keys)
    try:
        service.get_info()
    except JamStateError as err:
        _logger.debug("Service %s failed to load: %s", service_id, err)
        return None, str(err)
    return service, None


def load_service_data(
    service_id: int,
    post_state: Mapping[str, str],
    pre_state: Mapping[str, str] | None = None,
    *,
    keys: KeyDerivation = DEFAULT_KEYS,
) -> ServiceData:
    """Load one service from both snapshots.

    A side whose account record is missing or cannot be decoded is left
    empty, with the reason (``"Service not found"`` or the decode error)
    as its error message. Without *pre_state* both sides come from
    *post_state*.
    """
    post_service, post_error = _load_side(post_state, service_id, keys)
    if pre_state is None:
        pre_service, pre_error = post_service, post_error
    else:
        pre_service, pre_error = _load_side(pre_state, service_id, keys)
    return ServiceData(
        service_id=to_u32(service_id),
        pre_service=pre_service,
        post_service=post_service,
        pre_error=pre_error,
        post_error=post_error,
    )
