from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

from pyjamstate._codec import to_hex
from pyjamstate.hashing import blake2b_256
from pyjamstate.keys import GrayPaperKeys
from pyjamstate.state.snapshot import StateSnapshot

KEYS = GrayPaperKeys()


def state_key(full_key: bytes) -> str:
    return to_hex(full_key[:31])


def encode_account_info(
    *,
    code_hash: bytes = b"\x11" * 32,
    balance: int = 1_000,
    accumulate_min_gas: int = 10,
    on_transfer_min_gas: int = 20,
    storage_utilisation_bytes: int = 300,
    gratis_storage: int = 0,
    storage_utilisation_count: int = 3,
    created: int = 1,
    last_accumulation: int = 2,
    parent_service: int = 0,
    version_byte: bool = True,
) -> bytes:
    body = code_hash
    for value in (balance, accumulate_min_gas, on_transfer_min_gas, storage_utilisation_bytes, gratis_storage):
        body += value.to_bytes(8, "little")
    for value in (storage_utilisation_count, created, last_accumulation, parent_service):
        body += value.to_bytes(4, "little")
    return b"\x00" + body if version_byte else body


def encode_slots(slots: list[int]) -> bytes:
    return bytes([len(slots)]) + b"".join(slot.to_bytes(4, "little") for slot in slots)


@dataclass
class StateBuilder:
    """Builds raw states with correctly derived service keys."""

    entries: dict[str, str] = field(default_factory=dict)

    def put(self, key: str, value: bytes | str) -> str:
        self.entries[key] = value if isinstance(value, str) else to_hex(value)
        return key

    def info(self, service_id: int, **fields: Any) -> str:
        return self.put(state_key(KEYS.service_info_key(service_id)), encode_account_info(**fields))

    def storage(self, service_id: int, key: bytes, value: bytes) -> str:
        return self.put(state_key(KEYS.service_storage_key(service_id, key)), value)

    def preimage(self, service_id: int, blob: bytes) -> str:
        return self.put(state_key(KEYS.service_preimage_key(service_id, blake2b_256(blob))), blob)

    def lookup(self, service_id: int, blob: bytes, slots: list[int]) -> str:
        full_key = KEYS.service_lookup_history_key(service_id, blake2b_256(blob), len(blob))
        return self.put(state_key(full_key), encode_slots(slots))

    def lookup_key(self, service_id: int, blob: bytes) -> str:
        return state_key(KEYS.service_lookup_history_key(service_id, blake2b_256(blob), len(blob)))

    def copy(self) -> StateBuilder:
        return StateBuilder(dict(self.entries))

    def build(self) -> StateSnapshot:
        return StateSnapshot(self.entries)


@pytest.fixture
def builder() -> StateBuilder:
    return StateBuilder()
