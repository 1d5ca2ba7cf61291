"""Service account models and the service capability protocol."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import Field, field_serializer

from pyjamstate._codec import to_hex
from pyjamstate.models._base import JamBaseModel


class AccountInfo(JamBaseModel):
    """Decoded service account record.

    Parameters
    ----------
    service_id : int
        Unsigned service id the record belongs to.
    code_hash : bytes
        Hash of the service code blob.
    balance : int
        Account balance.
    accumulate_min_gas : int
        Minimum gas for accumulation.
    on_transfer_min_gas : int
        Minimum gas for on-transfer (memo) handling.
    storage_utilisation_bytes : int
        Total bytes used by storage items and preimages.
    gratis_storage : int
        Storage offset that is not charged.
    storage_utilisation_count : int
        Number of storage items and preimage records.
    created : int
        Timeslot of creation.
    last_accumulation : int
        Timeslot of the most recent accumulation.
    parent_service : int
        Id of the service that created this one.
    """

    service_id: int = Field(ge=0)
    code_hash: bytes
    balance: int = 0
    accumulate_min_gas: int = 0
    on_transfer_min_gas: int = 0
    storage_utilisation_bytes: int = 0
    gratis_storage: int = 0
    storage_utilisation_count: int = 0
    created: int = 0
    last_accumulation: int = 0
    parent_service: int = 0

    @field_serializer("code_hash")
    def _code_hash_hex(self, value: bytes) -> str:
        return to_hex(value)


class Service(Protocol):
    """Read access to one service account of a snapshot.

    Every method may raise; callers catch per call site.
    """

    @property
    def service_id(self) -> int: ...

    def get_info(self) -> Any: ...

    def get_storage(self, key: bytes) -> bytes | None: ...

    def has_preimage(self, preimage_hash: bytes) -> bool: ...

    def get_preimage(self, preimage_hash: bytes) -> bytes | None: ...

    def get_lookup_history(self, preimage_hash: bytes, length: int) -> list[int] | None: ...


@dataclass(frozen=True)
class ServiceData:
    """One service as seen in the pre and post snapshots.

    A side is ``None`` when the service could not be loaded there; the
    reason is kept in the matching ``*_error`` field.
    """

    service_id: int
    pre_service: Service | None = None
    post_service: Service | None = None
    pre_error: str | None = None
    post_error: str | None = None
