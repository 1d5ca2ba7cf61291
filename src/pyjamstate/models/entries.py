"""Service entry variants discovered in a raw snapshot.

A :data:`ServiceEntry` is a closed union of four variants tagged by
``kind``. Callers dispatch with ``isinstance`` on the concrete classes.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import Field, TypeAdapter

from pyjamstate._codec import parse_hex
from pyjamstate.models._base import JamBaseModel


class EntryKind(StrEnum):
    SERVICE_INFO = "service-info"
    PREIMAGE = "preimage"
    LOOKUP = "lookup"
    STORAGE_OR_LOOKUP = "storage-or-lookup"


class _Entry(JamBaseModel):
    key: str
    value: str


class ServiceInfoEntry(_Entry):
    """The account record of the service."""

    kind: Literal["service-info"] = "service-info"


class PreimageEntry(_Entry):
    """A blob whose hash re-derives the key it is stored under.

    Parameters
    ----------
    length : int
        Blob length in bytes.
    hash : str
        ``0x``-prefixed BLAKE2b-256 digest of the blob.
    """

    kind: Literal["preimage"] = "preimage"
    length: int = Field(ge=0)
    hash: str

    @property
    def hash_bytes(self) -> bytes:
        return parse_hex(self.hash)


class LookupEntry(_Entry):
    """Lookup-history record of a known preimage.

    ``value`` is empty when the derived key is absent from the snapshot.
    """

    kind: Literal["lookup"] = "lookup"


class StorageOrLookupEntry(_Entry):
    """Service-owned key that is neither account record nor preimage.

    Either a storage slot or a lookup record whose preimage is missing.
    """

    kind: Literal["storage-or-lookup"] = "storage-or-lookup"


ServiceEntry = Annotated[
    ServiceInfoEntry | PreimageEntry | LookupEntry | StorageOrLookupEntry,
    Field(discriminator="kind"),
]

SERVICE_ENTRIES: TypeAdapter[list[ServiceEntry]] = TypeAdapter(list[ServiceEntry])


def keys_of_kind(entries: Iterable[ServiceEntry], kind: EntryKind | str) -> list[str]:
    """Return the keys of all entries of *kind*, in entry order."""
    return [entry.key for entry in entries if entry.kind == kind]
