"""Data models for snapshot inspection results."""

from pyjamstate.models._base import JamBaseModel
from pyjamstate.models.changes import ChangeSet, ComprehensiveChange, ServiceChangeType
from pyjamstate.models.entries import (
    SERVICE_ENTRIES,
    EntryKind,
    LookupEntry,
    PreimageEntry,
    ServiceEntry,
    ServiceInfoEntry,
    StorageOrLookupEntry,
    keys_of_kind,
)
from pyjamstate.models.service import AccountInfo, Service, ServiceData

__all__ = [
    "SERVICE_ENTRIES",
    "AccountInfo",
    "ChangeSet",
    "ComprehensiveChange",
    "EntryKind",
    "JamBaseModel",
    "LookupEntry",
    "PreimageEntry",
    "Service",
    "ServiceChangeType",
    "ServiceData",
    "ServiceEntry",
    "ServiceInfoEntry",
    "StorageOrLookupEntry",
    "keys_of_kind",
]
