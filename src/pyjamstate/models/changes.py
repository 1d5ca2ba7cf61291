"""Per-service change summaries between two snapshots."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from pyjamstate.models._base import JamBaseModel


class ServiceChangeType(StrEnum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"
    NORMAL = "normal"


class ChangeSet(JamBaseModel):
    """Key counts for one entry category across two snapshots."""

    has_any_changes: bool = False
    total_count: int = Field(default=0, ge=0)
    pre_count: int = Field(default=0, ge=0)
    post_count: int = Field(default=0, ge=0)
    added: int = Field(default=0, ge=0)
    removed: int = Field(default=0, ge=0)
    changed: int = Field(default=0, ge=0)


class ComprehensiveChange(JamBaseModel):
    """Account-record change flag plus storage/preimage/lookup change sets."""

    has_any_changes: bool
    has_service_info_changes: bool
    storage: ChangeSet
    preimages: ChangeSet
    lookup: ChangeSet
