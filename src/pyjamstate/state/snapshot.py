"""Immutable raw-state snapshots.

A snapshot is created once per loaded document and never mutated.
Each one gets a process-unique, monotonically increasing
``snapshot_id`` that caches key their results on.
"""

from __future__ import annotations

import itertools
from collections.abc import Iterator, Mapping
from types import MappingProxyType

RawState = Mapping[str, str]

_snapshot_ids = itertools.count(1)


class StateSnapshot(Mapping[str, str]):
    """Read-only ``key -> value`` view over one raw state."""

    __slots__ = ("__weakref__", "_entries", "_snapshot_id")

    def __init__(self, entries: Mapping[str, str] | None = None) -> None:
        self._entries: Mapping[str, str] = MappingProxyType(dict(entries or {}))
        self._snapshot_id = next(_snapshot_ids)

    @classmethod
    def of(cls, state: RawState) -> StateSnapshot:
        """Return *state* itself when already a snapshot, else wrap it."""
        if isinstance(state, StateSnapshot):
            return state
        return cls(state)

    @property
    def snapshot_id(self) -> int:
        return self._snapshot_id

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"StateSnapshot(id={self._snapshot_id}, entries={len(self._entries)})"
