"""Per-snapshot memo of discovered service entries."""

from __future__ import annotations

import weakref
from collections.abc import Callable, Sequence

from pyjamstate.models.entries import ServiceEntry
from pyjamstate.state.snapshot import StateSnapshot

EntryComputer = Callable[[StateSnapshot, int], Sequence[ServiceEntry]]


class ServiceEntryCache:
    """Two-level memo: ``snapshot_id -> service_id -> entries``.

    Slots are never invalidated; a snapshot is immutable, so its entries
    stay valid for as long as it lives. When the snapshot is garbage
    collected its slot is dropped. Duplicate computation of the same slot
    is harmless: the first stored result wins and is returned to every
    caller.
    """

    def __init__(self) -> None:
        self._snapshots: dict[int, dict[int, tuple[ServiceEntry, ...]]] = {}

    def _slot(self, snapshot: StateSnapshot) -> dict[int, tuple[ServiceEntry, ...]]:
        slot = self._snapshots.get(snapshot.snapshot_id)
        if slot is None:
            slot = self._snapshots.setdefault(snapshot.snapshot_id, {})
            weakref.finalize(snapshot, self._snapshots.pop, snapshot.snapshot_id, None)
        return slot

    def get(self, snapshot: StateSnapshot, service_id: int) -> tuple[ServiceEntry, ...] | None:
        """Return the cached entries of *service_id*, or ``None`` when not computed yet."""
        slot = self._snapshots.get(snapshot.snapshot_id)
        if slot is None:
            return None
        return slot.get(service_id)

    def get_or_compute(
        self,
        snapshot: StateSnapshot,
        service_id: int,
        compute: EntryComputer,
    ) -> tuple[ServiceEntry, ...]:
        """Return cached entries, computing and storing them on a miss.

        Parameters
        ----------
        snapshot : StateSnapshot
            Snapshot the entries belong to.
        service_id : int
            Unsigned service id.
        compute : callable
            ``compute(snapshot, service_id)``; only called on a miss.

        Returns
        -------
        tuple of ServiceEntry
            The stored entries. When two computations race, both callers
            get the first stored result.
        """
        slot = self._slot(snapshot)
        cached = slot.get(service_id)
        if cached is not None:
            return cached
        return slot.setdefault(service_id, tuple(compute(snapshot, service_id)))

    def forget(self, snapshot: StateSnapshot) -> None:
        """Drop every cached slot of *snapshot*."""
        self._snapshots.pop(snapshot.snapshot_id, None)

    def clear(self) -> None:
        """Drop all cached slots."""
        self._snapshots.clear()

    def __len__(self) -> int:
        return sum(len(slot) for slot in self._snapshots.values())
