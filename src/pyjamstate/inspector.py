"""High-level inspector over one or two snapshots."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

from pyjamstate._codec import to_u32
from pyjamstate.config import InspectorConfig
from pyjamstate.diff import get_comprehensive_change
from pyjamstate.discovery.entries import ServiceEntryDiscovery
from pyjamstate.discovery.service_ids import extract_service_ids
from pyjamstate.keys import DEFAULT_KEYS, KeyDerivation
from pyjamstate.models.changes import ComprehensiveChange
from pyjamstate.models.entries import ServiceEntry
from pyjamstate.models.service import ServiceData
from pyjamstate.search import service_matches_search
from pyjamstate.state.loader import ExtractedState
from pyjamstate.state.service import load_service_data
from pyjamstate.state.snapshot import StateSnapshot

Side = Literal["pre", "post"]


class StateInspector:
    """Inspect the services of a post snapshot, optionally against a pre snapshot.

    The inspector owns the entry cache; results for a snapshot are
    computed once per service and reused by diffing and searching.

    Parameters
    ----------
    post_state : mapping
        Snapshot being inspected.
    pre_state : mapping, optional
        Earlier snapshot to compare with.
    config : InspectorConfig, optional
        Behaviour switches. Defaults to :class:`InspectorConfig` defaults.
    keys : KeyDerivation, optional
        Key derivation for service-owned keys.
    """

    def __init__(
        self,
        post_state: Mapping[str, str],
        pre_state: Mapping[str, str] | None = None,
        *,
        config: InspectorConfig | None = None,
        keys: KeyDerivation = DEFAULT_KEYS,
    ) -> None:
        self._config = config or InspectorConfig()
        self._keys = keys
        self._post = StateSnapshot.of(post_state)
        self._pre = StateSnapshot.of(pre_state) if pre_state is not None else None
        self._discover = ServiceEntryDiscovery(
            keys=keys,
            emit_phantom_lookups=self._config.emit_phantom_lookups,
        )
        self._service_data: dict[int, ServiceData] = {}

    @classmethod
    def from_extracted(
        cls,
        extracted: ExtractedState,
        *,
        config: InspectorConfig | None = None,
        keys: KeyDerivation = DEFAULT_KEYS,
    ) -> StateInspector:
        return cls(extracted.state, extracted.pre_state, config=config, keys=keys)

    @property
    def post_state(self) -> StateSnapshot:
        return self._post

    @property
    def pre_state(self) -> StateSnapshot | None:
        return self._pre

    @property
    def is_comparing(self) -> bool:
        return self._pre is not None

    def service_ids(self) -> list[int]:
        """Sorted ids of every service present in either snapshot."""
        found = set(extract_service_ids(self._post))
        if self._pre is not None:
            found.update(extract_service_ids(self._pre))
        return sorted(found)

    def entries(self, service_id: int, side: Side = "post") -> tuple[ServiceEntry, ...]:
        """Discovered entries of one service.

        Parameters
        ----------
        service_id : int
            Service to discover.
        side : {"post", "pre"}
            Snapshot to read. ``"pre"`` yields an empty tuple when there
            is no pre snapshot.

        Returns
        -------
        tuple of ServiceEntry
            Cached per snapshot; repeated calls return the same tuple.
        """
        if side == "pre":
            if self._pre is None:
                return ()
            return self._discover(self._pre, service_id)
        return self._discover(self._post, service_id)

    def service_data(self, service_id: int) -> ServiceData:
        """Load (once) the service from both snapshots."""
        service_id = to_u32(service_id)
        data = self._service_data.get(service_id)
        if data is None:
            data = load_service_data(service_id, self._post, self._pre, keys=self._keys)
            self._service_data[service_id] = data
        return data

    def changes(self, service_id: int) -> ComprehensiveChange:
        """Summarise what changed for *service_id* between pre and post."""
        return get_comprehensive_change(
            self.service_data(service_id),
            self._post,
            self._pre,
            discover=self._discover,
        )

    def changed_service_ids(self) -> list[int]:
        """Ids of services with any change; all ids when not comparing."""
        ids = self.service_ids()
        if self._pre is None:
            return ids
        return [service_id for service_id in ids if self.changes(service_id).has_any_changes]

    def matches(self, service_id: int, term: str) -> bool:
        """Return ``True`` when *term* matches the service (see :func:`service_matches_search`)."""
        return service_matches_search(
            self.service_data(service_id),
            term,
            self._post,
            self._pre,
            keys=self._keys,
            discover=self._discover,
        )

    def search(self, term: str) -> list[int]:
        return [service_id for service_id in self.service_ids() if self.matches(service_id, term)]
