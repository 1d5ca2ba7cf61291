"""Discover every entry a service owns in a snapshot.

``classify`` each key, then ``resolve`` lookup records. The result is a
pure function of ``(snapshot, service_id)``; :class:`ServiceEntryDiscovery`
memoizes it per snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pyjamstate._cache import ServiceEntryCache
from pyjamstate._codec import to_u32
from pyjamstate.discovery.classifier import KeyClassifier
from pyjamstate.discovery.resolver import resolve_lookups
from pyjamstate.keys import DEFAULT_KEYS, KeyDerivation
from pyjamstate.models.entries import ServiceEntry
from pyjamstate.state.snapshot import StateSnapshot

_logger = logging.getLogger(__name__)


def classify_entries(state: Mapping[str, str], service_id: int, classifier: KeyClassifier) -> list[ServiceEntry]:
    found: list[ServiceEntry] = []
    for key, value in state.items():
        entry = classifier.classify(service_id, key, value)
        if entry is not None:
            found.append(entry)
    return found


def discover_service_entries(
    state: Mapping[str, str],
    service_id: int,
    *,
    keys: KeyDerivation = DEFAULT_KEYS,
    emit_phantom_lookups: bool = True,
) -> tuple[ServiceEntry, ...]:
    """Classify and resolve all entries of *service_id* without caching."""
    service_id = to_u32(service_id)
    classified = classify_entries(state, service_id, KeyClassifier(keys))
    return resolve_lookups(
        service_id,
        classified,
        keys=keys,
        state=state,
        emit_phantom_lookups=emit_phantom_lookups,
    )


class ServiceEntryDiscovery:
    """Cached entry discovery.

    Call it with ``(state, service_id)``. Plain mappings are wrapped in a
    fresh :class:`StateSnapshot` and therefore never hit the cache; pass
    the same snapshot object to reuse earlier results.
    """

    def __init__(
        self,
        *,
        keys: KeyDerivation = DEFAULT_KEYS,
        emit_phantom_lookups: bool = True,
        cache: ServiceEntryCache | None = None,
    ) -> None:
        self._keys = keys
        self._classifier = KeyClassifier(keys)
        self._emit_phantom_lookups = emit_phantom_lookups
        self._cache = cache if cache is not None else ServiceEntryCache()

    @property
    def cache(self) -> ServiceEntryCache:
        return self._cache

    @property
    def keys(self) -> KeyDerivation:
        return self._keys

    def __call__(self, state: Mapping[str, str], service_id: int) -> tuple[ServiceEntry, ...]:
        snapshot = StateSnapshot.of(state)
        return self._cache.get_or_compute(snapshot, to_u32(service_id), self._compute)

    def _compute(self, snapshot: StateSnapshot, service_id: int) -> tuple[ServiceEntry, ...]:
        classified = classify_entries(snapshot, service_id, self._classifier)
        entries = resolve_lookups(
            service_id,
            classified,
            keys=self._keys,
            state=snapshot,
            emit_phantom_lookups=self._emit_phantom_lookups,
        )
        _logger.debug(
            "Discovered %d entries for service %s in snapshot %s",
            len(entries),
            service_id,
            snapshot.snapshot_id,
        )
        return entries
