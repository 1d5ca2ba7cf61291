"""Separate lookup-history records from ambiguous storage entries.

Lookup records are keyed by ``(service, preimage hash, preimage length)``,
so they can only be recognised once the preimages are known. Each
preimage's lookup key is derived and the matching ambiguous entry is
re-tagged as :class:`LookupEntry`, emitted right after its preimage.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from pyjamstate._codec import to_hex, to_u32
from pyjamstate.keys import DEFAULT_KEYS, KeyDerivation
from pyjamstate.models.entries import LookupEntry, PreimageEntry, ServiceEntry, StorageOrLookupEntry

_logger = logging.getLogger(__name__)


def lookup_key_for(service_id: int, preimage: PreimageEntry, keys: KeyDerivation = DEFAULT_KEYS) -> str:
    """Derive the lookup-history key of *preimage*, cut to the preimage key width."""
    derived = to_hex(keys.service_lookup_history_key(to_u32(service_id), preimage.hash_bytes, preimage.length))
    return derived[: len(preimage.key)]


def resolve_lookups(
    service_id: int,
    entries: Iterable[ServiceEntry],
    *,
    keys: KeyDerivation = DEFAULT_KEYS,
    state: Mapping[str, str] | None = None,
    emit_phantom_lookups: bool = True,
) -> tuple[ServiceEntry, ...]:
    """Re-tag lookup records found among *entries*.

    Parameters
    ----------
    service_id : int
        Service the entries were classified for.
    entries : iterable of ServiceEntry
        Classifier output for one snapshot.
    keys : KeyDerivation
        Key derivation used for the lookup keys.
    state : mapping, optional
        Snapshot the entries came from; used to fill the value of a
        lookup key that no entry holds.
    emit_phantom_lookups : bool
        Emit a :class:`LookupEntry` for every preimage even when no entry
        holds its lookup key.

    Returns
    -------
    tuple of ServiceEntry
        Entries with ambiguous lookup records replaced. Running the
        result through this function again returns it unchanged.
    """
    entries = tuple(entries)

    lookup_keys: dict[str, str] = {}
    for entry in entries:
        if not isinstance(entry, PreimageEntry):
            continue
        try:
            lookup_keys[entry.key] = lookup_key_for(service_id, entry, keys).lower()
        except Exception:
            _logger.debug("Could not derive lookup key for preimage %s", entry.key, exc_info=True)

    wanted = set(lookup_keys.values())
    holders: dict[str, ServiceEntry] = {}
    for entry in entries:
        if isinstance(entry, (StorageOrLookupEntry, LookupEntry)) and entry.key.lower() in wanted:
            holders.setdefault(entry.key.lower(), entry)

    resolved: list[ServiceEntry] = []
    emitted: set[str] = set()
    for entry in entries:
        if isinstance(entry, (StorageOrLookupEntry, LookupEntry)) and entry.key.lower() in wanted:
            continue
        resolved.append(entry)

        lookup_key = lookup_keys.get(entry.key) if isinstance(entry, PreimageEntry) else None
        if lookup_key is None or lookup_key in emitted:
            continue

        holder = holders.get(lookup_key)
        if holder is not None:
            resolved.append(LookupEntry(key=holder.key, value=holder.value))
        elif emit_phantom_lookups:
            value = state.get(lookup_key, "") if state is not None else ""
            resolved.append(LookupEntry(key=lookup_key, value=value))
        else:
            continue
        emitted.add(lookup_key)

    return tuple(resolved)
