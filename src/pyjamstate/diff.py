"""Per-service change detection between two snapshots."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence

from pyjamstate.discovery.entries import discover_service_entries
from pyjamstate.models.changes import ChangeSet, ComprehensiveChange, ServiceChangeType
from pyjamstate.models.entries import EntryKind, ServiceEntry, keys_of_kind
from pyjamstate.models.service import ServiceData

_logger = logging.getLogger(__name__)

EntryDiscovery = Callable[[Mapping[str, str], int], Sequence[ServiceEntry]]

# Entry kind backing each change-set category.
CATEGORY_KINDS: dict[str, EntryKind] = {
    "storage": EntryKind.STORAGE_OR_LOOKUP,
    "preimages": EntryKind.PREIMAGE,
    "lookup": EntryKind.LOOKUP,
}


def get_service_change_type(service_data: ServiceData) -> ServiceChangeType:
    """Classify the account-record change of one service.

    A failing ``get_info()`` counts as "no change"; the failure itself is
    reported through ``pre_error``/``post_error``.
    """
    pre, post = service_data.pre_service, service_data.post_service

    if service_data.pre_error and service_data.post_error:
        return ServiceChangeType.NORMAL
    if pre is None and post is not None:
        return ServiceChangeType.ADDED
    if pre is not None and post is None:
        return ServiceChangeType.REMOVED
    if pre is None or post is None:
        return ServiceChangeType.NORMAL

    try:
        pre_info = pre.get_info()
        post_info = post.get_info()
    except Exception:
        _logger.debug("Account info unavailable for service %s", service_data.service_id, exc_info=True)
        return ServiceChangeType.NORMAL
    return ServiceChangeType.CHANGED if pre_info != post_info else ServiceChangeType.NORMAL


def compute_change_set(
    pre_keys: Iterable[str],
    post_keys: Iterable[str],
    pre_state: Mapping[str, str],
    post_state: Mapping[str, str],
) -> ChangeSet:
    """Count added, removed and changed keys of one category."""
    pre = dict.fromkeys(pre_keys)
    post = dict.fromkeys(post_keys)

    added = sum(1 for key in post if key not in pre)
    removed = sum(1 for key in pre if key not in post)
    changed = sum(1 for key in pre if key in post and pre_state.get(key) != post_state.get(key))

    return ChangeSet(
        has_any_changes=added > 0 or removed > 0 or changed > 0,
        total_count=len(pre.keys() | post.keys()),
        pre_count=len(pre),
        post_count=len(post),
        added=added,
        removed=removed,
        changed=changed,
    )


def _present_keys(entries: Sequence[ServiceEntry], kind: EntryKind, state: Mapping[str, str]) -> list[str]:
    # Phantom lookup entries name keys their snapshot does not hold.
    return [key for key in keys_of_kind(entries, kind) if key in state]


def get_comprehensive_change(
    service_data: ServiceData,
    post_state: Mapping[str, str],
    pre_state: Mapping[str, str] | None = None,
    *,
    discover: EntryDiscovery = discover_service_entries,
) -> ComprehensiveChange:
    """Summarise every change of one service between two snapshots.

    Without *pre_state* the post snapshot is compared with itself, so
    only an account-record change (taken from *service_data*) can show up.
    Only keys actually held by a snapshot count as present there.
    """
    service_id = service_data.service_id
    has_service_info_changes = get_service_change_type(service_data) != ServiceChangeType.NORMAL

    compare_with = post_state if pre_state is None else pre_state
    post_entries = discover(post_state, service_id)
    pre_entries = post_entries if compare_with is post_state else discover(compare_with, service_id)

    categories = {
        name: compute_change_set(
            _present_keys(pre_entries, kind, compare_with),
            _present_keys(post_entries, kind, post_state),
            compare_with,
            post_state,
        )
        for name, kind in CATEGORY_KINDS.items()
    }

    has_any_changes = has_service_info_changes or any(change.has_any_changes for change in categories.values())
    return ComprehensiveChange(
        has_any_changes=has_any_changes,
        has_service_info_changes=has_service_info_changes,
        **categories,
    )
