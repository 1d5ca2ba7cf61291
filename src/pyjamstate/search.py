"""Free-text matching of services.

A service matches when the lower-cased term occurs in any of: its id,
its serialized account-record key, its decoded account fields, or any
key/value it owns in either snapshot. Each channel is evaluated on its
own; a failure in one (a service whose info cannot be decoded, say)
only skips that channel.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from pyjamstate._codec import to_hex, to_u32
from pyjamstate._constants import STATE_KEY_BYTES
from pyjamstate.diff import EntryDiscovery
from pyjamstate.discovery.entries import discover_service_entries
from pyjamstate.discovery.service_ids import format_service_id_unsigned
from pyjamstate.keys import DEFAULT_KEYS, KeyDerivation
from pyjamstate.models.service import ServiceData

_logger = logging.getLogger(__name__)


def service_info_state_key(service_id: int, keys: KeyDerivation = DEFAULT_KEYS) -> str:
    """Return the account-record key of *service_id* as stored in a snapshot."""
    return to_hex(keys.service_info_key(to_u32(service_id))[:STATE_KEY_BYTES])


def _info_fields(info: Any) -> dict[str, Any]:
    if isinstance(info, BaseModel):
        return {name: getattr(info, name) for name in type(info).model_fields}
    if isinstance(info, Mapping):
        return dict(info)
    return dict(vars(info))


def _render(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return to_hex(bytes(value))
    return str(value)


def _info_json(info: Any) -> str:
    if isinstance(info, BaseModel):
        return info.model_dump_json()
    return json.dumps(info, default=_render)


def _matches_info(service_data: ServiceData, needle: str) -> bool:
    service = service_data.post_service or service_data.pre_service
    if service is None:
        return False
    info = service.get_info()
    for value in _info_fields(info).values():
        if value is not None and needle in _render(value).lower():
            return True
    return needle in _info_json(info).lower()


def _matches_entries(
    service_id: int,
    needle: str,
    post_state: Mapping[str, str],
    pre_state: Mapping[str, str] | None,
    discover: EntryDiscovery,
) -> bool:
    keys = [entry.key for entry in discover(post_state, service_id)]
    if pre_state is not None:
        keys.extend(entry.key for entry in discover(pre_state, service_id))

    for key in dict.fromkeys(keys):
        if needle in key.lower():
            return True
        value = post_state.get(key) or (pre_state.get(key) if pre_state is not None else None)
        if value and needle in value.lower():
            return True
    return False


def service_matches_search(
    service_data: ServiceData,
    term: str,
    post_state: Mapping[str, str],
    pre_state: Mapping[str, str] | None = None,
    *,
    keys: KeyDerivation = DEFAULT_KEYS,
    discover: EntryDiscovery = discover_service_entries,
) -> bool:
    """Return ``True`` when *term* (case-insensitive) matches the service.

    A blank term matches every service.
    """
    if not term.strip():
        return True

    needle = term.lower()
    service_id = service_data.service_id

    if needle in format_service_id_unsigned(service_id) or needle in str(service_id):
        return True

    try:
        if needle in service_info_state_key(service_id, keys).lower():
            return True
    except Exception:
        _logger.debug("Could not derive account key of service %s for search", service_id, exc_info=True)

    try:
        if _matches_info(service_data, needle):
            return True
    except Exception:
        _logger.debug("Account info of service %s not searchable", service_id, exc_info=True)

    try:
        return _matches_entries(service_id, needle, post_state, pre_state, discover)
    except Exception:
        _logger.debug("Entries of service %s not searchable", service_id, exc_info=True)
        return False
