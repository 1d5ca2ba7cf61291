"""Service id discovery, parsing and formatting."""

from __future__ import annotations

import re
from collections.abc import Iterable

from pyjamstate._codec import safe_parse_hex, to_u32
from pyjamstate._constants import DIRECT_ID_POSITIONS, MIN_SERVICE_KEY_BYTES, PREFIXED_ID_POSITIONS
from pyjamstate.discovery.classifier import is_account_record_key

_LEADING_INT = re.compile(r"[+-]?[0-9]+")


def detect_service_id(key: str) -> int | None:
    """Decode the service id interleaved in *key*.

    Account-record keys (``[0xff, n0, 0, n1, 0, n2, 0, n3, 0, ...]``) carry
    the id at bytes 1, 3, 5 and 7. All other keys, including service keys
    that merely start with ``0xff``, carry it at bytes 0, 2, 4 and 6.
    Returns ``None`` for keys that are not hex, too short to hold an id,
    or global chapter keys (``[i, 0, 0, ...]``).
    """
    key_bytes = safe_parse_hex(key)
    if key_bytes is None or len(key_bytes) < MIN_SERVICE_KEY_BYTES:
        return None
    if is_account_record_key(key_bytes):
        positions = PREFIXED_ID_POSITIONS
    elif not any(key_bytes[1:]):
        return None
    else:
        positions = DIRECT_ID_POSITIONS
    return int.from_bytes(bytes(key_bytes[pos] for pos in positions), "little")


def extract_service_ids(state: Iterable[str]) -> list[int]:
    """Return the sorted distinct service ids found in the keys of *state*."""
    found: set[int] = set()
    for key in state:
        service_id = detect_service_id(key)
        if service_id is not None:
            found.add(service_id)
    return sorted(found)


def format_service_id_unsigned(service_id: int) -> str:
    """Render *service_id* as unsigned decimal (``-1`` -> ``"4294967295"``)."""
    return str(to_u32(service_id))


def parse_service_id(text: str) -> int | None:
    """Parse the leading decimal integer of *text*, ignoring trailing junk."""
    match = _LEADING_INT.match(text.strip())
    if match is None:
        return None
    return int(match.group())


def parse_service_ids(text: str) -> list[int]:
    """Parse a comma separated id list, dropping empty and invalid items.

    ``"1, 2, invalid, 3,"`` -> ``[1, 2, 3]``.
    """
    ids: list[int] = []
    for part in text.split(","):
        if not part.strip():
            continue
        service_id = parse_service_id(part)
        if service_id is not None:
            ids.append(service_id)
    return ids
