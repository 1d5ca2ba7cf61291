"""Classify raw snapshot entries against one service.

Nothing in a raw snapshot says which service a key belongs to or what
it holds. The classifier re-derives the keys a service would use and
checks them against what it observes:

1. the key is a prefix of the service's account-record key,
2. otherwise the service id is interleaved at bytes 0, 2, 4 and 6
   (global chapter keys and other account records excluded),
3. and the value hashes to a preimage key equal to the observed key.

Keys owned by the service that pass neither check stay ambiguous: they
are storage slots or lookup records (see :mod:`.resolver`).
"""

from __future__ import annotations

import logging

from pyjamstate._codec import safe_parse_hex, to_hex, to_u32, u32_le
from pyjamstate._constants import DIRECT_ID_POSITIONS, MIN_SERVICE_KEY_BYTES, SERVICE_INFO_MARKER
from pyjamstate._logfmt import shorten_for_log
from pyjamstate.hashing import blake2b_256
from pyjamstate.keys import DEFAULT_KEYS, KeyDerivation
from pyjamstate.models.entries import PreimageEntry, ServiceEntry, ServiceInfoEntry, StorageOrLookupEntry

_logger = logging.getLogger(__name__)


def is_account_record_key(key: bytes) -> bool:
    """Return ``True`` for keys shaped ``[0xff, n0, 0, n1, 0, n2, 0, n3, 0, ...]``.

    Storage, preimage and lookup keys of a service whose lowest id byte is
    ``0xff`` also start with ``0xff``; the zero bytes tell them apart.
    """
    return key[0] == SERVICE_INFO_MARKER and not any(key[2:7:2]) and not any(key[8:])


def is_reserved_key(key: bytes) -> bool:
    """Return ``True`` for global chapter keys (``[i, 0, 0, ...]``) and account-record keys."""
    return not any(key[1:]) or is_account_record_key(key)


def owns_key(service_id: int, key: bytes) -> bool:
    """Return ``True`` when *key* carries *service_id* in the direct layout."""
    if len(key) < MIN_SERVICE_KEY_BYTES or is_reserved_key(key):
        return False
    id_bytes = u32_le(service_id)
    return all(key[pos] == id_bytes[i] for i, pos in enumerate(DIRECT_ID_POSITIONS))


class KeyClassifier:
    """Classify ``(service_id, key, value)`` triples.

    :meth:`classify` never raises; anything that cannot be classified
    is reported as not belonging to the service (``None``).
    """

    def __init__(self, keys: KeyDerivation = DEFAULT_KEYS) -> None:
        self._keys = keys
        self._info_keys: dict[int, str] = {}

    @property
    def keys(self) -> KeyDerivation:
        return self._keys

    def classify(self, service_id: int, raw_key: str, raw_value: str) -> ServiceEntry | None:
        try:
            return self._classify(to_u32(service_id), raw_key, raw_value)
        except Exception:
            _logger.debug(
                "Could not classify key %s for service %s",
                shorten_for_log(raw_key),
                service_id,
                exc_info=True,
            )
            return None

    def _info_key(self, service_id: int) -> str:
        info_key = self._info_keys.get(service_id)
        if info_key is None:
            info_key = to_hex(self._keys.service_info_key(service_id))
            self._info_keys[service_id] = info_key
        return info_key

    def _classify(self, service_id: int, raw_key: str, raw_value: str) -> ServiceEntry | None:
        key = safe_parse_hex(raw_key)
        if key is None or len(key) < MIN_SERVICE_KEY_BYTES:
            return None

        observed = to_hex(key)
        if self._info_key(service_id).startswith(observed):
            return ServiceInfoEntry(key=raw_key, value=raw_value)

        if not owns_key(service_id, key):
            return None

        blob = safe_parse_hex(raw_value)
        if blob is None:
            _logger.debug("Value at %s is not hex, leaving it unresolved", shorten_for_log(raw_key))
            return StorageOrLookupEntry(key=raw_key, value=raw_value)

        digest = blake2b_256(blob)
        preimage_key = to_hex(self._keys.service_preimage_key(service_id, digest))
        if preimage_key.startswith(observed):
            return PreimageEntry(key=raw_key, value=raw_value, length=len(blob), hash=to_hex(digest))

        return StorageOrLookupEntry(key=raw_key, value=raw_value)


def classify_entry(
    service_id: int,
    raw_key: str,
    raw_value: str,
    *,
    keys: KeyDerivation = DEFAULT_KEYS,
) -> ServiceEntry | None:
    """Classify a single entry with a throwaway :class:`KeyClassifier`."""
    return KeyClassifier(keys).classify(service_id, raw_key, raw_value)
