"""Hash primitive used by key derivation and preimage verification."""

from __future__ import annotations

import hashlib

from pyjamstate._constants import HASH_BYTES


def blake2b_256(data: bytes) -> bytes:
    """Compute the 32-byte BLAKE2b digest of *data*."""
    return hashlib.blake2b(data, digest_size=HASH_BYTES).digest()
