"""Internal constants shared across the library."""

# ------------------------------------------------------------------
# Key geometry
# ------------------------------------------------------------------

HASH_BYTES = 32
FULL_KEY_BYTES = 32
STATE_KEY_BYTES = 31
SERVICE_ID_BYTES = 4

# Shortest key that can carry four interleaved service id bytes.
MIN_SERVICE_KEY_BYTES = 2 * SERVICE_ID_BYTES

# Byte positions of the little-endian service id inside a key.
DIRECT_ID_POSITIONS: tuple[int, ...] = (0, 2, 4, 6)
PREFIXED_ID_POSITIONS: tuple[int, ...] = (1, 3, 5, 7)

# Leading byte of the reserved key range holding service account records.
SERVICE_INFO_MARKER = 0xFF

# ------------------------------------------------------------------
# Service id arithmetic
# ------------------------------------------------------------------

U32_MODULUS = 1 << 32
U32_MAX = U32_MODULUS - 1

# Number prefixes hashed together with the data of nested service keys.
STORAGE_KEY_PREFIX = U32_MAX
PREIMAGE_KEY_PREFIX = U32_MAX - 1

# Bytes of the nested-key hash that end up in the key (4 interleaved + 24 tail).
NESTED_HASH_BYTES = 28
