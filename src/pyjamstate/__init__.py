"""pyjamstate - Inspect and diff JAM state trie snapshots."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyjamstate")
except PackageNotFoundError:
    __version__ = "0+local"
from pyjamstate._cache import ServiceEntryCache
from pyjamstate.config import InspectorConfig
from pyjamstate.diff import compute_change_set, get_comprehensive_change, get_service_change_type
from pyjamstate.discovery import (
    KeyClassifier,
    ServiceEntryDiscovery,
    classify_entry,
    detect_service_id,
    discover_service_entries,
    extract_service_ids,
    format_service_id_unsigned,
    parse_service_ids,
    resolve_lookups,
)
from pyjamstate.exceptions import (
    JamStateError,
    KeyFormatError,
    ServiceDecodeError,
    ServiceNotFoundError,
    StateFormatError,
)
from pyjamstate.inspector import StateInspector
from pyjamstate.keys import DEFAULT_KEYS, GrayPaperKeys, KeyDerivation
from pyjamstate.models import (
    AccountInfo,
    ChangeSet,
    ComprehensiveChange,
    EntryKind,
    LookupEntry,
    PreimageEntry,
    Service,
    ServiceChangeType,
    ServiceData,
    ServiceEntry,
    ServiceInfoEntry,
    StorageOrLookupEntry,
)
from pyjamstate.queries import (
    calculate_preimage_hash,
    get_lookup_history_value,
    get_preimage_value,
    get_storage_value,
    parse_preimage_input,
    parse_storage_key,
)
from pyjamstate.search import service_matches_search
from pyjamstate.state.loader import (
    ExtractedState,
    StateFileFormat,
    calculate_state_diff,
    load_state_file,
    load_states,
)
from pyjamstate.state.service import RawStateService, load_service_data
from pyjamstate.state.snapshot import StateSnapshot

__all__ = [
    "DEFAULT_KEYS",
    "__version__",
    "AccountInfo",
    "ChangeSet",
    "ComprehensiveChange",
    "EntryKind",
    "ExtractedState",
    "GrayPaperKeys",
    "InspectorConfig",
    "JamStateError",
    "KeyClassifier",
    "KeyDerivation",
    "KeyFormatError",
    "LookupEntry",
    "PreimageEntry",
    "RawStateService",
    "Service",
    "ServiceChangeType",
    "ServiceData",
    "ServiceDecodeError",
    "ServiceEntry",
    "ServiceEntryCache",
    "ServiceEntryDiscovery",
    "ServiceInfoEntry",
    "ServiceNotFoundError",
    "StateFileFormat",
    "StateFormatError",
    "StateInspector",
    "StateSnapshot",
    "StorageOrLookupEntry",
    "calculate_preimage_hash",
    "calculate_state_diff",
    "classify_entry",
    "compute_change_set",
    "detect_service_id",
    "discover_service_entries",
    "extract_service_ids",
    "format_service_id_unsigned",
    "get_comprehensive_change",
    "get_lookup_history_value",
    "get_preimage_value",
    "get_service_change_type",
    "get_storage_value",
    "load_service_data",
    "load_state_file",
    "load_states",
    "parse_preimage_input",
    "parse_service_ids",
    "parse_storage_key",
    "resolve_lookups",
    "service_matches_search",
]
