"""Service entry discovery over raw snapshots."""

from pyjamstate.discovery.classifier import KeyClassifier, classify_entry, owns_key
from pyjamstate.discovery.entries import ServiceEntryDiscovery, classify_entries, discover_service_entries
from pyjamstate.discovery.resolver import lookup_key_for, resolve_lookups
from pyjamstate.discovery.service_ids import (
    detect_service_id,
    extract_service_ids,
    format_service_id_unsigned,
    parse_service_id,
    parse_service_ids,
)

__all__ = [
    "KeyClassifier",
    "ServiceEntryDiscovery",
    "classify_entries",
    "classify_entry",
    "detect_service_id",
    "discover_service_entries",
    "extract_service_ids",
    "format_service_id_unsigned",
    "lookup_key_for",
    "owns_key",
    "parse_service_id",
    "parse_service_ids",
    "resolve_lookups",
]
