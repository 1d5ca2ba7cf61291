"""Snapshot documents: format detection and state extraction.

Supported layouts (checked in this order):

* ``stf-test-vector``: ``pre_state`` / ``block`` / ``post_state``
* ``typeberry-config``: a node config embedding a JIP-4 chain spec
* ``stf-genesis``: ``header`` plus initial ``state``
* ``jip4-chainspec``: ``genesis_state`` as a flat ``key -> value`` map
* ``state``: a bare ``state`` list of ``{key, value}`` items

camelCase member names are accepted and converted to snake_case first.
"""

from __future__ import annotations

import json
import logging
import re
import string
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, ValidationError

from pyjamstate._codec import ensure_hex_prefix
from pyjamstate.exceptions import StateFormatError
from pyjamstate.state.snapshot import StateSnapshot

_logger = logging.getLogger(__name__)

_UPPER = re.compile(r"[A-Z]")
_HEX_DIGITS = frozenset(string.hexdigits)


class StateFileFormat(StrEnum):
    STF_TEST_VECTOR = "stf-test-vector"
    TYPEBERRY_CONFIG = "typeberry-config"
    STF_GENESIS = "stf-genesis"
    JIP4_CHAINSPEC = "jip4-chainspec"
    STATE = "state"
    UNKNOWN = "unknown"


class _Schema(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class KeyValue(_Schema):
    key: StrictStr
    value: StrictStr


class RawStateFile(_Schema):
    state: list[KeyValue]


class StateWithRoot(_Schema):
    state_root: StrictStr
    keyvals: list[KeyValue]


class Jip4Chainspec(_Schema):
    id: StrictStr
    bootnodes: list[StrictStr] | None = None
    genesis_header: StrictStr
    genesis_state: dict[StrictStr, StrictStr]


class TypeberryConfig(_Schema):
    schema_url: StrictStr = Field(alias="$schema")
    version: StrictInt | StrictFloat
    flavor: StrictStr
    authorship: Any = None
    chain_spec: Jip4Chainspec


class StfTestVector(_Schema):
    pre_state: StateWithRoot
    block: Any = None
    post_state: StateWithRoot


class StfGenesis(_Schema):
    header: Any = None
    state: StateWithRoot


_SCHEMAS: tuple[tuple[StateFileFormat, type[_Schema], str], ...] = (
    (StateFileFormat.STF_TEST_VECTOR, StfTestVector, "STF Test Vector - contains pre_state and post_state"),
    (
        StateFileFormat.TYPEBERRY_CONFIG,
        TypeberryConfig,
        "Typeberry Config - contains JIP-4 chainspec in chain_spec field",
    ),
    (StateFileFormat.STF_GENESIS, StfGenesis, "STF Genesis - contains initial state with header"),
    (StateFileFormat.JIP4_CHAINSPEC, Jip4Chainspec, "JIP-4 Chainspec - contains genesis_state directly"),
    (StateFileFormat.STATE, RawStateFile, "Raw state entries"),
)


@dataclass(frozen=True)
class FormatDetection:
    format: StateFileFormat
    description: str
    document: _Schema | None = None


@dataclass(frozen=True)
class ExtractedState:
    """States pulled out of one document.

    ``pre_state`` is only set for STF test vectors.
    """

    format: StateFileFormat
    state: StateSnapshot
    pre_state: StateSnapshot | None = None
    block: Any = None


def _is_hex_like(key: str) -> bool:
    body = key[2:] if key.startswith("0x") else key
    return bool(body) and all(ch in _HEX_DIGITS for ch in body)


def camel_to_snake(document: Any) -> Any:
    """Recursively convert camelCase member names to snake_case.

    Hex-looking names (state keys) are left alone.
    """
    if isinstance(document, list):
        return [camel_to_snake(item) for item in document]
    if not isinstance(document, dict):
        return document
    converted: dict[str, Any] = {}
    for key, value in document.items():
        name = key if _is_hex_like(key) else _UPPER.sub(lambda m: f"_{m.group().lower()}", key)
        converted[name] = camel_to_snake(value)
    return converted


def detect_format(document: Any) -> FormatDetection:
    """Match an already parsed JSON document against the supported layouts."""
    if not isinstance(document, dict):
        return FormatDetection(StateFileFormat.UNKNOWN, "Invalid JSON structure")

    normalized = camel_to_snake(document)
    for file_format, schema, description in _SCHEMAS:
        try:
            parsed = schema.model_validate(normalized)
        except ValidationError as err:
            _logger.debug("Document is not %s: %d validation errors", file_format, err.error_count())
            continue
        return FormatDetection(file_format, description, parsed)
    return FormatDetection(
        StateFileFormat.UNKNOWN,
        "Unknown format - does not match any supported schema",
    )


def normalize_state(items: Mapping[str, str] | Iterable[KeyValue]) -> StateSnapshot:
    """Build a snapshot with ``0x``-prefixed, lower-case keys and values."""
    pairs = items.items() if isinstance(items, Mapping) else ((item.key, item.value) for item in items)
    return StateSnapshot({ensure_hex_prefix(key).lower(): ensure_hex_prefix(value).lower() for key, value in pairs})


def extract_states(detection: FormatDetection) -> ExtractedState:
    """Pull the snapshot(s) out of a detected document."""
    document = detection.document
    if isinstance(document, StfTestVector):
        return ExtractedState(
            format=detection.format,
            state=normalize_state(document.post_state.keyvals),
            pre_state=normalize_state(document.pre_state.keyvals),
            block=document.block,
        )
    if isinstance(document, TypeberryConfig):
        return ExtractedState(detection.format, normalize_state(document.chain_spec.genesis_state))
    if isinstance(document, StfGenesis):
        return ExtractedState(detection.format, normalize_state(document.state.keyvals))
    if isinstance(document, Jip4Chainspec):
        return ExtractedState(detection.format, normalize_state(document.genesis_state))
    if isinstance(document, RawStateFile):
        return ExtractedState(detection.format, normalize_state(document.state))
    raise StateFormatError(
        "Unsupported JSON format. Please upload a JIP-4 chainspec, Typeberry config, "
        "STF test vector, STF genesis or raw state file.",
        format_description=detection.description,
    )


def load_states(content: str) -> ExtractedState:
    """Parse a JSON document and extract its snapshot(s).

    Raises
    ------
    StateFormatError
        When *content* is not JSON or matches no supported layout.
    """
    try:
        document = json.loads(content)
    except json.JSONDecodeError as err:
        raise StateFormatError(
            "Invalid JSON format. Please check your content and try again.",
            format_description="Malformed JSON",
        ) from err
    extracted = extract_states(detect_format(document))
    _logger.debug(
        "Loaded %s document: %d post entries, %s pre entries",
        extracted.format,
        len(extracted.state),
        len(extracted.pre_state) if extracted.pre_state is not None else "no",
    )
    return extracted


def load_state_file(path: str | Path) -> ExtractedState:
    file_path = Path(path)
    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as err:
        raise StateFormatError(f"Failed to read {file_path}: {err}", format_description="File read error") from err
    return load_states(content)


def calculate_state_diff(pre_state: Mapping[str, str], post_state: Mapping[str, str]) -> dict[str, str]:
    """Describe every raw key that differs between two snapshots."""
    diff: dict[str, str] = {}
    for key in dict.fromkeys([*pre_state, *post_state]):
        pre_value = pre_state.get(key)
        post_value = post_state.get(key)
        if pre_value is None and post_value is not None:
            diff[key] = f"[ADDED] {post_value}"
        elif pre_value is not None and post_value is None:
            diff[key] = f"[REMOVED] {pre_value}"
        elif pre_value != post_value:
            diff[key] = f"[CHANGED] {pre_value} → {post_value}"
    return diff
