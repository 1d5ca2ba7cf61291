"""Command line inspection of state snapshot files.

Usage
-----
    pyjamstate services state.json
    pyjamstate entries state.json 0
    pyjamstate diff test_vector.json --only-changed
    pyjamstate entries state.json 0 --json
    pyjamstate diff post.json --pre pre.json --search 0xabcd
    pyjamstate rawdiff test_vector.json
    pyjamstate query state.json 0 --storage my_key
    pyjamstate query state.json 0 --lookup 0x<hash> 42
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from typing import Any

from pyjamstate._codec import to_hex
from pyjamstate.config import InspectorConfig
from pyjamstate.discovery.service_ids import format_service_id_unsigned, parse_service_id
from pyjamstate.exceptions import JamStateError
from pyjamstate.inspector import StateInspector
from pyjamstate.models.changes import ChangeSet
from pyjamstate.models.entries import SERVICE_ENTRIES
from pyjamstate.queries import QueryResult, get_lookup_history_value, get_preimage_value, get_storage_value
from pyjamstate.state.loader import calculate_state_diff, load_state_file
from pyjamstate.state.service import RawStateService

MAX_VAL_WIDTH = 60


def _truncate(val: Any, width: int = MAX_VAL_WIDTH) -> str:
    s = str(val)
    if len(s) <= width:
        return s
    return s[: width - 3] + "..."


def _print_table(header: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
    cells = [[_truncate(cell) for cell in row] for row in rows]
    widths = [max([len(title), *(len(row[i]) for row in cells)]) for i, title in enumerate(header)]
    line = "  ".join(f"{title:<{widths[i]}}" for i, title in enumerate(header))
    print(line)
    print("─" * len(line))
    for row in cells:
        print("  ".join(f"{cell:<{widths[i]}}" for i, cell in enumerate(row)))


def _format_change_set(change: ChangeSet) -> str:
    if not change.has_any_changes:
        return f"{change.post_count}"
    return f"{change.post_count} (+{change.added} -{change.removed} ~{change.changed})"


def _build_inspector(args: argparse.Namespace, config: InspectorConfig) -> StateInspector:
    extracted = load_state_file(args.file)
    pre_state = extracted.pre_state
    if getattr(args, "pre", None):
        pre_state = load_state_file(args.pre).state
    return StateInspector(extracted.state, pre_state, config=config)


def _cmd_services(args: argparse.Namespace, config: InspectorConfig) -> int:
    inspector = _build_inspector(args, config)
    ids = inspector.search(args.search) if args.search else inspector.service_ids()
    if not ids:
        print("No services found.")
        return 0
    for service_id in ids:
        print(format_service_id_unsigned(service_id))
    return 0


def _cmd_entries(args: argparse.Namespace, config: InspectorConfig) -> int:
    service_id = parse_service_id(args.service_id)
    if service_id is None:
        print(f"Invalid service id: {args.service_id}", file=sys.stderr)
        return 2
    inspector = _build_inspector(args, config)
    entries = inspector.entries(service_id)
    if args.json:
        print(SERVICE_ENTRIES.dump_json(list(entries), by_alias=True, indent=2).decode())
        return 0
    if not entries:
        print(f"No entries for service {format_service_id_unsigned(service_id)}.")
        return 0
    _print_table(("Kind", "Key", "Value"), [(entry.kind, entry.key, entry.value) for entry in entries])
    print(f"\n{len(entries)} entry(ies) found.")
    return 0


def _cmd_diff(args: argparse.Namespace, config: InspectorConfig) -> int:
    inspector = _build_inspector(args, config)
    if not inspector.is_comparing:
        print("Nothing to compare: the file holds a single state and no --pre file was given.", file=sys.stderr)
        return 2

    ids = inspector.changed_service_ids() if args.only_changed else inspector.service_ids()
    if args.search:
        ids = [service_id for service_id in ids if inspector.matches(service_id, args.search)]
    if not ids:
        print("No differences found." if args.only_changed else "No services found.")
        return 0

    rows = []
    for service_id in ids:
        data = inspector.service_data(service_id)
        change = inspector.changes(service_id)
        status = "CHANGED" if change.has_any_changes else ""
        errors = "; ".join(
            f"{side}: {error}" for side, error in (("pre", data.pre_error), ("post", data.post_error)) if error
        )
        rows.append(
            (
                format_service_id_unsigned(service_id),
                status,
                "yes" if change.has_service_info_changes else "",
                _format_change_set(change.storage),
                _format_change_set(change.preimages),
                _format_change_set(change.lookup),
                errors,
            )
        )
    _print_table(("Service", "Status", "Info", "Storage", "Preimages", "Lookup", "Errors"), rows)
    return 0


def _cmd_rawdiff(args: argparse.Namespace, config: InspectorConfig) -> int:
    extracted = load_state_file(args.file)
    pre_state = load_state_file(args.pre).state if args.pre else extracted.pre_state
    if pre_state is None:
        print("Nothing to compare: the file holds a single state and no --pre file was given.", file=sys.stderr)
        return 2
    diff = calculate_state_diff(pre_state, extracted.state)
    if not diff:
        print("No differences found.")
        return 0
    for key, change in diff.items():
        print(f"{key}  {_truncate(change, 2 * MAX_VAL_WIDTH)}")
    print(f"\n{len(diff)} key(s) differ.")
    return 0


def _format_query_result(result: QueryResult) -> str:
    if result is None:
        return "(not found)"
    if isinstance(result, bytes):
        return to_hex(result)
    if isinstance(result, list):
        return ", ".join(str(slot) for slot in result) or "(empty)"
    return result


def _cmd_query(args: argparse.Namespace, config: InspectorConfig) -> int:
    service_id = parse_service_id(args.service_id)
    if service_id is None:
        print(f"Invalid service id: {args.service_id}", file=sys.stderr)
        return 2
    state = load_state_file(args.file).state
    service = RawStateService(state, service_id)
    if args.storage is not None:
        result = get_storage_value(service, args.storage, state)
    elif args.preimage is not None:
        result = get_preimage_value(service, args.preimage, state)
    else:
        preimage_hash, length = args.lookup
        result = get_lookup_history_value(service, preimage_hash, length, state)

    if isinstance(result, str) and result.startswith("Error: "):
        print(result, file=sys.stderr)
        return 1
    print(_format_query_result(result))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pyjamstate", description="Inspect and diff JAM state snapshots.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    services = sub.add_parser("services", help="List service ids found in a state file")
    services.add_argument("file", help="State document (chain spec, test vector, genesis or raw state)")
    services.add_argument("--search", help="Only list services matching this text")
    services.set_defaults(handler=_cmd_services)

    entries = sub.add_parser("entries", help="List the classified entries of one service")
    entries.add_argument("file", help="State document")
    entries.add_argument("service_id", help="Service id (decimal)")
    entries.add_argument("--json", action="store_true", help="Print the entries as JSON")
    entries.set_defaults(handler=_cmd_entries)

    diff = sub.add_parser("diff", help="Summarise per-service changes between two states")
    diff.add_argument("file", help="Post-state document (an STF test vector carries both states)")
    diff.add_argument("--pre", help="Pre-state document")
    diff.add_argument("--only-changed", action="store_true", help="Hide services without changes")
    diff.add_argument("--search", help="Only show services matching this text")
    diff.set_defaults(handler=_cmd_diff)

    rawdiff = sub.add_parser("rawdiff", help="List every raw key that differs between two states")
    rawdiff.add_argument("file", help="Post-state document (an STF test vector carries both states)")
    rawdiff.add_argument("--pre", help="Pre-state document")
    rawdiff.set_defaults(handler=_cmd_rawdiff)

    query = sub.add_parser("query", help="Read one storage item, preimage or lookup history of a service")
    query.add_argument("file", help="State document")
    query.add_argument("service_id", help="Service id (decimal)")
    target = query.add_mutually_exclusive_group(required=True)
    target.add_argument("--storage", metavar="KEY", help="Storage key: 32-byte hex, 31-byte state key or plain text")
    target.add_argument("--preimage", metavar="HASH", help="Preimage hash (32-byte hex) or 31-byte state key")
    target.add_argument("--lookup", nargs=2, metavar=("HASH", "LENGTH"), help="Preimage hash and length")
    query.set_defaults(handler=_cmd_query)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = InspectorConfig.from_env()
    logging.basicConfig(level=logging.DEBUG if args.verbose else config.log_level)
    try:
        return int(args.handler(args, config))
    except JamStateError as err:
        print(f"error: {err}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
