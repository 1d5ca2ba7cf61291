from __future__ import annotations

from pyjamstate.config import InspectorConfig
from pyjamstate.inspector import StateInspector
from pyjamstate.models.entries import EntryKind
from pyjamstate.state.loader import StateFileFormat, load_states

BLOB = b"program"


def _pre_and_post(builder):
    builder.info(1)
    builder.info(2)
    builder.storage(2, b"k", b"\x01")
    pre = builder.build()
    builder.storage(2, b"k", b"\x02")
    builder.info(3)
    builder.preimage(3, BLOB)
    return pre, builder.build()


def test_service_ids_cover_both_snapshots(builder) -> None:
    pre, post = _pre_and_post(builder)

    assert StateInspector(post, pre).service_ids() == [1, 2, 3]


def test_changed_service_ids(builder) -> None:
    pre, post = _pre_and_post(builder)

    inspector = StateInspector(post, pre)

    assert inspector.is_comparing
    assert inspector.changed_service_ids() == [2, 3]
    assert inspector.changes(2).storage.changed == 1
    assert inspector.changes(3).has_service_info_changes


def test_single_snapshot_lists_all_services(builder) -> None:
    _, post = _pre_and_post(builder)

    inspector = StateInspector(post)

    assert not inspector.is_comparing
    assert inspector.changed_service_ids() == [1, 2, 3]
    assert inspector.entries(3, "pre") == ()


def test_entries_are_cached_per_snapshot(builder) -> None:
    _, post = _pre_and_post(builder)
    inspector = StateInspector(post)

    assert inspector.entries(3) is inspector.entries(3)
    assert [entry.kind for entry in inspector.entries(3)] == [
        EntryKind.SERVICE_INFO,
        EntryKind.PREIMAGE,
        EntryKind.LOOKUP,
    ]


def test_phantom_lookups_follow_config(builder) -> None:
    _, post = _pre_and_post(builder)

    inspector = StateInspector(post, config=InspectorConfig(emit_phantom_lookups=False))

    assert [entry.kind for entry in inspector.entries(3)] == [EntryKind.SERVICE_INFO, EntryKind.PREIMAGE]


def test_service_data_is_memoized(builder) -> None:
    pre, post = _pre_and_post(builder)
    inspector = StateInspector(post, pre)

    data = inspector.service_data(3)

    assert inspector.service_data(3) is data
    assert data.pre_error == "Service not found"
    assert data.post_service is not None


def test_search(builder) -> None:
    pre, post = _pre_and_post(builder)
    inspector = StateInspector(post, pre)

    assert inspector.search("") == [1, 2, 3]
    assert inspector.search("70726f6772616d") == [3]


def test_from_extracted() -> None:
    key = "0x" + "01" * 31
    extracted = load_states(
        '{"pre_state": {"state_root": "0x00", "keyvals": []},'
        f' "post_state": {{"state_root": "0x00", "keyvals": [{{"key": "{key}", "value": "0x01"}}]}}}}'
    )

    inspector = StateInspector.from_extracted(extracted)

    assert extracted.format == StateFileFormat.STF_TEST_VECTOR
    assert inspector.is_comparing
    assert inspector.post_state is extracted.state
    assert inspector.pre_state is extracted.pre_state


def test_service_with_ff_low_byte_is_listed_once(builder) -> None:
    builder.info(511)
    builder.storage(511, b"a", b"\x01")
    builder.storage(511, b"b", b"\x02")

    assert StateInspector(builder.build()).service_ids() == [511]
