from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pytest

from pyjamstate.diff import compute_change_set, get_comprehensive_change, get_service_change_type
from pyjamstate.discovery.entries import ServiceEntryDiscovery
from pyjamstate.models.changes import ServiceChangeType
from pyjamstate.models.service import ServiceData
from pyjamstate.state.service import load_service_data

SERVICE = 5


@dataclass
class FakeService:
    info: Any = None
    error: Exception | None = None
    service_id: int = SERVICE

    def get_info(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.info

    def get_storage(self, key: bytes) -> bytes | None:
        return None

    def has_preimage(self, preimage_hash: bytes) -> bool:
        return False

    def get_preimage(self, preimage_hash: bytes) -> bytes | None:
        return None

    def get_lookup_history(self, preimage_hash: bytes, length: int) -> list[int] | None:
        return None


class TestServiceChangeType:
    def test_both_sides_failed_is_normal(self) -> None:
        data = ServiceData(SERVICE, pre_error="boom", post_error="boom")

        assert get_service_change_type(data) == ServiceChangeType.NORMAL

    def test_added(self) -> None:
        data = ServiceData(SERVICE, post_service=FakeService(info=1), pre_error="Service not found")

        assert get_service_change_type(data) == ServiceChangeType.ADDED

    def test_removed(self) -> None:
        data = ServiceData(SERVICE, pre_service=FakeService(info=1))

        assert get_service_change_type(data) == ServiceChangeType.REMOVED

    @pytest.mark.parametrize(
        ("pre_info", "post_info", "expected"),
        [
            ({"balance": 1}, {"balance": 1}, ServiceChangeType.NORMAL),
            ({"balance": 1}, {"balance": 2}, ServiceChangeType.CHANGED),
        ],
    )
    def test_compares_account_info(self, pre_info, post_info, expected) -> None:
        data = ServiceData(SERVICE, pre_service=FakeService(info=pre_info), post_service=FakeService(info=post_info))

        assert get_service_change_type(data) == expected

    def test_failing_get_info_is_normal(self) -> None:
        data = ServiceData(
            SERVICE,
            pre_service=FakeService(info=1),
            post_service=FakeService(error=RuntimeError("decode failed")),
        )

        assert get_service_change_type(data) == ServiceChangeType.NORMAL

    def test_decoded_records_compare_by_value(self, builder) -> None:
        builder.info(SERVICE, balance=10)
        pre = builder.build()
        same = load_service_data(SERVICE, builder.build(), pre)
        builder.info(SERVICE, balance=11)
        different = load_service_data(SERVICE, builder.build(), pre)

        assert get_service_change_type(same) == ServiceChangeType.NORMAL
        assert get_service_change_type(different) == ServiceChangeType.CHANGED


class TestComputeChangeSet:
    def test_changed_value(self) -> None:
        change = compute_change_set(["0xaa"], ["0xaa"], {"0xaa": "0x01"}, {"0xaa": "0x02"})

        assert change.has_any_changes
        assert (change.added, change.removed, change.changed) == (0, 0, 1)
        assert (change.total_count, change.pre_count, change.post_count) == (1, 1, 1)

    def test_added_and_removed(self) -> None:
        change = compute_change_set(["0x01", "0x02"], ["0x02", "0x03"], {}, {})

        assert (change.added, change.removed, change.changed) == (1, 1, 0)
        assert change.total_count == 3

    def test_no_changes(self) -> None:
        state = {"0x01": "0x00"}

        change = compute_change_set(["0x01"], ["0x01"], state, state)

        assert not change.has_any_changes
        assert change.total_count == 1


class TestComprehensiveChange:
    def test_identical_snapshots_have_no_changes(self, builder) -> None:
        builder.info(SERVICE)
        builder.storage(SERVICE, b"a", b"1")
        builder.preimage(SERVICE, b"blob")
        builder.lookup(SERVICE, b"blob", [1])
        snapshot = builder.build()
        data = load_service_data(SERVICE, snapshot, snapshot)

        change = get_comprehensive_change(data, snapshot, snapshot)

        assert not change.has_any_changes
        assert not change.has_service_info_changes
        for category in (change.storage, change.preimages, change.lookup):
            assert (category.added, category.removed, category.changed) == (0, 0, 0)

    def test_storage_value_change(self, builder) -> None:
        builder.storage(SERVICE, b"slot", b"\x01")
        pre = builder.build()
        builder.storage(SERVICE, b"slot", b"\x02")
        post = builder.build()

        change = get_comprehensive_change(ServiceData(SERVICE), post, pre)

        assert change.has_any_changes
        assert (change.storage.added, change.storage.removed, change.storage.changed) == (0, 0, 1)

    def test_storage_addition_from_empty(self, builder) -> None:
        builder.storage(SERVICE, b"slot", b"\x01")

        change = get_comprehensive_change(ServiceData(SERVICE), builder.build(), {})

        assert change.storage.added == 1
        assert change.storage.pre_count == 0

    @pytest.mark.parametrize(
        ("category", "add"),
        [
            ("storage", lambda b: b.storage(SERVICE, b"new", b"\x09")),
            ("preimages", lambda b: b.preimage(SERVICE, b"new blob")),
            ("lookup", lambda b: b.lookup(SERVICE, b"blob", [4])),
        ],
    )
    def test_one_new_key_adds_exactly_one(self, builder, category, add) -> None:
        builder.info(SERVICE)
        builder.storage(SERVICE, b"old", b"\x01")
        builder.preimage(SERVICE, b"blob")
        pre = builder.build()
        add(builder)
        post = builder.build()

        before = getattr(get_comprehensive_change(ServiceData(SERVICE), pre, pre), category)
        after = getattr(get_comprehensive_change(ServiceData(SERVICE), post, pre), category)

        assert after.added == before.added + 1

    def test_lookup_record_added_for_known_preimage(self, builder) -> None:
        builder.preimage(SERVICE, b"blob")
        pre = builder.build()
        builder.lookup(SERVICE, b"blob", [4])
        post = builder.build()

        lookup = get_comprehensive_change(ServiceData(SERVICE), post, pre).lookup

        assert (lookup.added, lookup.removed, lookup.changed) == (1, 0, 0)
        assert (lookup.pre_count, lookup.post_count) == (0, 1)

    def test_missing_lookup_records_are_not_counted(self, builder) -> None:
        builder.preimage(SERVICE, b"blob")
        snapshot = builder.build()

        change = get_comprehensive_change(ServiceData(SERVICE), snapshot, {})

        assert change.preimages.added == 1
        assert change.lookup.total_count == 0

    def test_without_pre_state_only_info_can_change(self, builder) -> None:
        builder.storage(SERVICE, b"a", b"1")
        data = ServiceData(SERVICE, post_service=FakeService(info=1))

        change = get_comprehensive_change(data, builder.build())

        assert change.has_service_info_changes
        assert change.has_any_changes
        assert not change.storage.has_any_changes

    def test_uses_supplied_discovery(self, builder) -> None:
        builder.storage(SERVICE, b"a", b"1")
        snapshot = builder.build()
        discovery = ServiceEntryDiscovery()

        get_comprehensive_change(ServiceData(SERVICE), snapshot, snapshot, discover=discovery)

        assert discovery.cache.get(snapshot, SERVICE) is not None
