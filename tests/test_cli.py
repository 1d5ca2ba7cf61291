from __future__ import annotations

import json

import pytest

from conftest import KEYS, state_key
from pyjamstate._codec import to_hex
from pyjamstate.cli import main
from pyjamstate.hashing import blake2b_256


def _keyvals(state) -> list[dict[str, str]]:
    return [{"key": key, "value": value} for key, value in state.items()]


@pytest.fixture
def vector_file(builder, tmp_path):
    builder.info(1)
    builder.storage(1, b"k", b"\x01")
    builder.info(2)
    pre = builder.build()
    builder.storage(1, b"k", b"\x02")
    builder.preimage(1, b"blob")
    post = builder.build()
    document = {
        "pre_state": {"state_root": "0x00", "keyvals": _keyvals(pre)},
        "block": None,
        "post_state": {"state_root": "0x00", "keyvals": _keyvals(post)},
    }
    path = tmp_path / "vector.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


@pytest.fixture
def state_file(builder, tmp_path):
    builder.info(4)
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"state": _keyvals(builder.entries)}), encoding="utf-8")
    return path


def test_services(vector_file, capsys) -> None:
    assert main(["services", str(vector_file)]) == 0

    assert capsys.readouterr().out.split() == ["1", "2"]


def test_services_search(vector_file, capsys) -> None:
    assert main(["services", str(vector_file), "--search", "626c6f62"]) == 0

    assert capsys.readouterr().out.split() == ["1"]


def test_entries(vector_file, capsys) -> None:
    assert main(["entries", str(vector_file), "1"]) == 0

    out = capsys.readouterr().out
    assert "service-info" in out
    assert "preimage" in out
    assert "storage-or-lookup" in out
    assert "4 entry(ies) found." in out


def test_entries_rejects_bad_id(vector_file, capsys) -> None:
    assert main(["entries", str(vector_file), "abc"]) == 2

    assert "Invalid service id" in capsys.readouterr().err


def test_diff_only_changed(vector_file, capsys) -> None:
    assert main(["diff", str(vector_file), "--only-changed"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0].split()[:3] == ["Service", "Status", "Info"]
    rows = [line.split() for line in lines[2:]]
    assert [row[0] for row in rows] == ["1"]
    assert rows[0][1] == "CHANGED"


def test_diff_with_pre_file(vector_file, state_file, capsys) -> None:
    assert main(["diff", str(state_file), "--pre", str(vector_file)]) == 0

    out = capsys.readouterr().out
    assert "Service" in out
    assert "4" in out.split()


def test_diff_needs_two_states(state_file, capsys) -> None:
    assert main(["diff", str(state_file)]) == 2

    assert "Nothing to compare" in capsys.readouterr().err


def test_unreadable_file_reports_error(tmp_path, capsys) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text("{}", encoding="utf-8")

    assert main(["services", str(bad)]) == 1

    assert capsys.readouterr().err.startswith("error: ")


def test_entries_as_json(vector_file, capsys) -> None:
    assert main(["entries", str(vector_file), "1", "--json"]) == 0

    entries = json.loads(capsys.readouterr().out)
    assert [entry["kind"] for entry in entries] == ["service-info", "storage-or-lookup", "preimage", "lookup"]
    assert entries[2]["length"] == 4
    assert entries[2]["hash"] == to_hex(blake2b_256(b"blob"))
    assert entries[3]["value"] == ""


def test_rawdiff(vector_file, capsys) -> None:
    assert main(["rawdiff", str(vector_file)]) == 0

    out = capsys.readouterr().out
    assert "[CHANGED] 0x01 → 0x02" in out
    assert "[ADDED] 0x626c6f62" in out
    assert "2 key(s) differ." in out


def test_rawdiff_needs_two_states(state_file, capsys) -> None:
    assert main(["rawdiff", str(state_file)]) == 2


class TestQuery:
    def test_storage_by_state_key(self, vector_file, capsys) -> None:
        key = state_key(KEYS.service_storage_key(1, b"k"))

        assert main(["query", str(vector_file), "1", "--storage", key]) == 0

        assert capsys.readouterr().out.strip() == "0x02"

    def test_preimage_by_hash(self, vector_file, capsys) -> None:
        assert main(["query", str(vector_file), "1", "--preimage", to_hex(blake2b_256(b"blob"))]) == 0

        assert capsys.readouterr().out.strip() == "0x626c6f62"

    def test_missing_lookup_history(self, vector_file, capsys) -> None:
        assert main(["query", str(vector_file), "1", "--lookup", to_hex(blake2b_256(b"blob")), "4"]) == 0

        assert capsys.readouterr().out.strip() == "(not found)"

    def test_bad_length_is_reported(self, vector_file, capsys) -> None:
        assert main(["query", str(vector_file), "1", "--lookup", to_hex(blake2b_256(b"blob")), "abc"]) == 1

        assert capsys.readouterr().err.strip() == "Error: Invalid length"

    def test_requires_a_target(self, vector_file) -> None:
        with pytest.raises(SystemExit):
            main(["query", str(vector_file), "1"])
