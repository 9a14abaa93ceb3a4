"""Tests for JSON storage helpers and the versioned envelope."""
import json

import pytest

from briefdesk.utils.storage import load_json, read_envelope, read_saved_at, save_json, write_envelope


def test_save_and_load_json(tmp_path):
    path = tmp_path / "nested" / "data.json"
    data = {"title": "Café brief", "items": [1, 2, 3], "nested": {"a": "b"}}

    save_json(path, data)

    assert load_json(path) == data
    assert "Café" in path.read_text(encoding="utf-8")
    assert list(path.parent.glob("*.tmp")) == []


def test_load_json_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_json(tmp_path / "nope.json")


def test_envelope_round_trip(tmp_path):
    path = tmp_path / "things.json"

    saved_at = write_envelope(path, 3, "things", [{"a": 1}])
    items, loaded_at = read_envelope(path, 3, "things", {})

    assert items == [{"a": 1}]
    assert loaded_at == saved_at
    assert read_saved_at(path) == saved_at


def test_bare_document_is_version_one(tmp_path):
    path = tmp_path / "things.json"
    path.write_text(json.dumps([{"old": 1}]), encoding="utf-8")
    migrations = {
        1: lambda items: [{"new": i["old"]} for i in items],
        2: lambda items: [{**i, "v3": True} for i in items],
    }

    items, saved_at = read_envelope(path, 3, "things", migrations)

    assert items == [{"new": 1, "v3": True}]
    assert saved_at is None


def test_missing_migration(tmp_path):
    path = tmp_path / "things.json"
    write_envelope(path, 1, "things", [])

    with pytest.raises(ValueError):
        read_envelope(path, 2, "things", {})


def test_newer_version_rejected(tmp_path):
    path = tmp_path / "things.json"
    write_envelope(path, 5, "things", [])

    with pytest.raises(ValueError):
        read_envelope(path, 2, "things", {})


def test_missing_file(tmp_path):
    assert read_envelope(tmp_path / "none.json", 2, "things", {}) == ([], None)
    assert read_saved_at(tmp_path / "none.json") is None


@pytest.mark.parametrize("stored", [None, {"a": 1}, 5])
def test_items_of_wrong_type_rejected(tmp_path, stored):
    path = tmp_path / "things.json"
    path.write_text(json.dumps({"version": 2, "things": stored}), encoding="utf-8")

    with pytest.raises(ValueError):
        read_envelope(path, 2, "things", {})


def test_container_type(tmp_path):
    path = tmp_path / "user.json"
    write_envelope(path, 1, "user", {"name": "Mona"})

    items, _ = read_envelope(path, 1, "user", {}, container=dict)

    assert items == {"name": "Mona"}
