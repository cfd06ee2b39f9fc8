from __future__ import annotations

import json

from watchgate.store import JsonFileStore, MemoryStore


def test_json_store_survives_reopen(tmp_path):
    path = tmp_path / "data" / "progress.json"
    store = JsonFileStore(path)
    store.set("demo_maxTime", "160.0")
    store.set("demo_position", "42.0")

    reopened = JsonFileStore(path)

    assert reopened.get("demo_maxTime") == "160.0"
    assert reopened.get("demo_position") == "42.0"
    assert json.loads(path.read_text(encoding="utf-8")) == {
        "demo_maxTime": "160.0",
        "demo_position": "42.0",
    }


def test_json_store_missing_file_is_empty(tmp_path):
    store = JsonFileStore(tmp_path / "absent.json")
    assert store.get("anything") is None
    assert not (tmp_path / "absent.json").exists()


def test_json_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "progress.json"
    path.write_text("{not json", encoding="utf-8")
    assert JsonFileStore(path).get("demo_maxTime") is None

    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert JsonFileStore(path).get("demo_maxTime") is None


def test_json_store_ignores_undecodable_bytes(tmp_path, caplog):
    path = tmp_path / "progress.json"
    path.write_bytes(b'{"demo_maxTime": "\xff\xfe"}')

    with caplog.at_level("WARNING", logger="watchgate.store"):
        store = JsonFileStore(path)

    assert store.get("demo_maxTime") is None
    assert "Ignoring unreadable store file" in caplog.text
    store.set("demo_maxTime", "12.0")
    assert json.loads(path.read_text(encoding="utf-8")) == {"demo_maxTime": "12.0"}


def test_json_store_ignores_unreadable_path(tmp_path):
    path = tmp_path / "progress.json"
    path.mkdir()
    assert JsonFileStore(path).get("demo_maxTime") is None


def test_json_store_remove(tmp_path):
    path = tmp_path / "progress.json"
    store = JsonFileStore(path)
    store.set("a", "1")
    store.set("b", "2")

    store.remove("a")
    store.remove("missing")

    assert JsonFileStore(path).get("a") is None
    assert JsonFileStore(path).get("b") == "2"


def test_memory_store():
    store = MemoryStore({"a": "1"})
    store.set("b", "2")
    store.remove("a")
    assert store.get("a") is None
    assert store.as_dict() == {"b": "2"}
