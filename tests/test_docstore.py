import json
import os

import pytest

from cms.docstore import JsonFileDocumentStore, MemoryDocumentStore, open_document_store
from cms.errors import ConfigError, StoreError
from cms.records import event_store


def test_open_document_store_backends(tmp_path):
    assert isinstance(open_document_store("memory://", "cms"), MemoryDocumentStore)

    file_store = open_document_store(f"file://{tmp_path}", "cms")
    assert isinstance(file_store, JsonFileDocumentStore)
    assert file_store.path == tmp_path / "cms"

    plain = open_document_store(str(tmp_path / "data"), "other")
    assert plain.path == tmp_path / "data" / "other"

    with pytest.raises(ConfigError):
        open_document_store("redis://localhost:6379/0", "cms")


def test_json_store_persists_across_instances(tmp_path):
    first = event_store(JsonFileDocumentStore(str(tmp_path), "cms"))
    created = first.create({"Heading": "H", "Description": "D"})

    second = event_store(JsonFileDocumentStore(str(tmp_path), "cms"))
    assert second.get_by_id(created["id"]) == created
    assert second.create({"Heading": "H2", "Description": "D"})["eventNumber"] == 2

    raw = json.loads((tmp_path / "cms" / "events.json").read_text())
    assert raw["version"] == 1
    assert [d["Heading"] for d in raw["documents"]] == ["H", "H2"]
    assert "_id" in raw["documents"][0]


def test_json_store_replace_and_delete(tmp_path):
    db = JsonFileDocumentStore(str(tmp_path), "cms")
    doc = db.insert("blogs", {"title": "a"})
    assert db.replace("blogs", doc["_id"], {"title": "b"}) is True
    assert db.find_one("blogs", doc["_id"]) == {"title": "b", "_id": doc["_id"]}
    assert db.replace("blogs", "missing", {"title": "c"}) is False
    assert db.delete("blogs", doc["_id"]) is True
    assert db.delete("blogs", doc["_id"]) is False
    assert db.find_all("blogs") == []


def test_corrupt_collection_raises_store_error(tmp_path):
    db = JsonFileDocumentStore(str(tmp_path), "cms")
    (tmp_path / "cms" / "events.json").write_text("{not json")
    with pytest.raises(StoreError):
        db.find_all("events")


def test_memory_store_returns_copies():
    db = MemoryDocumentStore()
    doc = db.insert("events", {"images": ["a"]})
    fetched = db.find_one("events", doc["_id"])
    fetched["images"].append("b")
    assert db.find_one("events", doc["_id"])["images"] == ["a"]


@pytest.mark.parametrize("content", ["[1, 2]", "42", '{"version": 1, "documents": [1]}'])
def test_non_object_collection_raises_store_error(tmp_path, content):
    db = JsonFileDocumentStore(str(tmp_path), "cms")
    (tmp_path / "cms" / "events.json").write_text(content)
    with pytest.raises(StoreError):
        db.find_all("events")


def test_corrupt_collection_is_a_json_500(tmp_path, client_for_store):
    db = JsonFileDocumentStore(str(tmp_path), "cms")
    (tmp_path / "cms" / "events.json").write_text("[1, 2]")
    resp = client_for_store(db).get("/events")
    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.json()["error"] == "Failed to fetch events"


def test_failed_write_leaves_no_temp_file(tmp_path, monkeypatch):
    db = JsonFileDocumentStore(str(tmp_path), "cms")

    def failing_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", failing_replace)
    with pytest.raises(StoreError):
        db.insert("events", {"Heading": "H"})
    monkeypatch.undo()

    assert [p.name for p in (tmp_path / "cms").iterdir() if p.name != ".lock"] == []
