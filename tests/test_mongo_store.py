import copy
from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

import cms.docstore as docstore
from cms.docstore import MongoDocumentStore, open_document_store
from cms.errors import NotFoundError, StoreError
from cms.records import blog_store, event_store


class FakeCollection:
    def __init__(self):
        self.docs = {}

    def insert_one(self, doc):
        doc.setdefault("_id", ObjectId())
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    def find(self, query):
        assert query == {}
        return [copy.deepcopy(d) for d in self.docs.values()]

    def find_one(self, query):
        doc = self.docs.get(query["_id"])
        return copy.deepcopy(doc) if doc is not None else None

    def replace_one(self, query, doc):
        assert "_id" not in doc
        if query["_id"] not in self.docs:
            return SimpleNamespace(matched_count=0)
        self.docs[query["_id"]] = dict(copy.deepcopy(doc), _id=query["_id"])
        return SimpleNamespace(matched_count=1)

    def delete_one(self, query):
        return SimpleNamespace(deleted_count=1 if self.docs.pop(query["_id"], None) else 0)


class FakeMongoClient:
    instances = []

    def __init__(self, url, **kwargs):
        self.url = url
        self.kwargs = kwargs
        self.databases = {}
        self.closed = False
        self.admin = SimpleNamespace(command=self._command)
        type(self).instances.append(self)

    def _command(self, name):
        assert name == "ping"
        return {"ok": 1}

    def __getitem__(self, name):
        return self.databases.setdefault(name, _FakeDatabase())

    def close(self):
        self.closed = True


class _FakeDatabase(dict):
    def __getitem__(self, name):
        return self.setdefault(name, FakeCollection())


@pytest.fixture
def mongo(monkeypatch):
    FakeMongoClient.instances = []
    monkeypatch.setattr(docstore, "MongoClient", FakeMongoClient)
    return FakeMongoClient


def test_open_document_store_selects_mongo(mongo):
    db = open_document_store("mongodb+srv://u:p@cluster0.example.net/", "nuvacm")
    assert isinstance(db, MongoDocumentStore)
    client = mongo.instances[0]
    assert client.url == "mongodb+srv://u:p@cluster0.example.net/"
    assert "nuvacm" in client.databases

    db.close()
    assert client.closed is True


def test_mongo_ids_are_hex_strings(mongo):
    db = MongoDocumentStore("mongodb://localhost:27017", "cms")
    doc = db.insert("blogs", {"title": "T"})
    assert isinstance(doc["_id"], str)
    assert len(doc["_id"]) == 24

    stored = mongo.instances[0].databases["cms"]["blogs"].docs
    assert list(stored) == [ObjectId(doc["_id"])]
    assert db.find_one("blogs", doc["_id"]) == doc
    assert db.find_one("blogs", "not-an-object-id") is None
    assert db.replace("blogs", "not-an-object-id", {"title": "x"}) is False
    assert db.delete("blogs", "not-an-object-id") is False


def test_record_store_over_mongo(mongo):
    db = MongoDocumentStore("mongodb://localhost:27017", "cms")
    events = event_store(db)
    first = events.create({"Heading": "H1", "Description": "D"})
    second = events.create({"Heading": "H2", "Description": "D"})
    assert [first["eventNumber"], second["eventNumber"]] == [1, 2]
    assert [e["Heading"] for e in events.list_all()] == ["H1", "H2"]

    updated = events.update(first["id"], {"images": ["https://img.example/a.png"]})
    assert events.get_by_id(first["id"]) == updated

    events.delete(second["id"])
    with pytest.raises(NotFoundError):
        events.get_by_id(second["id"])
    assert events.create({"Heading": "H3", "Description": "D"})["eventNumber"] == 2

    blogs = blog_store(db)
    with pytest.raises(NotFoundError):
        blogs.update("000000000000000000000000", {"title": "x"})


def test_unreachable_mongo_raises_store_error(monkeypatch):
    class UnreachableClient(FakeMongoClient):
        def _command(self, name):
            raise ServerSelectionTimeoutError("no servers")

    UnreachableClient.instances = []
    monkeypatch.setattr(docstore, "MongoClient", UnreachableClient)
    with pytest.raises(StoreError):
        MongoDocumentStore("mongodb://db.invalid:27017", "cms")
    assert UnreachableClient.instances[0].closed is True
