from __future__ import annotations

import copy
import fcntl
import json
import os
import secrets
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List
from urllib.parse import urlparse

from bson import ObjectId
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from cms.config import dlog
from cms.errors import ConfigError, StoreError


COLLECTION_SCHEMA_VERSION = 1
MONGO_SCHEMES = ("mongodb", "mongodb+srv")


def new_object_id() -> str:
    """24 hex chars, the same shape as a MongoDB ObjectId."""
    return secrets.token_hex(12)


class DocumentStore:
    """Collections of JSON documents keyed by a store-assigned `_id`.

    Single-document operations are serialized by the backend. Callers that
    need a cross-document invariant (read max, then insert) wrap the whole
    sequence in `locked()`.
    """

    def insert(self, collection: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def find_all(self, collection: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def find_one(self, collection: str, doc_id: str) -> Dict[str, Any] | None:
        raise NotImplementedError

    def replace(self, collection: str, doc_id: str, doc: Dict[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, collection: str, doc_id: str) -> bool:
        raise NotImplementedError

    @contextmanager
    def locked(self) -> Iterator[None]:
        raise NotImplementedError
        yield  # pragma: no cover

    def close(self) -> None:
        return None


class MemoryDocumentStore(DocumentStore):
    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.RLock()

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def _docs(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def insert(self, collection: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            stored = copy.deepcopy(doc)
            stored.setdefault("_id", new_object_id())
            self._docs(collection)[stored["_id"]] = stored
            return copy.deepcopy(stored)

    def find_all(self, collection: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(d) for d in self._docs(collection).values()]

    def find_one(self, collection: str, doc_id: str) -> Dict[str, Any] | None:
        with self._lock:
            doc = self._docs(collection).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def replace(self, collection: str, doc_id: str, doc: Dict[str, Any]) -> bool:
        with self._lock:
            docs = self._docs(collection)
            if doc_id not in docs:
                return False
            stored = copy.deepcopy(doc)
            stored["_id"] = doc_id
            docs[doc_id] = stored
            return True

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            return self._docs(collection).pop(doc_id, None) is not None


class JsonFileDocumentStore(DocumentStore):
    """One JSON file per collection under `<root>/<database name>/`.

    Writes go through a temp file and os.replace. A lock file in the database
    directory is held (fcntl) for every operation so separate server
    processes sharing the directory see consistent collections.
    """

    def __init__(self, root: str, name: str) -> None:
        self.path = Path(root) / name
        self._lock = threading.RLock()
        self._depth = 0
        self._lock_file = None
        try:
            self.path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Could not create data directory {self.path}: {e}") from e

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            if self._depth == 0:
                self._lock_file = open(self.path / ".lock", "a")
                fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_EX)
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
                if self._depth == 0 and self._lock_file is not None:
                    fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_UN)
                    self._lock_file.close()
                    self._lock_file = None

    def _file(self, collection: str) -> Path:
        return self.path / f"{collection}.json"

    def _read(self, collection: str) -> List[Dict[str, Any]]:
        path = self._file(collection)
        if not path.exists():
            return []
        try:
            with open(path, "r") as f:
                content = f.read().strip()
            raw = json.loads(content) if content else {"version": COLLECTION_SCHEMA_VERSION, "documents": []}
        except (OSError, ValueError) as e:
            raise StoreError(f"Could not read collection '{collection}': {e}") from e
        if not isinstance(raw, dict):
            raise StoreError(f"Collection '{collection}' is corrupt: expected a JSON object")
        if raw.get("version") != COLLECTION_SCHEMA_VERSION:
            raise StoreError(f"Incompatible collection version for '{collection}': {raw.get('version')}")
        docs = raw.get("documents")
        if not isinstance(docs, list) or not all(isinstance(d, dict) for d in docs):
            raise StoreError(f"Collection '{collection}' is corrupt: documents is not a list of objects")
        return docs

    def _write(self, collection: str, docs: List[Dict[str, Any]]) -> None:
        payload = {"version": COLLECTION_SCHEMA_VERSION, "documents": docs}
        temp_name = None
        try:
            with tempfile.NamedTemporaryFile("w", delete=False, dir=self.path, suffix=".tmp") as tmp:
                temp_name = tmp.name
                json.dump(payload, tmp, default=str)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(temp_name, self._file(collection))
        except (OSError, TypeError, ValueError) as e:
            if temp_name is not None:
                try:
                    os.unlink(temp_name)
                except OSError:
                    pass
            raise StoreError(f"Could not write collection '{collection}': {e}") from e

    def insert(self, collection: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        with self.locked():
            docs = self._read(collection)
            stored = copy.deepcopy(doc)
            stored.setdefault("_id", new_object_id())
            docs.append(stored)
            self._write(collection, docs)
            return stored

    def find_all(self, collection: str) -> List[Dict[str, Any]]:
        with self.locked():
            return self._read(collection)

    def find_one(self, collection: str, doc_id: str) -> Dict[str, Any] | None:
        with self.locked():
            for doc in self._read(collection):
                if doc.get("_id") == doc_id:
                    return doc
        return None

    def replace(self, collection: str, doc_id: str, doc: Dict[str, Any]) -> bool:
        with self.locked():
            docs = self._read(collection)
            for idx, existing in enumerate(docs):
                if existing.get("_id") == doc_id:
                    stored = copy.deepcopy(doc)
                    stored["_id"] = doc_id
                    docs[idx] = stored
                    self._write(collection, docs)
                    return True
        return False

    def delete(self, collection: str, doc_id: str) -> bool:
        with self.locked():
            docs = self._read(collection)
            remaining = [d for d in docs if d.get("_id") != doc_id]
            if len(remaining) == len(docs):
                return False
            self._write(collection, remaining)
            return True


def _object_id(doc_id: str) -> ObjectId | None:
    return ObjectId(doc_id) if ObjectId.is_valid(doc_id) else None


def _from_mongo(doc: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(doc)
    out["_id"] = str(out["_id"])
    return out


class MongoDocumentStore(DocumentStore):
    """MongoDB collections through pymongo.

    `_id` is an ObjectId in the database and its hex string everywhere else.
    `locked()` serializes callers within this process only.
    """

    def __init__(self, url: str, name: str, *, timeout_ms: int = 10000) -> None:
        client = None
        try:
            client = MongoClient(url, serverSelectionTimeoutMS=timeout_ms)
            client.admin.command("ping")
        except PyMongoError as e:
            if client is not None:
                client.close()
            raise StoreError(f"Could not connect to MongoDB database '{name}': {e}") from e
        self._client = client
        self._db = client[name]
        self._lock = threading.RLock()

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def insert(self, collection: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        stored = copy.deepcopy(doc)
        raw_id = stored.pop("_id", None)
        if raw_id is not None:
            stored["_id"] = _object_id(str(raw_id)) or raw_id
        try:
            result = self._db[collection].insert_one(stored)
        except PyMongoError as e:
            raise StoreError(f"Could not insert into '{collection}': {e}") from e
        stored["_id"] = result.inserted_id
        return _from_mongo(stored)

    def find_all(self, collection: str) -> List[Dict[str, Any]]:
        try:
            return [_from_mongo(doc) for doc in self._db[collection].find({})]
        except PyMongoError as e:
            raise StoreError(f"Could not read '{collection}': {e}") from e

    def find_one(self, collection: str, doc_id: str) -> Dict[str, Any] | None:
        oid = _object_id(doc_id)
        if oid is None:
            return None
        try:
            doc = self._db[collection].find_one({"_id": oid})
        except PyMongoError as e:
            raise StoreError(f"Could not read '{collection}': {e}") from e
        return _from_mongo(doc) if doc is not None else None

    def replace(self, collection: str, doc_id: str, doc: Dict[str, Any]) -> bool:
        oid = _object_id(doc_id)
        if oid is None:
            return False
        stored = {k: v for k, v in doc.items() if k != "_id"}
        try:
            result = self._db[collection].replace_one({"_id": oid}, stored)
        except PyMongoError as e:
            raise StoreError(f"Could not update '{collection}': {e}") from e
        return result.matched_count > 0

    def delete(self, collection: str, doc_id: str) -> bool:
        oid = _object_id(doc_id)
        if oid is None:
            return False
        try:
            result = self._db[collection].delete_one({"_id": oid})
        except PyMongoError as e:
            raise StoreError(f"Could not delete from '{collection}': {e}") from e
        return result.deleted_count > 0

    def close(self) -> None:
        self._client.close()


def open_document_store(url: str, name: str) -> DocumentStore:
    """Pick a backend from the connection string.

    - mongodb:// or mongodb+srv://  -> MongoDocumentStore
    - memory://                     -> MemoryDocumentStore
    - file:///abs/path              -> JsonFileDocumentStore rooted at the path
    - /abs/path or ./rel            -> JsonFileDocumentStore
    """
    parsed = urlparse(url)
    if parsed.scheme in MONGO_SCHEMES:
        dlog("document_store", {"backend": "mongodb", "host": parsed.hostname, "database": name})
        return MongoDocumentStore(url, name)
    if parsed.scheme == "memory":
        dlog("document_store", {"backend": "memory", "database": name})
        return MemoryDocumentStore()
    if parsed.scheme == "file":
        root = parsed.path or "."
        if parsed.netloc:
            root = parsed.netloc + root
    elif parsed.scheme == "":
        root = url
    else:
        raise ConfigError(
            f"Unsupported document store URL scheme '{parsed.scheme}'. Use mongodb://, mongodb+srv://, file:// or memory://"
        )
    dlog("document_store", {"backend": "json-file", "root": root, "database": name})
    return JsonFileDocumentStore(root, name)
