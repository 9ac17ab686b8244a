from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from config import Settings
from database import serialize_doc
from main import create_app


def _lookup(doc: dict, dotted: str) -> Any:
    value: Any = doc
    for part in dotted.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


class FakeStore:
    """In-memory stand-in for database.Store that records every call."""

    def __init__(self, collections: Optional[Dict[str, List[dict]]] = None, broken=()):
        self.collections: Dict[str, List[dict]] = {}
        for name, docs in (collections or {}).items():
            self.collections[name] = [{"_id": ObjectId(), **doc} for doc in docs]
        self.broken = set(broken)
        self.calls: List[tuple] = []

    def _docs(self, op: str, collection_name: str) -> List[dict]:
        self.calls.append((op, collection_name))
        if collection_name in self.broken:
            raise ServerSelectionTimeoutError("no servers available")
        return self.collections.setdefault(collection_name, [])

    def find_raw(self, collection_name: str, _id) -> Optional[dict]:
        for doc in self.collections.get(collection_name, []):
            if doc["_id"] == ObjectId(str(_id)):
                return doc
        return None

    async def get_documents(self, collection_name, filter_dict=None, limit=None, sort=None):
        docs = [d for d in self._docs("find", collection_name)
                if all(_lookup(d, k) == v for k, v in (filter_dict or {}).items())]
        for key, direction in reversed(sort or []):
            docs = sorted(docs, key=lambda d: d.get(key, 0), reverse=direction < 0)
        if limit:
            docs = docs[:limit]
        return [serialize_doc(d) for d in docs]

    async def get_document_by_id(self, collection_name, _id):
        docs = self._docs("find_one", collection_name)
        return serialize_doc(next((d for d in docs if d["_id"] == _id), None))

    async def create_document(self, collection_name, data):
        docs = self._docs("insert", collection_name)
        data = {"_id": ObjectId(), **data}
        docs.append(data)
        return str(data["_id"])

    async def update_document(self, collection_name, _id, update_data):
        for doc in self._docs("update", collection_name):
            if doc["_id"] == _id:
                changed = any(doc.get(k) != v for k, v in update_data.items())
                doc.update(update_data)
                return int(changed)
        return 0

    async def delete_document(self, collection_name, _id):
        docs = self._docs("delete", collection_name)
        for i, doc in enumerate(docs):
            if doc["_id"] == _id:
                del docs[i]
                return 1
        return 0


@pytest.fixture
def settings():
    return Settings(allowed_origins=["http://localhost:5173", "https://foodify-25c2d.web.app"])


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def make_client(settings):
    def _make(store):
        return TestClient(create_app(settings=settings, store=store))
    return _make


@pytest.fixture
def client(make_client, store):
    return make_client(store)
