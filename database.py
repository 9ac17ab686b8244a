"""
Database Helper Functions

Async MongoDB helpers for the Foodify API. One AsyncMongoClient is created at
startup; route handlers receive a ``Store`` wrapping its database through
FastAPI dependency injection.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote_plus

from bson import Decimal128, ObjectId
from pymongo import AsyncMongoClient
from pymongo.server_api import ServerApi

from config import Settings

logger = logging.getLogger(__name__)

# Collections inside the Foodify database
TOP_FOODS = "Top-foods"
ALL_FOODS = "all-Foods"
ADDED_FOODS = "added"
ORDERS = "Orders"


class DatabaseUnavailable(Exception):
    pass


def build_mongo_uri(settings: Settings) -> str:
    if settings.database_url:
        return settings.database_url
    if not settings.db_user or not settings.db_password:
        raise DatabaseUnavailable("Database not available. Check DB_USER and DB_PASSWORD environment variables.")
    user = quote_plus(settings.db_user)
    password = quote_plus(settings.db_password)
    return f"mongodb+srv://{user}:{password}@{settings.db_host}/?retryWrites=true&w=majority&appName=Cluster0"


def create_client(settings: Settings) -> AsyncMongoClient:
    return AsyncMongoClient(
        build_mongo_uri(settings),
        server_api=ServerApi("1", strict=True, deprecation_errors=True),
    )


async def ping(client: AsyncMongoClient) -> None:
    await client.admin.command("ping")


# Utility

def _plain(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    # ObjectId and Decimal128 values, nested or not, become JSON-encodable
    return _plain(dict(doc))


class Store:
    """CRUD helpers over the Foodify database.

    ``db`` may be None when the connection could not be configured; every
    operation then raises ``DatabaseUnavailable``.
    """

    def __init__(self, db=None):
        self.db = db

    def _collection(self, collection_name: str):
        if self.db is None:
            raise DatabaseUnavailable("Database not available. Check DB_USER and DB_PASSWORD environment variables.")
        return self.db[collection_name]

    async def get_documents(self, collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None, sort: Optional[list] = None) -> List[dict]:
        cursor = self._collection(collection_name).find(filter_dict or {})
        if sort:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(int(limit))
        return [serialize_doc(doc) async for doc in cursor]

    async def get_document_by_id(self, collection_name: str, _id: ObjectId) -> Optional[dict]:
        doc = await self._collection(collection_name).find_one({"_id": _id})
        return serialize_doc(doc)

    async def create_document(self, collection_name: str, data: Dict[str, Any]) -> str:
        result = await self._collection(collection_name).insert_one(data)
        return str(result.inserted_id)

    async def update_document(self, collection_name: str, _id: ObjectId, update_data: Dict[str, Any]) -> int:
        result = await self._collection(collection_name).update_one({"_id": _id}, {"$set": update_data})
        return result.modified_count

    async def delete_document(self, collection_name: str, _id: ObjectId) -> int:
        result = await self._collection(collection_name).delete_one({"_id": _id})
        return result.deleted_count
