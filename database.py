"""
MongoDB access for the Bookshelf API.

Collections are named after the lowercase schema class (Book -> "book"). Each
handler gets the database through ``get_db`` so tests can hand in an
in-memory replacement.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import settings
from errors import NotFound

logger = logging.getLogger(__name__)

client = MongoClient(settings.database_url)
db = client[settings.database_name]


def get_db() -> Database:
    return db


def ensure_indexes(database: Database) -> None:
    """Create the lookup indexes; the unique ones back the one-per-key invariants."""
    database["user"].create_index([("email", ASCENDING)], unique=True)
    database["admin"].create_index([("user_id", ASCENDING)], unique=True)
    database["profile"].create_index([("user_id", ASCENDING)], unique=True)
    database["rating"].create_index([("book_id", ASCENDING), ("user_id", ASCENDING)], unique=True)
    database["rating"].create_index([("user_id", ASCENDING)])
    database["rating"].create_index([("profile_id", ASCENDING)])
    logger.info("Indexes ensured on database %s", database.name)


def to_object_id(value: Union[str, ObjectId], what: str = "Document") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise NotFound(f"{what} not found")


def create_document(database: Database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    doc.setdefault("created_at", datetime.now(timezone.utc))
    res = database[collection_name].insert_one(doc)
    return str(res.inserted_id)


def get_documents(database: Database, collection_name: str, filter_dict: Optional[dict] = None,
                  limit: Optional[int] = None) -> List[dict]:
    cursor = database[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(int(limit))
    return list(cursor)


def serialize(doc: Optional[dict]) -> Optional[Dict[str, Any]]:
    """Turn a stored document into JSON-friendly output (``_id`` -> ``id``, ObjectIds -> str)."""
    if doc is None:
        return None
    out = {}
    for key, value in doc.items():
        if key == "_id":
            key = "id"
        if isinstance(value, ObjectId):
            value = str(value)
        out[key] = value
    return out


def parse_object_id(value: Union[str, ObjectId]) -> Optional[ObjectId]:
    """Like to_object_id, but returns None for malformed ids; read-only queries use it."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None
