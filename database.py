"""
MongoDB access for the Storefront API.

`db` is None when DATABASE_URL is not configured. Collection names match the
lowercased schema class names (user, product, order, favorite).
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient

from config import DATABASE_NAME, DATABASE_URL
from errors import BadRequest

logger = logging.getLogger(__name__)

client = MongoClient(DATABASE_URL) if DATABASE_URL else None
db = client[DATABASE_NAME] if client is not None else None


def get_collection(name: str):
    if db is None:
        raise RuntimeError("Database not available: DATABASE_URL is not set")
    return db[name]


def ensure_indexes():
    if db is None:
        logger.warning("DATABASE_URL not set, skipping index creation")
        return
    db["user"].create_index([("email", ASCENDING)], unique=True)
    db["order"].create_index([("user_id", ASCENDING)])
    db["favorite"].create_index([("user_id", ASCENDING), ("product_id", ASCENDING)], unique=True)


def create_document(collection_name: str, data: Union[BaseModel, dict]) -> str:
    """Insert a document, stamping created_at/updated_at, and return its id as a string."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)
    now = datetime.now(timezone.utc)
    data_dict["created_at"] = now
    data_dict["updated_at"] = now
    result = get_collection(collection_name).insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None):
    cursor = get_collection(collection_name).find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def to_object_id(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise BadRequest("Invalid id")


def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return doc
    doc = dict(doc)
    if isinstance(doc.get("_id"), ObjectId):
        doc["_id"] = str(doc["_id"])
    return doc
