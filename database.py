"""
MongoDB access for the City College API.

Each schema maps to a collection named after it in lowercase
(Student -> "student", Contact -> "contact", Course -> "course").
``db`` stays ``None`` when DATABASE_URL / DATABASE_NAME are not set.
"""

import logging
import re
from datetime import date, datetime, time
from typing import Iterable, List, Optional, Tuple, Union

from bson.objectid import ObjectId
from pydantic import BaseModel
from pymongo import DESCENDING, MongoClient, ReturnDocument

import config

logger = logging.getLogger(__name__)


def connect(url: str) -> MongoClient:
    # fail fast so /health reports "disconnected" instead of hanging
    return MongoClient(url, serverSelectionTimeoutMS=config.DATABASE_TIMEOUT_MS)


_client = None
db = None

if config.DATABASE_URL and config.DATABASE_NAME:
    _client = connect(config.DATABASE_URL)
    db = _client[config.DATABASE_NAME]


class DatabaseNotConfigured(RuntimeError):
    pass


def _collection(name: str):
    if db is None:
        raise DatabaseNotConfigured("Database not configured")
    return db[name]


def _to_bson(value):
    # BSON has no plain date type
    if isinstance(value, dict):
        return {k: _to_bson(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_bson(v) for v in value]
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    return value


def ensure_indexes() -> None:
    if db is None:
        logger.warning("DATABASE_URL/DATABASE_NAME not set, skipping index setup")
        return
    db["student"].create_index("email", unique=True)
    db["student"].create_index("adhaarNo", unique=True)
    db["student"].create_index("registrationNo", unique=True, sparse=True)
    db["student"].create_index([("createdAt", DESCENDING)])
    db["contact"].create_index([("createdAt", DESCENDING)])
    db["course"].create_index("code", unique=True)
    logger.info(f"Indexes ensured on database '{db.name}'")


def close() -> None:
    if _client is not None:
        _client.close()


def ping() -> bool:
    if db is None:
        return False
    try:
        db.client.admin.command("ping")
    except Exception as e:
        logger.warning(f"Database ping failed: {e}")
        return False
    return True


def create_document(collection_name: str, data: Union[BaseModel, dict]) -> str:
    """Insert a document, stamping createdAt/updatedAt. Returns the new id."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(by_alias=True)
    else:
        data_dict = dict(data)
    now = datetime.utcnow()
    data_dict["createdAt"] = now
    data_dict["updatedAt"] = now
    result = _collection(collection_name).insert_one(_to_bson(data_dict))
    return str(result.inserted_id)


def get_documents(
    collection_name: str,
    filter_dict: Optional[dict] = None,
    limit: Optional[int] = None,
    newest_first: bool = False,
) -> List[dict]:
    cursor = _collection(collection_name).find(filter_dict or {})
    if newest_first:
        cursor = cursor.sort("createdAt", DESCENDING)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def get_document(collection_name: str, document_id: str) -> Optional[dict]:
    # ObjectId() raises bson.errors.InvalidId for malformed ids
    return _collection(collection_name).find_one({"_id": ObjectId(document_id)})


def find_one(collection_name: str, filter_dict: dict) -> Optional[dict]:
    return _collection(collection_name).find_one(filter_dict)


def count_documents(collection_name: str, filter_dict: Optional[dict] = None) -> int:
    return _collection(collection_name).count_documents(filter_dict or {})


def paginate(
    collection_name: str, filter_dict: dict, page: int, limit: int
) -> Tuple[List[dict], int]:
    """Newest-first page of matching documents plus the total match count."""
    coll = _collection(collection_name)
    docs = list(
        coll.find(filter_dict)
        .sort("createdAt", DESCENDING)
        .skip((page - 1) * limit)
        .limit(limit)
    )
    return docs, coll.count_documents(filter_dict)


def set_status(collection_name: str, document_id: str, status: str) -> Optional[dict]:
    return _collection(collection_name).find_one_and_update(
        {"_id": ObjectId(document_id)},
        {"$set": {"status": status, "updatedAt": datetime.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )


def delete_document(collection_name: str, document_id: str) -> bool:
    result = _collection(collection_name).delete_one({"_id": ObjectId(document_id)})
    return result.deleted_count > 0


def replace_all(collection_name: str, items: Iterable[Union[BaseModel, dict]]) -> int:
    """Drop every document in the collection and insert ``items``."""
    coll = _collection(collection_name)
    now = datetime.utcnow()
    docs = []
    for item in items:
        doc = item.model_dump(by_alias=True) if isinstance(item, BaseModel) else dict(item)
        doc["createdAt"] = now
        doc["updatedAt"] = now
        docs.append(_to_bson(doc))
    coll.delete_many({})
    if docs:
        coll.insert_many(docs)
    return len(docs)


def search_filter(fields: Iterable[str], term: str) -> dict:
    """Case-insensitive substring match of ``term`` on any of ``fields``."""
    pattern = re.escape(term)
    return {"$or": [{f: {"$regex": pattern, "$options": "i"}} for f in fields]}


def serialize_doc(doc: dict):
    if not doc:
        return doc
    out = {}
    for k, v in doc.items():
        if k == "_id":
            out["_id"] = str(v)
            out["id"] = str(v)
        elif isinstance(v, (datetime, date)):
            out[k] = v.isoformat()
        elif isinstance(v, dict):
            out[k] = serialize_doc(v)
        else:
            out[k] = v
    return out
