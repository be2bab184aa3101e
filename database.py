"""
MongoDB access for the storefront.

Collections are addressed by name (``products``, ``orders`` ...). Every document
written through ``create_document`` gets ``created_at``/``updated_at`` stamps.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from pymongo import MongoClient
from pymongo.database import Database

from config import settings

_client: Optional[MongoClient] = None
_db: Optional[Database] = None


def get_db() -> Database:
    global _client, _db
    if _db is None:
        _client = MongoClient(settings.DATABASE_URL)
        _db = _client[settings.DATABASE_NAME]
    return _db


def set_db(database: Optional[Database]) -> None:
    """Swap the active database (tests point this at mongomock)."""
    global _db
    _db = database


def now() -> datetime:
    return datetime.now(timezone.utc)


def create_document(collection_name: str, data: dict[str, Any]) -> str:
    ts = now()
    data_with_meta = {**data, "created_at": ts, "updated_at": ts}
    result = get_db()[collection_name].insert_one(data_with_meta)
    return str(result.inserted_id)


def get_documents(
    collection_name: str,
    filter_dict: dict[str, Any] | None = None,
    sort: list[tuple[str, int]] | None = None,
    limit: int = 0,
) -> list[dict[str, Any]]:
    cursor = get_db()[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return [to_str_id(d) for d in cursor]


def to_str_id(doc: dict) -> dict:
    if not doc:
        return doc
    d = {**doc}
    if d.get("_id"):
        d["id"] = str(d.pop("_id"))
    # convert datetime to iso
    for k, v in list(d.items()):
        if isinstance(v, datetime):
            if v.tzinfo is None:
                v = v.replace(tzinfo=timezone.utc)
            d[k] = v.astimezone(timezone.utc).isoformat()
    return d


def parse_object_id(value: str) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not ObjectId.is_valid(value):
        raise ValueError("Invalid ObjectId")
    return ObjectId(value)
