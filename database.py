"""
MongoDB access helpers.

Each Pydantic model in schemas.py corresponds to a collection named after the
lowercased model (order, coupon, product, ...).
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from config import get_settings
from errors import ValidationFailed

logger = logging.getLogger(__name__)

_settings = get_settings()

client: Optional[MongoClient] = None
db: Optional[Database] = None

if _settings.database_url:
    client = MongoClient(_settings.database_url)
    db = client[_settings.database_name]


# -----------------
# Time helpers
# -----------------

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # pymongo hands back naive datetimes that are already UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# -----------------
# Documents
# -----------------

def _as_dict(data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


def create_document(database: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    """Insert a document stamped with created_at/updated_at and return its id."""
    doc = _as_dict(data)
    now = utcnow()
    doc.setdefault("created_at", now)
    doc["updated_at"] = now
    result = database[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(
    database: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[Sequence[Tuple[str, int]]] = None,
    limit: Optional[int] = None,
    skip: int = 0,
) -> List[Dict[str, Any]]:
    cursor = database[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(list(sort))
    if skip:
        cursor = cursor.skip(skip)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def update_document(
    database: Database,
    collection_name: str,
    filter_dict: Dict[str, Any],
    changes: Dict[str, Any],
) -> Optional[Dict[str, Any]]:
    """Apply a $set and return the updated document, or None when nothing matched."""
    changes = dict(changes)
    changes["updated_at"] = utcnow()
    return database[collection_name].find_one_and_update(
        filter_dict,
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )


def get_singleton(database: Database, collection_name: str, defaults: Dict[str, Any]) -> Dict[str, Any]:
    doc = database[collection_name].find_one()
    if doc is None:
        create_document(database, collection_name, defaults)
        doc = database[collection_name].find_one()
    return doc


def update_singleton(database: Database, collection_name: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    existing = database[collection_name].find_one()
    if existing is None:
        create_document(database, collection_name, changes)
        return database[collection_name].find_one()
    return update_document(database, collection_name, {"_id": existing["_id"]}, changes)


def paginate(
    database: Database,
    collection_name: str,
    filter_dict: Dict[str, Any],
    sort: Sequence[Tuple[str, int]],
    page: int,
    limit: int,
) -> Dict[str, Any]:
    total = database[collection_name].count_documents(filter_dict)
    docs = get_documents(database, collection_name, filter_dict, sort=sort, limit=limit, skip=(page - 1) * limit)
    return {
        "data": docs,
        "count": len(docs),
        "total": total,
        "total_pages": (total + limit - 1) // limit if limit else 0,
        "current_page": page,
    }


def to_public(doc: Any) -> Any:
    """Make a stored document JSON friendly: `_id` becomes `id`, ObjectIds become strings."""
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, list):
        return [to_public(v) for v in doc]
    if not isinstance(doc, dict):
        return doc
    out: Dict[str, Any] = {}
    for key, value in doc.items():
        if key == "_id":
            out["id"] = str(value)
        else:
            out[key] = to_public(value)
    return out


# -----------------
# Counters
# -----------------

def next_sequence(database: Database, name: str, seed_collection: Optional[str] = None) -> int:
    """Atomically increment the named counter and return the new value.

    On first use the counter starts from the number of documents already in
    `seed_collection`, so existing data keeps its numbering.
    """
    counters = database["counter"]
    if counters.find_one({"_id": name}) is None:
        start = database[seed_collection].count_documents({}) if seed_collection else 0
        try:
            counters.insert_one({"_id": name, "seq": start})
        except DuplicateKeyError:
            pass
    doc = counters.find_one_and_update(
        {"_id": name},
        {"$inc": {"seq": 1}},
        return_document=ReturnDocument.AFTER,
    )
    return int(doc["seq"])


# -----------------
# Lookup keys
# -----------------

@dataclass(frozen=True)
class ById:
    value: ObjectId


@dataclass(frozen=True)
class BySlug:
    value: str


LookupKey = Union[ById, BySlug]


def parse_object_id(raw: str, what: str = "id") -> ObjectId:
    try:
        return ObjectId(raw)
    except (InvalidId, TypeError):
        raise ValidationFailed(f"Invalid {what}: {raw}")


def lookup_filter(key: LookupKey, slug_field: str = "slug") -> Dict[str, Any]:
    if isinstance(key, ById):
        return {"_id": key.value}
    return {slug_field: key.value}


# -----------------
# Indexes
# -----------------

def ensure_indexes(database: Database) -> None:
    database["order"].create_index("order_number", unique=True)
    database["order"].create_index([("customer.email", ASCENDING), ("created_at", DESCENDING)])
    database["order"].create_index([("status", ASCENDING), ("created_at", DESCENDING)])
    database["coupon"].create_index("code", unique=True)
    database["coupon_redemption"].create_index([("coupon_id", ASCENDING), ("order_number", ASCENDING)], unique=True)
    database["product"].create_index("product_id", unique=True)
    database["product"].create_index([("category", ASCENDING), ("is_active", ASCENDING)])
    database["product"].create_index([("is_hot", ASCENDING), ("is_featured", ASCENDING)])
    database["category"].create_index("name", unique=True)
    database["category"].create_index("slug", unique=True)
    database["newsletter"].create_index("email", unique=True)
    logger.info("Indexes ensured on %s", database.name)
