"""
MongoDB access helpers

The service works against four collections: users, products, imports and
exports. Handlers receive a ``pymongo.database.Database`` and go through the
helpers below for the common insert/find/serialize steps.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from errors import InvalidIdError
from settings import Settings

logger = logging.getLogger("tradehub.database")

USERS = "users"
PRODUCTS = "products"
IMPORTS = "imports"
EXPORTS = "exports"

COLLECTIONS = [USERS, PRODUCTS, IMPORTS, EXPORTS]


def create_client(url: Optional[str] = None) -> MongoClient:
    return MongoClient(
        url or Settings.DATABASE_URL,
        serverSelectionTimeoutMS=Settings.SERVER_SELECTION_TIMEOUT_MS,
    )


def ping(db: Database) -> None:
    """Raise if the server behind ``db`` cannot be reached."""
    db.client.admin.command("ping")


def ensure_indexes(db: Database) -> None:
    # Unique email makes the store the arbiter of one account per address
    db[USERS].create_index([("email", ASCENDING)], unique=True)
    db[PRODUCTS].create_index([("createdAt", DESCENDING)])
    db[IMPORTS].create_index([("userEmail", ASCENDING)])
    db[EXPORTS].create_index([("sellerEmail", ASCENDING)])
    logger.debug("Indexes ensured on %s", ", ".join(COLLECTIONS))


def oid(id_str: Any) -> ObjectId:
    if isinstance(id_str, ObjectId):
        return id_str
    # ObjectId(None) would mint a fresh id
    if id_str is None:
        raise InvalidIdError("Invalid id")
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise InvalidIdError("Invalid id")


def create_document(db: Database, collection_name: str, data: Dict[str, Any]) -> str:
    """Insert ``data`` into ``collection_name`` and return the new id as a string."""
    result = db[collection_name].insert_one(dict(data))
    return str(result.inserted_id)


def get_documents(db: Database, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None,
                  sort: Optional[List] = None, limit: int = 0) -> List[Dict[str, Any]]:
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return [to_public(d) for d in cursor]


def to_public(doc: Optional[Dict[str, Any]]):
    if not doc:
        return doc
    d = dict(doc)
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    for k, v in list(d.items()):
        if isinstance(v, ObjectId):
            d[k] = str(v)
        elif isinstance(v, datetime):
            d[k] = v.isoformat()
    return d
