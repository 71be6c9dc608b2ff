# tests/helpers.py

"""Builders shared by the test modules."""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import mongomock
from pymongo.database import Database

from database import PRODUCTS, ensure_indexes


def make_db() -> Database:
    """Return a fresh in-memory database with the service indexes."""
    db = mongomock.MongoClient()["tradehub-test"]
    ensure_indexes(db)
    return db


def insert_product(db: Database, **overrides: Any):
    """Insert a product document and return its ObjectId."""
    doc = {
        "productName": "Arabica Beans",
        "price": 12.5,
        "availableQuantity": 10,
        "pictureURL": "https://img.example.com/beans.jpg",
        "rating": 4.2,
        "originCountry": "Colombia",
        "sellerName": "Andes Coffee Co",
        "createdAt": datetime(2026, 1, 1, tzinfo=timezone.utc),
    }
    doc.update(overrides)
    return db[PRODUCTS].insert_one(doc).inserted_id


def ticking_clock(start: datetime, step: timedelta) -> Callable[[], datetime]:
    """Return a clock that advances by ``step`` on every call."""
    state = {"now": start}

    def _clock() -> datetime:
        now = state["now"]
        state["now"] = now + step
        return now

    return _clock
