"""Product and export listing CRUD."""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError as SchemaValidationError
from pymongo import DESCENDING
from pymongo.database import Database

from database import EXPORTS, PRODUCTS, create_document, get_documents, oid, to_public
from errors import InvalidIdError, NotFoundError, StoreError, ValidationError
from schemas import ExportListing, Product, utcnow
from settings import Settings

logger = logging.getLogger("tradehub.catalog")

PRODUCT_REQUIRED = ("productName", "price", "availableQuantity", "pictureURL")
EXPORT_REQUIRED = ("sellerEmail", "productName")


def _missing(fields: Dict[str, Any], required) -> List[str]:
    return [f for f in required if fields.get(f) in (None, "")]


def _schema_message(exc: SchemaValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err.get('msg')}" if loc else err.get("msg", "Invalid document")


class CatalogService:
    def __init__(self, db: Database, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    # ---------------------------- Products ---------------------------------
    def list_products(self) -> List[Dict[str, Any]]:
        return get_documents(self.db, PRODUCTS)

    def latest_products(self, limit: int = Settings.LATEST_PRODUCTS_LIMIT) -> List[Dict[str, Any]]:
        return get_documents(self.db, PRODUCTS, sort=[("createdAt", DESCENDING)], limit=limit)

    def get_product(self, product_id: str) -> Dict[str, Any]:
        try:
            _id = oid(product_id)
        except InvalidIdError:
            logger.error("Malformed product id %r", product_id)
            raise StoreError("Server error")
        d = self.db[PRODUCTS].find_one({"_id": _id})
        if not d:
            raise NotFoundError("Product not found")
        return to_public(d)

    def create_product(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        missing = _missing(fields, PRODUCT_REQUIRED)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        data = {k: v for k, v in fields.items() if k not in ("_id", "id")}
        data["createdAt"] = self.clock()
        try:
            doc = Product(**data).model_dump()
        except SchemaValidationError as exc:
            raise ValidationError(_schema_message(exc))
        new_id = create_document(self.db, PRODUCTS, doc)
        logger.info("Created product %s (%s, qty %d)", new_id, doc["productName"], doc["availableQuantity"])
        return to_public({"_id": new_id, **doc})

    # ----------------------------- Exports ---------------------------------
    def list_exports(self, user_email: Optional[str]) -> List[Dict[str, Any]]:
        if not user_email:
            raise ValidationError("User email required")
        return get_documents(self.db, EXPORTS, {"sellerEmail": user_email})

    def create_export(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        missing = _missing(fields, EXPORT_REQUIRED)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        data = {k: v for k, v in fields.items() if k not in ("_id", "id")}
        data["createdAt"] = self.clock()
        try:
            doc = ExportListing(**data).model_dump()
        except SchemaValidationError as exc:
            raise ValidationError(_schema_message(exc))
        new_id = create_document(self.db, EXPORTS, doc)
        logger.info("Created export %s for %s", new_id, doc["sellerEmail"])
        return to_public({"_id": new_id, **doc})

    def update_export(self, export_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        try:
            _id = oid(export_id)
        except InvalidIdError:
            raise StoreError("Failed to update export")
        updates = {k: v for k, v in fields.items() if k not in ("_id", "id")}
        if not updates:
            return {"acknowledged": True, "matchedCount": 0, "modifiedCount": 0}
        result = self.db[EXPORTS].update_one({"_id": _id}, {"$set": updates})
        return {
            "acknowledged": result.acknowledged,
            "matchedCount": result.matched_count,
            "modifiedCount": result.modified_count,
        }

    def delete_export(self, export_id: str) -> Dict[str, Any]:
        result = self.db[EXPORTS].delete_one({"_id": oid(export_id)})
        if result.deleted_count == 0:
            raise NotFoundError("Export not found")
        logger.info("Deleted export %s", export_id)
        return {"deleted": True}
