"""
Inventory ledger: ties a product's availableQuantity to its import records.

An import record moves through ``nonexistent -> active -> removed``. Creating
one takes its quantity out of the product; removing one puts it back. There is
no multi-document transaction, so each step is a single-document write:

* create: the stock check and the decrement are one conditional
  ``find_one_and_update`` (decrement only while ``availableQuantity >= q``),
  then the record is inserted. A failed insert is compensated by giving the
  quantity back.
* delete: the quantity is restored first, then the record is removed. A crash
  in between leaves a dangling record whose quantity is already restored.
"""
import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import ValidationError as SchemaValidationError
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import IMPORTS, PRODUCTS, create_document, get_documents, oid
from errors import (
    InsufficientStockError,
    InvalidIdError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from schemas import ImportRecord

logger = logging.getLogger("tradehub.ledger")

SNAPSHOT_FIELDS = ("productName", "price", "rating", "pictureURL", "originCountry")


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and value > 0:
        return value
    return None


class InventoryLedger:
    def __init__(self, db: Database):
        self.products = db[PRODUCTS]
        self.imports = db[IMPORTS]
        self.db = db

    def list_imports(self, user_email: Optional[str]) -> List[Dict[str, Any]]:
        if not user_email:
            raise ValidationError("User email required")
        return get_documents(self.db, IMPORTS, {"userEmail": user_email})

    def create_import(self, product_id: Optional[str], imported_quantity: Any,
                      user_email: Optional[str]) -> Dict[str, Any]:
        """Record an import of ``imported_quantity`` units of a product.

        Raises:
            ValidationError: a field is missing, the quantity is not a positive
                integer, or ``product_id`` is not a valid id.
            NotFoundError: no product has ``product_id``.
            InsufficientStockError: the product does not hold enough units.
                Nothing is written in that case.
            StoreError: the record could not be inserted (the decrement is
                given back first).
        """
        if not product_id or imported_quantity in (None, "", 0) or not user_email:
            raise ValidationError("All fields are required")
        quantity = _positive_int(imported_quantity)
        if quantity is None:
            raise ValidationError("Imported quantity must be a positive integer")
        try:
            product_oid = oid(product_id)
        except InvalidIdError:
            raise ValidationError("Invalid product id")

        product = self.products.find_one({"_id": product_oid})
        if not product:
            raise NotFoundError("Product not found")
        if quantity > product.get("availableQuantity", 0):
            logger.warning(
                "Import of %d refused for product %s: only %s available",
                quantity, product_id, product.get("availableQuantity", 0),
            )
            raise InsufficientStockError("Import quantity exceeds available quantity")

        updated = self.products.find_one_and_update(
            {"_id": product_oid, "availableQuantity": {"$gte": quantity}},
            {"$inc": {"availableQuantity": -quantity}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            if self.products.find_one({"_id": product_oid}, {"_id": 1}) is None:
                logger.warning("Product %s removed before import of %d", product_id, quantity)
                raise NotFoundError("Product not found")
            # Another import drained the stock after our read
            logger.warning("Import of %d lost the stock race on product %s", quantity, product_id)
            raise InsufficientStockError("Import quantity exceeds available quantity")

        try:
            record = ImportRecord(
                productId=str(product_oid),
                importedQuantity=quantity,
                userEmail=user_email,
                **{f: product.get(f) for f in SNAPSHOT_FIELDS},
            )
            inserted_id = create_document(self.db, IMPORTS, record.model_dump())
        except (PyMongoError, SchemaValidationError):
            logger.exception("Insert of import record failed, restoring %d to product %s",
                             quantity, product_id)
            self._restore(product_oid, quantity)
            raise StoreError("Failed to record import")

        logger.info(
            "Imported %d of product %s for %s (import %s, %d left)",
            quantity, product_id, user_email, inserted_id, updated["availableQuantity"],
        )
        return {"success": True, "insertedId": inserted_id, "message": "Product imported successfully"}

    def delete_import(self, import_id: str) -> bool:
        """Remove an import record and give its quantity back to the product.

        Returns True only when the record was actually deleted. A False result
        means another caller removed it between our read and our delete; the
        restoration is not rolled back.
        """
        try:
            record_oid = oid(import_id)
        except InvalidIdError:
            raise NotFoundError("Import not found")
        record = self.imports.find_one({"_id": record_oid})
        if not record:
            raise NotFoundError("Import not found")

        self._restore(record.get("productId"), record.get("importedQuantity", 0))

        result = self.imports.delete_one({"_id": record_oid})
        if result.deleted_count != 1:
            logger.warning("Import %s vanished before delete; quantity already restored", import_id)
            return False
        logger.info("Deleted import %s", import_id)
        return True

    def _restore(self, product_id: Any, quantity: int) -> None:
        try:
            product_oid = product_id if isinstance(product_id, ObjectId) else oid(product_id)
        except InvalidIdError:
            logger.warning("Import references unparseable product id %r; nothing restored", product_id)
            return
        result = self.products.update_one(
            {"_id": product_oid},
            {"$inc": {"availableQuantity": quantity}},
        )
        if result.matched_count == 0:
            logger.info("Product %s no longer exists; restoration of %d skipped", product_id, quantity)
