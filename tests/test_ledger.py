# tests/test_ledger.py

"""Tests for the inventory ledger (import creation and deletion)."""

import unittest
from unittest.mock import patch

from bson import ObjectId
from pymongo.errors import PyMongoError

from database import IMPORTS, PRODUCTS
from errors import (
    InsufficientStockError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from helpers import insert_product, make_db
from ledger import InventoryLedger


class TestCreateImport(unittest.TestCase):
    """CreateImport decrements stock and records a snapshot."""

    def setUp(self) -> None:
        self.db = make_db()
        self.ledger = InventoryLedger(self.db)
        self.product_id = insert_product(self.db, availableQuantity=10)

    def _quantity(self) -> int:
        return self.db[PRODUCTS].find_one({"_id": self.product_id})["availableQuantity"]

    def test_decrements_quantity_and_inserts_record(self) -> None:
        """A successful import takes q units and stores one record."""
        result = self.ledger.create_import(str(self.product_id), 4, "buyer@example.com")

        self.assertTrue(result["success"])
        self.assertEqual(self._quantity(), 6)
        records = list(self.db[IMPORTS].find({"productId": str(self.product_id)}))
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0]["importedQuantity"], 4)
        self.assertEqual(str(records[0]["_id"]), result["insertedId"])

    def test_record_snapshots_product_fields(self) -> None:
        """The record copies name, price, rating, picture and origin."""
        self.ledger.create_import(str(self.product_id), 1, "buyer@example.com")
        record = self.db[IMPORTS].find_one({})
        self.assertEqual(record["productName"], "Arabica Beans")
        self.assertEqual(record["price"], 12.5)
        self.assertEqual(record["rating"], 4.2)
        self.assertEqual(record["pictureURL"], "https://img.example.com/beans.jpg")
        self.assertEqual(record["originCountry"], "Colombia")
        self.assertEqual(record["userEmail"], "buyer@example.com")
        self.assertIn("importedAt", record)

    def test_whole_stock_can_be_imported(self) -> None:
        """Importing exactly the available quantity leaves zero."""
        self.ledger.create_import(str(self.product_id), 10, "buyer@example.com")
        self.assertEqual(self._quantity(), 0)

    def test_insufficient_stock_makes_no_mutation(self) -> None:
        """q > availableQuantity fails and leaves everything untouched."""
        with self.assertRaises(InsufficientStockError):
            self.ledger.create_import(str(self.product_id), 11, "buyer@example.com")
        self.assertEqual(self._quantity(), 10)
        self.assertEqual(self.db[IMPORTS].count_documents({}), 0)

    def test_missing_fields_raise_validation_error(self) -> None:
        """productId, importedQuantity and userEmail are all required."""
        cases = [
            (None, 1, "a@example.com"),
            (str(self.product_id), None, "a@example.com"),
            (str(self.product_id), 0, "a@example.com"),
            (str(self.product_id), 1, ""),
        ]
        for product_id, qty, email in cases:
            with self.subTest(product_id=product_id, qty=qty, email=email):
                with self.assertRaises(ValidationError) as ctx:
                    self.ledger.create_import(product_id, qty, email)
                self.assertEqual(ctx.exception.message, "All fields are required")

    def test_non_positive_or_fractional_quantity_rejected(self) -> None:
        """Negative and fractional quantities are not importable."""
        for qty in (-2, 2.5, "three", True):
            with self.subTest(qty=qty):
                with self.assertRaises(ValidationError):
                    self.ledger.create_import(str(self.product_id), qty, "a@example.com")
        self.assertEqual(self._quantity(), 10)

    def test_whole_float_quantity_accepted(self) -> None:
        """3.0 counts as 3 units."""
        self.ledger.create_import(str(self.product_id), 3.0, "a@example.com")
        self.assertEqual(self._quantity(), 7)

    def test_malformed_product_id(self) -> None:
        """An unparseable product id is a validation error."""
        with self.assertRaises(ValidationError):
            self.ledger.create_import("not-an-id", 1, "a@example.com")

    def test_unknown_product(self) -> None:
        """A well-formed id with no product is not found."""
        with self.assertRaises(NotFoundError):
            self.ledger.create_import(str(ObjectId()), 1, "a@example.com")

    def test_lost_race_on_conditional_decrement(self) -> None:
        """If stock drains between read and decrement, nothing is written."""
        with patch.object(self.ledger.products, "find_one_and_update", return_value=None):
            with self.assertRaises(InsufficientStockError):
                self.ledger.create_import(str(self.product_id), 5, "a@example.com")
        self.assertEqual(self.db[IMPORTS].count_documents({}), 0)
        self.assertEqual(self._quantity(), 10)

    def test_product_removed_before_decrement(self) -> None:
        """A product deleted after the read is reported as not found."""
        real_update = self.ledger.products.find_one_and_update

        def delete_then_update(*args, **kwargs):
            self.db[PRODUCTS].delete_one({"_id": self.product_id})
            return real_update(*args, **kwargs)

        with patch.object(self.ledger.products, "find_one_and_update", side_effect=delete_then_update):
            with self.assertRaises(NotFoundError):
                self.ledger.create_import(str(self.product_id), 5, "a@example.com")
        self.assertEqual(self.db[IMPORTS].count_documents({}), 0)

    def test_failed_insert_restores_quantity(self) -> None:
        """A failed record insert gives the decremented units back."""
        with patch("ledger.create_document", side_effect=PyMongoError("write failed")):
            with self.assertRaises(StoreError):
                self.ledger.create_import(str(self.product_id), 4, "a@example.com")
        self.assertEqual(self._quantity(), 10)


class TestDeleteImport(unittest.TestCase):
    """DeleteImport restores stock then removes the record."""

    def setUp(self) -> None:
        self.db = make_db()
        self.ledger = InventoryLedger(self.db)
        self.product_id = insert_product(self.db, availableQuantity=10)

    def _quantity(self) -> int:
        return self.db[PRODUCTS].find_one({"_id": self.product_id})["availableQuantity"]

    def test_round_trip_restores_quantity(self) -> None:
        """Create then delete brings the product back to its old quantity."""
        result = self.ledger.create_import(str(self.product_id), 7, "a@example.com")
        self.assertEqual(self._quantity(), 3)

        self.assertTrue(self.ledger.delete_import(result["insertedId"]))
        self.assertEqual(self._quantity(), 10)
        self.assertEqual(self.db[IMPORTS].count_documents({}), 0)

    def test_second_delete_is_not_found(self) -> None:
        """Deleting the same import twice fails the second time."""
        result = self.ledger.create_import(str(self.product_id), 2, "a@example.com")
        self.ledger.delete_import(result["insertedId"])
        with self.assertRaises(NotFoundError):
            self.ledger.delete_import(result["insertedId"])
        self.assertEqual(self._quantity(), 10)

    def test_malformed_id_is_not_found(self) -> None:
        """An unparseable import id cannot name a record."""
        with self.assertRaises(NotFoundError):
            self.ledger.delete_import("zzz")

    def test_orphaned_record_still_deleted(self) -> None:
        """A record whose product is gone is removed without error."""
        result = self.ledger.create_import(str(self.product_id), 2, "a@example.com")
        self.db[PRODUCTS].delete_one({"_id": self.product_id})

        self.assertTrue(self.ledger.delete_import(result["insertedId"]))
        self.assertEqual(self.db[IMPORTS].count_documents({}), 0)
        self.assertEqual(self.db[PRODUCTS].count_documents({}), 0)

    def test_vanished_record_reports_failure(self) -> None:
        """A delete that removes nothing returns False and keeps the restore."""
        result = self.ledger.create_import(str(self.product_id), 4, "a@example.com")
        imports = self.ledger.imports
        real_delete = imports.delete_one

        def delete_twice(flt):
            # Someone else removes the record right before our delete lands
            real_delete(flt)
            return real_delete(flt)

        with patch.object(imports, "delete_one", side_effect=delete_twice):
            self.assertFalse(self.ledger.delete_import(result["insertedId"]))
        self.assertEqual(self._quantity(), 10)


class TestLedgerScenario(unittest.TestCase):
    """Walk through the 10 / 4 / 10 / delete scenario."""

    def test_scenario(self) -> None:
        db = make_db()
        ledger = InventoryLedger(db)
        product_id = insert_product(db, availableQuantity=10)

        first = ledger.create_import(str(product_id), 4, "a@example.com")
        self.assertEqual(db[PRODUCTS].find_one({"_id": product_id})["availableQuantity"], 6)
        self.assertEqual(db[IMPORTS].count_documents({"importedQuantity": 4}), 1)

        with self.assertRaises(InsufficientStockError):
            ledger.create_import(str(product_id), 10, "a@example.com")

        ledger.delete_import(first["insertedId"])
        self.assertEqual(db[PRODUCTS].find_one({"_id": product_id})["availableQuantity"], 10)
        self.assertEqual(db[IMPORTS].count_documents({}), 0)


class TestListImports(unittest.TestCase):
    """ListImports filters by the importing user's email."""

    def test_filters_by_user(self) -> None:
        db = make_db()
        ledger = InventoryLedger(db)
        product_id = str(insert_product(db))
        ledger.create_import(product_id, 1, "a@example.com")
        ledger.create_import(product_id, 2, "b@example.com")

        rows = ledger.list_imports("a@example.com")
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["importedQuantity"], 1)
        self.assertIn("id", rows[0])
        self.assertNotIn("_id", rows[0])

    def test_requires_email(self) -> None:
        with self.assertRaises(ValidationError):
            InventoryLedger(make_db()).list_imports(None)
