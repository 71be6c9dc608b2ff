"""
Database Schemas for the Food & Beverage Trade Hub

Each document model below maps to one MongoDB collection:
Product -> "products", ImportRecord -> "imports", ExportListing -> "exports",
UserAccount -> "users". The models carry the defaults the service applies when
a document is first written; callers may send extra fields, which are stored
as-is.

The *In models describe request bodies. Their fields are all optional so the
services can answer missing fields with their own messages.
"""
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# Largest integer a BSON int64 can hold
MAX_INT64 = 2 ** 63 - 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Stored documents
# ---------------------------------------------------------------------------
class Product(BaseModel):
    model_config = ConfigDict(extra="allow")

    productName: str
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    availableQuantity: int = Field(..., ge=0, le=MAX_INT64)
    pictureURL: str
    sellerName: Optional[str] = None
    rating: float = 0
    subCategory: str = "General"
    originCountry: str = "Unknown"
    createdAt: datetime = Field(default_factory=utcnow)


class ImportRecord(BaseModel):
    """Point-in-time copy of a product taken when it was imported."""
    productId: str
    productName: Optional[str] = None
    price: Optional[float] = None
    rating: Optional[float] = None
    pictureURL: Optional[str] = None
    originCountry: Optional[str] = None
    importedQuantity: int = Field(..., gt=0)
    userEmail: str
    importedAt: datetime = Field(default_factory=utcnow)


class ExportListing(BaseModel):
    model_config = ConfigDict(extra="allow")

    sellerEmail: str
    productName: str
    pictureURL: Optional[str] = None
    price: Optional[float] = None
    rating: float = 0
    originCountry: str = "Unknown"
    availableQuantity: int = Field(0, le=MAX_INT64)
    createdAt: datetime = Field(default_factory=utcnow)


class UserAccount(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: str


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------
class UserIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: Optional[str] = None


class ProductIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    productName: Optional[str] = None
    price: Optional[float] = None
    availableQuantity: Optional[int] = None
    pictureURL: Optional[str] = None


class ExportIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    sellerEmail: Optional[str] = None
    productName: Optional[str] = None


class ImportIn(BaseModel):
    productId: Optional[str] = None
    # Left raw so the ledger decides what counts as a quantity
    importedQuantity: Any = None
    userEmail: Optional[str] = None
