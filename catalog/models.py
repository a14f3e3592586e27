"""
catalog/models.py -- Domain dataclasses for the product catalog.

Pure data containers. Validation and the ownership rule live in
catalog/service.py; persistence lives in catalog/store.py.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum


class Category(str, Enum):
    electronics = "electronics"
    clothing = "clothing"
    food = "food"
    books = "books"
    other = "other"


class ProductStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    discontinued = "discontinued"


@dataclass
class Product:
    """A catalog entry.

    created_by is a non-owning reference to the creating user's id. It is
    fixed at creation and is not cleared when that user is deleted.

    id is None before the record is written to the database.
    """

    name: str
    price: float
    created_by: int
    description: str = ""
    quantity: int = 0
    category: Category = Category.other
    status: ProductStatus = ProductStatus.active
    id: int | None = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, refreshed by store on every update


class _Unset:
    """Marker for a patch field the client did not send."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


@dataclass
class ProductPatch:
    """A partial update. A field is applied if and only if it is not UNSET.

    Falsy values are real values here: quantity=0 sets the quantity to zero and
    description="" clears the description.
    """

    name: str | None | _Unset = UNSET
    description: str | None | _Unset = UNSET
    price: float | None | _Unset = UNSET
    quantity: int | None | _Unset = UNSET
    category: str | None | _Unset = UNSET
    status: str | None | _Unset = UNSET

    def present(self) -> dict:
        """Return {field: value} for every field the client sent."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}
