"""
catalog/service.py -- Product use cases and the ownership-or-admin rule.

ProductService validates input, enforces who may change what, and delegates
storage to ProductStore. It raises core.errors.AppError subclasses only; the
HTTP status mapping lives in api/main.py.

Ownership-or-admin rule:
  A product may be updated or deleted by the user who created it or by any
  caller with Role.admin. The rule is checked after the existence check, so a
  missing product is always 404, never 403.

Validation:
  _clean_fields() is shared by create() and update(). On create, missing
  optional fields fall back to their defaults; on update only the fields the
  client sent are validated and applied (see ProductPatch).
"""

from __future__ import annotations

import logging
import math
from numbers import Real

from auth.models import Identity, User
from auth.store import UserStore
from catalog.models import Category, Product, ProductPatch, ProductStatus
from catalog.store import ProductStore
from core.errors import ForbiddenError, NotFoundError, ValidationError
from core.validation import is_blank, sanitize_input

logger = logging.getLogger("marketplace.catalog")

NAME_MIN = 3
NAME_MAX = 100
DESCRIPTION_MAX = 500


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def _clean_fields(fields: dict) -> dict:
    """Validate and normalize the given product fields. Raises ValidationError.

    Only keys present in fields are checked, so the same function serves full
    creation and partial updates.
    """
    cleaned: dict = {}

    if "name" in fields:
        if is_blank(fields["name"]):
            raise ValidationError("Product name is required")
        name = sanitize_input(str(fields["name"]))
        if not NAME_MIN <= len(name) <= NAME_MAX:
            raise ValidationError(f"Product name must be between {NAME_MIN} and {NAME_MAX} characters")
        cleaned["name"] = name

    if "description" in fields:
        description = sanitize_input(str(fields["description"] or ""))
        if len(description) > DESCRIPTION_MAX:
            raise ValidationError(f"Description cannot exceed {DESCRIPTION_MAX} characters")
        cleaned["description"] = description

    if "price" in fields:
        price = fields["price"]
        if price is None:
            raise ValidationError("Price is required")
        if not _is_number(price):
            raise ValidationError("Price must be a number")
        if price < 0:
            raise ValidationError("Price cannot be negative")
        cleaned["price"] = float(price)

    if "quantity" in fields:
        quantity = fields["quantity"]
        if quantity is None or isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError("Quantity must be a whole number")
        if quantity < 0:
            raise ValidationError("Quantity cannot be negative")
        cleaned["quantity"] = quantity

    if "category" in fields:
        try:
            cleaned["category"] = Category(fields["category"])
        except ValueError as exc:
            raise ValidationError("Invalid category") from exc

    if "status" in fields:
        try:
            cleaned["status"] = ProductStatus(fields["status"])
        except ValueError as exc:
            raise ValidationError("Invalid status") from exc

    return cleaned


class ProductService:
    def __init__(self, products: ProductStore, users: UserStore) -> None:
        self.products = products
        self.users = users

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create(
        self,
        caller: Identity,
        name: str | None,
        price: float | None,
        description: str | None = None,
        quantity: int | None = None,
        category: str | None = None,
        status: str | None = None,
    ) -> Product:
        """Persist a new product owned by the caller."""
        if is_blank(name):
            raise ValidationError("Product name is required")
        if price is None:
            raise ValidationError("Price is required")

        fields = {"name": name, "price": price, "description": description}
        if quantity is not None:
            fields["quantity"] = quantity
        if category is not None:
            fields["category"] = category
        if status is not None:
            fields["status"] = status
        cleaned = _clean_fields(fields)

        if self.users.get_by_id(caller.user_id) is None:
            # Token outlived its account; the creator reference must resolve.
            raise NotFoundError("User not found")

        product_id = self.products.create_product(Product(created_by=caller.user_id, **cleaned))
        logger.info("Product id=%d created by user id=%d", product_id, caller.user_id)
        return self.products.get_product(product_id)

    def update(self, product_id: int, patch: ProductPatch, caller: Identity) -> Product:
        """Apply the fields present in patch. Ownership-or-admin."""
        product = self._get_owned(product_id, caller)
        changes = _clean_fields(patch.present())
        if changes:
            self.products.update_product(product.id, changes)
            logger.info("Product id=%d updated by user id=%d (%s)", product.id, caller.user_id, ", ".join(changes))
        return self.products.get_product(product.id)

    def delete(self, product_id: int, caller: Identity) -> None:
        """Remove a product. Ownership-or-admin."""
        product = self._get_owned(product_id, caller)
        self.products.delete_product(product.id)
        logger.info("Product id=%d deleted by user id=%d", product.id, caller.user_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, product_id: int) -> Product:
        product = self.products.get_product(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        return product

    def list_all(self) -> list[Product]:
        return self.products.list_products()

    def list_by_category(self, category: str) -> list[Product]:
        try:
            return self.products.list_by_category(Category(category))
        except ValueError as exc:
            raise ValidationError("Invalid category") from exc

    def search(self, query: str | None) -> list[Product]:
        if is_blank(query):
            raise ValidationError("Search query is required")
        return self.products.search(query.strip())

    def creators_for(self, products: list[Product]) -> dict[int, User]:
        """Resolve the creators of products in one query. Deleted creators are absent."""
        return self.users.get_many({p.created_by for p in products})

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_owned(self, product_id: int, caller: Identity) -> Product:
        product = self.get(product_id)
        if product.created_by != caller.user_id and not caller.is_admin:
            raise ForbiddenError("Access denied")
        return product
