"""
catalog/store.py -- SQLAlchemy-backed persistence layer for products.

Uses SQLAlchemy Core (not ORM) so the dataclasses in catalog/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper. ProductStore is the repository; _row_to_product
is the mapper. The service layer never touches SQL directly.

Ordering: every list query returns newest first (created_at DESC, id DESC so
rows created within the same timestamp tick still come out deterministically).

Security: all queries use bound parameters. Search terms go through
contains(..., autoescape=True) so "%" and "_" in user input match literally.

Usage:
    store = ProductStore(settings.database_url)
    product_id = store.create_product(product)
    store.update_product(product_id, {"quantity": 0})
    store.search("usb")
    store.close()
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Float, Integer, MetaData, String, Table, Text, func, or_
from sqlalchemy.engine import Engine

from catalog.models import Category, Product, ProductStatus
from core.db import make_engine

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("price", Float, nullable=False),
    Column("quantity", Integer, nullable=False, server_default="0"),
    Column("category", String(20), nullable=False, server_default=Category.other.value),
    Column("status", String(20), nullable=False, server_default=ProductStatus.active.value),
    # Plain integer, no FOREIGN KEY: deleting a user must not cascade or fail.
    Column("created_by", Integer, nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

# Columns a patch may touch. created_by and timestamps are not in this set.
_MUTABLE_COLUMNS = frozenset({"name", "description", "price", "quantity", "category", "status"})


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProductStore:
    """Repository for Product entities."""

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    def _newest_first(self, query):
        return query.order_by(_products.c.created_at.desc(), _products.c.id.desc())

    def create_product(self, product: Product) -> int:
        """Insert a new product and return its assigned ID."""
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _products.insert().values(
                    name=product.name,
                    description=product.description or "",
                    price=product.price,
                    quantity=product.quantity,
                    category=Category(product.category).value,
                    status=ProductStatus(product.status).value,
                    created_by=product.created_by,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_product(self, product_id: int) -> Product | None:
        with self.engine.connect() as conn:
            row = conn.execute(_products.select().where(_products.c.id == product_id)).fetchone()
        return _row_to_product(row) if row is not None else None

    def list_products(self) -> list[Product]:
        with self.engine.connect() as conn:
            rows = conn.execute(self._newest_first(_products.select())).fetchall()
        return [_row_to_product(r) for r in rows]

    def list_by_category(self, category: Category) -> list[Product]:
        with self.engine.connect() as conn:
            rows = conn.execute(
                self._newest_first(_products.select().where(_products.c.category == Category(category).value))
            ).fetchall()
        return [_row_to_product(r) for r in rows]

    def search(self, text: str) -> list[Product]:
        """Case-insensitive substring match against name or description."""
        needle = text.lower()
        with self.engine.connect() as conn:
            rows = conn.execute(
                self._newest_first(
                    _products.select().where(
                        or_(
                            func.lower(_products.c.name).contains(needle, autoescape=True),
                            func.lower(_products.c.description).contains(needle, autoescape=True),
                        )
                    )
                )
            ).fetchall()
        return [_row_to_product(r) for r in rows]

    def update_product(self, product_id: int, changes: dict) -> bool:
        """Apply changes to an existing product and stamp updated_at.

        Only keys in _MUTABLE_COLUMNS are accepted; anything else raises
        ValueError. Returns True if a row was updated, False if not found.
        """
        unknown = set(changes) - _MUTABLE_COLUMNS
        if unknown:
            raise ValueError(f"Unknown product fields: {unknown!r}")
        values = dict(changes)
        for key, enum_cls in (("category", Category), ("status", ProductStatus)):
            if key in values:
                values[key] = enum_cls(values[key]).value
        values["updated_at"] = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_products.update().where(_products.c.id == product_id).values(**values))
            conn.commit()
        return result.rowcount > 0

    def delete_product(self, product_id: int) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_products.delete().where(_products.c.id == product_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_product(row) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        description=row.description or "",
        price=row.price,
        quantity=row.quantity,
        category=Category(row.category),
        status=ProductStatus(row.status),
        created_by=row.created_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
