"""
api/routes/v1/products.py -- Product catalog routes.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /products                       -- list all (public)
  POST   /products                       -- create (requires auth)
  GET    /products/search?query=         -- name/description substring search (public)
  GET    /products/category/{category}   -- filter by category (public)
  GET    /products/{product_id}          -- detail (public)
  PUT    /products/{product_id}          -- partial update (owner or admin)
  DELETE /products/{product_id}          -- delete (owner or admin)

The ownership-or-admin rule is enforced in ProductService, not here; the
handlers only require that a caller is authenticated for mutations.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import (
    MessageResponse,
    ProductCreate,
    ProductEnvelope,
    ProductListResponse,
    ProductMutationResponse,
    ProductResponse,
    ProductUpdate,
)
from auth.dependencies import get_current_identity
from auth.models import Identity
from catalog.models import Product
from catalog.service import ProductService

router = APIRouter()


def _service(request: Request) -> ProductService:
    return request.app.state.products


def _render_one(service: ProductService, product: Product) -> ProductResponse:
    return ProductResponse.from_product(product, service.creators_for([product]))


def _render_many(service: ProductService, products: list[Product]) -> ProductListResponse:
    creators = service.creators_for(products)
    return ProductListResponse(products=[ProductResponse.from_product(p, creators) for p in products])


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


@router.get("/products", response_model=ProductListResponse)
def list_products(request: Request) -> ProductListResponse:
    """Return every product, newest first."""
    service = _service(request)
    return _render_many(service, service.list_all())


@router.post("/products", response_model=ProductMutationResponse, status_code=201)
def create_product(
    request: Request,
    body: ProductCreate,
    caller: Identity = Depends(get_current_identity),
) -> ProductMutationResponse:
    """Create a product owned by the caller."""
    service = _service(request)
    product = service.create(
        caller,
        name=body.name,
        price=body.price,
        description=body.description,
        quantity=body.quantity,
        category=body.category,
        status=body.status,
    )
    return ProductMutationResponse(message="Product created successfully", product=_render_one(service, product))


# ---------------------------------------------------------------------------
# Filters (must be before /products/{product_id})
# ---------------------------------------------------------------------------


@router.get("/products/search", response_model=ProductListResponse)
def search_products(request: Request, query: str | None = None) -> ProductListResponse:
    """Case-insensitive substring search over name and description."""
    service = _service(request)
    return _render_many(service, service.search(query))


@router.get("/products/category/{category}", response_model=ProductListResponse)
def products_by_category(request: Request, category: str) -> ProductListResponse:
    service = _service(request)
    return _render_many(service, service.list_by_category(category))


# ---------------------------------------------------------------------------
# Single product
# ---------------------------------------------------------------------------


@router.get("/products/{product_id}", response_model=ProductEnvelope)
def get_product(request: Request, product_id: int) -> ProductEnvelope:
    service = _service(request)
    return ProductEnvelope(product=_render_one(service, service.get(product_id)))


@router.put("/products/{product_id}", response_model=ProductMutationResponse)
def update_product(
    request: Request,
    product_id: int,
    body: ProductUpdate,
    caller: Identity = Depends(get_current_identity),
) -> ProductMutationResponse:
    """Apply only the fields present in the body. Owner or admin."""
    service = _service(request)
    product = service.update(product_id, body.to_patch(), caller)
    return ProductMutationResponse(message="Product updated successfully", product=_render_one(service, product))


@router.delete("/products/{product_id}", response_model=MessageResponse)
def delete_product(
    request: Request,
    product_id: int,
    caller: Identity = Depends(get_current_identity),
) -> MessageResponse:
    """Delete a product. Owner or admin."""
    _service(request).delete(product_id, caller)
    return MessageResponse(message="Product deleted successfully")
