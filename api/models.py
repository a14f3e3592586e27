"""
API request and response models for the marketplace REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are kept
separate from the dataclasses in auth/models.py and catalog/models.py, which
own the internal domain representation. Route handlers map between the two.

Wire format: JSON keys are camelCase (confirmPassword, createdBy, createdAt).
_ApiModel sets a to_camel alias generator; populate_by_name lets Python code
construct models with snake_case names.

Request models are deliberately loose about presence (every field Optional):
the services own the rules and produce the exact validation messages clients
see. Type errors (a string where a number belongs) are still caught here and
reported as 400 by the RequestValidationError handler in api/main.py.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from auth.models import User
from catalog.models import Product, ProductPatch


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Auth -- requests
# ---------------------------------------------------------------------------


class RegisterRequest(_ApiModel):
    """Request body for POST /api/v1/auth/register."""

    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=128)
    confirm_password: Optional[str] = Field(default=None, max_length=128)


class LoginRequest(_ApiModel):
    """Request body for POST /api/v1/auth/login."""

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=128)


class RoleUpdateRequest(_ApiModel):
    """Request body for PUT /api/v1/auth/users/{userId}/role."""

    role: Optional[str] = None


# ---------------------------------------------------------------------------
# Auth -- responses
# ---------------------------------------------------------------------------


class UserPublic(_ApiModel):
    """The public view of an account. Never carries the password hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    role: str
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(**user.public_view())


class AuthResponse(_ApiModel):
    """Response for register and login: a fresh bearer token plus the account."""

    model_config = ConfigDict(frozen=True)

    message: str
    token: str
    user: UserPublic


class MeResponse(_ApiModel):
    model_config = ConfigDict(frozen=True)

    user: UserPublic


class UserListResponse(_ApiModel):
    model_config = ConfigDict(frozen=True)

    users: list[UserPublic]


class RoleUpdateResponse(_ApiModel):
    model_config = ConfigDict(frozen=True)

    message: str
    user: UserPublic


class UserStatsResponse(_ApiModel):
    """Response for GET /api/v1/auth/stats."""

    model_config = ConfigDict(frozen=True)

    total_users: int
    admin_users: int
    regular_users: int
    stats: dict[str, int]


# ---------------------------------------------------------------------------
# Products -- requests
# ---------------------------------------------------------------------------


class ProductCreate(_ApiModel):
    """Request body for POST /api/v1/products."""

    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    quantity: Optional[int] = None
    category: Optional[str] = None
    status: Optional[str] = None


class ProductUpdate(ProductCreate):
    """Request body for PUT /api/v1/products/{id}.

    Same fields as ProductCreate, but what matters is which keys the client
    sent: to_patch() carries exactly model_fields_set into the domain patch,
    so {"quantity": 0} updates quantity and nothing else.
    """

    def to_patch(self) -> ProductPatch:
        return ProductPatch(**{name: getattr(self, name) for name in self.model_fields_set})


# ---------------------------------------------------------------------------
# Products -- responses
# ---------------------------------------------------------------------------


class CreatorInfo(_ApiModel):
    """The creating user, populated on read. Null once that user is deleted."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str


class ProductResponse(_ApiModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str
    price: float
    quantity: int
    category: str
    status: str
    created_by_id: int
    created_by: Optional[CreatorInfo]
    created_at: str
    updated_at: str

    @classmethod
    def from_product(cls, product: Product, creators: dict[int, User]) -> "ProductResponse":
        """Build a ProductResponse, resolving created_by from a pre-fetched creator map."""
        creator = creators.get(product.created_by)
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            quantity=product.quantity,
            category=product.category.value,
            status=product.status.value,
            created_by_id=product.created_by,
            created_by=(
                CreatorInfo(id=creator.id, name=creator.name, email=creator.email) if creator is not None else None
            ),
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class ProductEnvelope(_ApiModel):
    model_config = ConfigDict(frozen=True)

    product: ProductResponse


class ProductListResponse(_ApiModel):
    model_config = ConfigDict(frozen=True)

    products: list[ProductResponse]


class ProductMutationResponse(_ApiModel):
    model_config = ConfigDict(frozen=True)

    message: str
    product: ProductResponse


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class MessageResponse(_ApiModel):
    """Plain acknowledgement and the shape of every error body."""

    model_config = ConfigDict(frozen=True)

    message: str


class HealthResponse(_ApiModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    message: str = "Server is running"
    version: str
