"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach in
catalog/models.py -- dataclasses own domain shape; stores and services do the
work.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Closed set of account roles. The access gate checks against this enum only."""

    user = "user"
    admin = "admin"


@dataclass
class User:
    """A registered account.

    email is always stored normalized (trimmed, lower-cased) -- it is the login
    key and the uniqueness key. hashed_password is a bcrypt hash and must never
    leave the service layer; public_view() is what callers get to see.

    id is None before the record is written to the database.
    """

    name: str
    email: str
    hashed_password: str
    role: Role = Role.user
    id: int | None = None
    created_at: str = ""  # ISO 8601, set by store on insert

    def public_view(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class Identity:
    """The caller identity decoded from a verified bearer token.

    Attached to request.state by the access gate. Carries only what the token
    carries -- no database lookup is implied.
    """

    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.admin
