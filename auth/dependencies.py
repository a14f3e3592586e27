"""
auth/dependencies.py -- FastAPI Depends() helpers: the access-control gate.

Two checks, composable per route or per router:
  get_current_identity() -- authentication. Requires an
      "Authorization: Bearer <token>" header, verifies it, and attaches the
      decoded Identity to request.state.identity.
  require_roles(*roles)   -- authorization. Declares get_current_identity as
      its own dependency, so FastAPI always resolves authentication first; a
      role check can never see an unauthenticated request.

require_admin is require_roles(Role.admin), the only role gate the API uses
today.

Failures raise core.errors.AuthError / ForbiddenError; api/main.py maps them
to 401 / 403.

Layer rule: no imports from api/ or catalog/. fastapi is allowed here because
this module is part of the dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, Request

from auth.models import Identity, Role
from auth.tokens import decode_access_token
from core.errors import AuthError, ForbiddenError


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_identity(request: Request) -> Identity:
    """Require a valid bearer token. Raises AuthError (401) otherwise.

    Use as a FastAPI dependency:
        @router.post("/products")
        def route(identity: Identity = Depends(get_current_identity)): ...
    """
    if not request.headers.get("Authorization"):
        raise AuthError("No token provided")
    token = _bearer_token(request)
    if token is None:
        raise AuthError("Invalid or expired token")
    identity = decode_access_token(request.app.state.settings, token)
    request.state.identity = identity
    return identity


def require_roles(*roles: Role) -> Callable[..., Identity]:
    """Build a dependency that admits only callers whose role is in roles.

    Raises ForbiddenError (403) for authenticated callers outside the set.
    """
    allowed = frozenset(Role(r) for r in roles)
    if not allowed:
        raise ValueError("require_roles() needs at least one role")

    def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in allowed:
            raise ForbiddenError("Access denied")
        return identity

    return dependency


require_admin = require_roles(Role.admin)
