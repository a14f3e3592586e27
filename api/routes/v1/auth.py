"""
api/routes/v1/auth.py -- Authentication and user management REST endpoints.

Routes:
  POST   /api/v1/auth/register            -- create account; returns token + user (201)
  POST   /api/v1/auth/login               -- password login; returns token + user
  GET    /api/v1/auth/me                  -- current account (requires auth)
  GET    /api/v1/auth/users               -- list all accounts (admin only)
  PUT    /api/v1/auth/users/{id}/role     -- change role (admin only)
  DELETE /api/v1/auth/users/{id}          -- delete account (admin only)
  GET    /api/v1/auth/stats               -- account counts (admin only)

Security:
  POST /login and POST /register are rate-limited per client IP.
  login responses carry Cache-Control: no-store so tokens never land in caches.
  IdentityService.login() returns one error for unknown email and wrong
  password; the handler does not add anything that would tell them apart.

Handlers stay thin: they read app.state services, call one method, and map the
domain result to a response model. Errors propagate as core.errors.AppError.
"""

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import limiter, limits_disabled
from api.models import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    RoleUpdateRequest,
    RoleUpdateResponse,
    UserListResponse,
    UserPublic,
    UserStatsResponse,
)
from auth.admin import UserAdmin
from auth.dependencies import get_current_identity, require_admin
from auth.identity import IdentityService
from auth.models import Identity

# Auth policy:
# - POST   /auth/register:           public
# - POST   /auth/login:              public
# - GET    /auth/me:                 requires auth (get_current_identity)
# - GET    /auth/users:              requires admin (require_admin)
# - PUT    /auth/users/{id}/role:    requires admin (require_admin)
# - DELETE /auth/users/{id}:         requires admin (require_admin)
# - GET    /auth/stats:              requires admin (require_admin)
router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
@limiter.limit("20/minute", exempt_when=limits_disabled)
def register(request: Request, response: Response, body: RegisterRequest) -> AuthResponse:
    """Create a regular-user account and sign the caller in."""
    identity: IdentityService = request.app.state.identity
    token, user = identity.register(body.name, body.email, body.password, body.confirm_password)
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse(message="User registered successfully", token=token, user=UserPublic.from_user(user))


# Brute-force mitigation. @router must be outermost so the registered endpoint
# is the limit-checking wrapper.
@router.post("/auth/login", response_model=AuthResponse)
@limiter.limit("10/minute", exempt_when=limits_disabled)
def login(request: Request, response: Response, body: LoginRequest) -> AuthResponse:
    """Authenticate with email and password and return a fresh bearer token."""
    identity: IdentityService = request.app.state.identity
    token, user = identity.login(body.email, body.password)
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse(message="Login successful", token=token, user=UserPublic.from_user(user))


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
def me(request: Request, caller: Identity = Depends(get_current_identity)) -> MeResponse:
    """Return the account behind the bearer token."""
    identity: IdentityService = request.app.state.identity
    return MeResponse(user=UserPublic.from_user(identity.me(caller.user_id)))


# ---------------------------------------------------------------------------
# User management (admin only)
# ---------------------------------------------------------------------------


@router.get("/auth/users", response_model=UserListResponse)
def list_users(request: Request, admin: Identity = Depends(require_admin)) -> UserListResponse:
    """List every account, newest first. Password hashes are never included."""
    user_admin: UserAdmin = request.app.state.user_admin
    return UserListResponse(users=[UserPublic.from_user(u) for u in user_admin.list_users()])


@router.put("/auth/users/{user_id}/role", response_model=RoleUpdateResponse)
def update_user_role(
    request: Request,
    user_id: int,
    body: RoleUpdateRequest,
    admin: Identity = Depends(require_admin),
) -> RoleUpdateResponse:
    """Change an account's role to "user" or "admin".

    Tokens already issued keep the role they were signed with until they expire.
    """
    user_admin: UserAdmin = request.app.state.user_admin
    user = user_admin.change_role(user_id, body.role)
    return RoleUpdateResponse(message="User role updated successfully", user=UserPublic.from_user(user))


@router.delete("/auth/users/{user_id}", response_model=MessageResponse)
def delete_user(request: Request, user_id: int, admin: Identity = Depends(require_admin)) -> MessageResponse:
    """Delete an account. Products it created are kept."""
    user_admin: UserAdmin = request.app.state.user_admin
    user_admin.delete_user(user_id)
    return MessageResponse(message="User deleted successfully")


@router.get("/auth/stats", response_model=UserStatsResponse)
def user_stats(request: Request, admin: Identity = Depends(require_admin)) -> UserStatsResponse:
    """Return total, admin and regular account counts."""
    user_admin: UserAdmin = request.app.state.user_admin
    return UserStatsResponse(**user_admin.stats())
