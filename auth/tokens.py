"""
auth/tokens.py -- JWT and password hashing utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with Settings.secret_key and
       carry user_id, role and expiry. decode_access_token() raises AuthError
       on any failure -- bad signature, expiry, missing claims or an unknown
       role -- so the access gate has a single failure path.

  Passwords: bcrypt used directly. Each hash embeds its own random salt
       (bcrypt.gensalt()). The _DUMMY_HASH constant lets the identity service
       run a full bcrypt comparison even for unknown emails, so response time
       does not reveal whether an account exists.

  Settings are passed in explicitly by the caller; this module holds no
  configuration state of its own.

Layer rule: no imports from api/ or catalog/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from auth.models import Identity, Role
from core.config import Settings
from core.errors import AuthError

logger = logging.getLogger("marketplace.auth")

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Callers must check core.validation.password_fits_hash() first: bcrypt
    5.x raises ValueError for input longer than 72 bytes.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long input -- treat as a mismatch.
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than later ones.
_DUMMY_HASH: str = hash_password("marketplace_timing_dummy")


def verify_password_or_dummy(plain: str, hashed: str | None) -> bool:
    """Run bcrypt whether or not there is a real hash to compare against.

    Returns False when hashed is None, after spending the same work factor as
    a real comparison.
    """
    if hashed is None:
        verify_password(plain, _DUMMY_HASH)
        return False
    return verify_password(plain, hashed)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(settings: Settings, user_id: int, role: Role, expire_seconds: int = 0) -> str:
    """Encode a signed JWT carrying the user's id and role.

    Args:
        settings:       Application settings (signing key, default lifetime).
        user_id:        Numeric user ID stored in the DB.
        role:           The account role at issue time.
        expire_seconds: Token lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else settings.token_expire_seconds
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "user_id": user_id,
        "role": Role(role).value,
        "iat": now,
        "exp": now + timedelta(seconds=duration),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(settings: Settings, token: str) -> Identity:
    """Verify a JWT and return the Identity it carries.

    python-jose checks the signature and the exp claim. Raises AuthError on
    any failure; the message is the same for every cause.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError as exc:
        logger.debug("Token rejected: %s", exc)
        raise AuthError("Invalid or expired token") from exc

    user_id = payload.get("user_id")
    role = payload.get("role")
    if not isinstance(user_id, int) or role is None:
        raise AuthError("Invalid or expired token")
    try:
        return Identity(user_id=user_id, role=Role(role))
    except ValueError as exc:
        raise AuthError("Invalid or expired token") from exc
