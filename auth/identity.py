"""
auth/identity.py -- Registration, login and session issuance.

IdentityService is the only writer of new credential records. Route handlers
call it with raw request values; every rule about what a valid registration or
login looks like lives here, not in the request models, so the CLI gets the
same behaviour as the HTTP API.

Enumeration resistance: login() reports the same AuthError for an unknown
email and for a wrong password, and runs bcrypt in both cases.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.models import Role, User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password, verify_password_or_dummy
from core.config import Settings
from core.errors import AuthError, ConflictError, NotFoundError, ValidationError
from core.validation import (
    PASSWORD_MAX_BYTES,
    is_blank,
    normalize_email,
    password_fits_hash,
    sanitize_input,
    validate_email,
    validate_password,
)

logger = logging.getLogger("marketplace.auth.identity")

_INVALID_CREDENTIALS = "Invalid credentials"
_PASSWORD_TOO_LONG = f"Password cannot exceed {PASSWORD_MAX_BYTES} bytes"


class IdentityService:
    def __init__(self, store: UserStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    def register(
        self,
        name: str | None,
        email: str | None,
        password: str | None,
        confirm_password: str | None,
        role: Role = Role.user,
    ) -> tuple[str, User]:
        """Create an account and return (token, user).

        Checks run in a fixed order and the first failure wins: presence,
        email format, minimum password length, the bcrypt byte limit,
        confirmation match, uniqueness.
        """
        # Passwords are taken as typed, so an all-space password is present and
        # falls through to the length check.
        if is_blank(name) or is_blank(email) or not password or not confirm_password:
            raise ValidationError("All fields are required")
        if not validate_email(email):
            raise ValidationError("Invalid email format")
        min_length = self.settings.password_min_length
        if not validate_password(password, min_length):
            raise ValidationError(f"Password must be at least {min_length} characters")
        if not password_fits_hash(password):
            raise ValidationError(_PASSWORD_TOO_LONG)
        if password != confirm_password:
            raise ValidationError("Passwords do not match")

        clean_name = sanitize_input(name)
        if not 2 <= len(clean_name) <= 50:
            raise ValidationError("Name must be between 2 and 50 characters")

        normalized = normalize_email(email)
        if self.store.get_by_email(normalized) is not None:
            raise ConflictError("User already exists")

        user = User(
            name=clean_name,
            email=normalized,
            hashed_password=hash_password(password),
            role=role,
        )
        try:
            user_id = self.store.create_user(user)
        except IntegrityError as exc:
            # Lost a race with a concurrent registration for the same address.
            raise ConflictError("User already exists") from exc

        created = self.store.get_by_id(user_id)
        logger.info("Registered user id=%d role=%s", user_id, created.role.value)
        return create_access_token(self.settings, created.id, created.role), created

    def login(self, email: str | None, password: str | None) -> tuple[str, User]:
        """Verify credentials and return (token, user)."""
        if is_blank(email) or not password:
            raise ValidationError("Email and password are required")

        user = self.store.get_by_email(normalize_email(email))
        hashed = user.hashed_password if user is not None else None
        if not verify_password_or_dummy(password, hashed):
            logger.info("Failed login attempt")
            raise AuthError(_INVALID_CREDENTIALS)

        return create_access_token(self.settings, user.id, user.role), user

    def me(self, user_id: int) -> User:
        """Return the account behind a verified token.

        The token can outlive the account (admin deletion), hence NotFoundError.
        """
        user = self.store.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def ensure_admin(self, name: str, email: str, password: str) -> User:
        """Create an admin account, or reset an existing one to admin with a fresh hash.

        Used by the bootstrap CLI. Applies the same email and password rules as
        register().
        """
        if is_blank(name) or is_blank(email) or not password:
            raise ValidationError("All fields are required")
        if not validate_email(email):
            raise ValidationError("Invalid email format")
        if not validate_password(password, self.settings.password_min_length):
            raise ValidationError(f"Password must be at least {self.settings.password_min_length} characters")
        if not password_fits_hash(password):
            raise ValidationError(_PASSWORD_TOO_LONG)

        normalized = normalize_email(email)
        existing = self.store.get_by_email(normalized)
        if existing is not None:
            self.store.update_password(existing.id, hash_password(password))
            self.store.update_role(existing.id, Role.admin)
            logger.info("Reset admin account id=%d", existing.id)
            return self.store.get_by_id(existing.id)

        user_id = self.store.create_user(
            User(
                name=sanitize_input(name),
                email=normalized,
                hashed_password=hash_password(password),
                role=Role.admin,
            )
        )
        logger.info("Created admin account id=%d", user_id)
        return self.store.get_by_id(user_id)
