"""
auth/admin.py -- Admin-only user management operations.

Every caller of UserAdmin sits behind require_admin; this class does not check
roles itself. It validates input, talks to UserStore and raises AppErrors.
"""

from __future__ import annotations

import logging

from auth.models import Role, User
from auth.store import UserStore
from core.errors import NotFoundError, ValidationError

logger = logging.getLogger("marketplace.auth.admin")


class UserAdmin:
    def __init__(self, store: UserStore) -> None:
        self.store = store

    def list_users(self) -> list[User]:
        return self.store.list_users()

    def change_role(self, user_id: int, role: str | None) -> User:
        """Set a user's role. role must be one of the Role values."""
        try:
            new_role = Role(role)
        except ValueError as exc:
            raise ValidationError("Invalid role") from exc
        if not self.store.update_role(user_id, new_role):
            raise NotFoundError("User not found")
        logger.info("Changed role of user id=%d to %s", user_id, new_role.value)
        return self.store.get_by_id(user_id)

    def delete_user(self, user_id: int) -> None:
        # Products owned by the user are intentionally kept.
        if not self.store.delete_user(user_id):
            raise NotFoundError("User not found")
        logger.info("Deleted user id=%d", user_id)

    def stats(self) -> dict:
        counts = self.store.count_by_role()
        admins = counts[Role.admin]
        regular = counts[Role.user]
        return {
            "total_users": admins + regular,
            "admin_users": admins,
            "regular_users": regular,
            "stats": {Role.admin.value: admins, Role.user.value: regular},
        }
