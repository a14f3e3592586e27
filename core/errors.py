"""
core/errors.py -- Application error taxonomy.

Domain code (auth/, catalog/) raises these; api/main.py owns the single
mapping from error kind to HTTP status and response body. Every message here
is client-safe. Storage and library errors are never wrapped into an AppError
with their raw text -- they surface as the generic 500 instead.
"""


class AppError(Exception):
    """Base class for errors that carry an HTTP status and a client-safe message."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class AuthError(AppError):
    status_code = 401
    default_message = "Invalid or expired token"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    # Duplicate registration is reported as a client error, not 409.
    status_code = 400
    default_message = "User already exists"


class InternalError(AppError):
    status_code = 500
    default_message = "Internal server error"
