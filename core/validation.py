"""
core/validation.py -- Input normalization helpers shared by auth/ and catalog/.

Kept free of framework imports so the services can validate input the same way
whether they are called from a route handler or the CLI.
"""

import re

# Deliberately permissive: one "@", no whitespace, a dot in the domain part.
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Angle brackets are stripped from free-text fields so stored names and
# descriptions cannot carry markup into the dashboards that render them.
_MARKUP_RE = re.compile(r"[<>]")


def normalize_email(email: str) -> str:
    """Return the canonical login key for an email address (trimmed, lower-cased)."""
    return email.strip().lower()


def validate_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email.strip()))


# bcrypt refuses (5.x) or silently truncates (4.x) input past this many bytes.
PASSWORD_MAX_BYTES = 72


def validate_password(password: str, min_length: int = 6) -> bool:
    return len(password) >= min_length


def password_fits_hash(password: str) -> bool:
    """True if the UTF-8 encoding is short enough for bcrypt to hash in full."""
    return len(password.encode("utf-8")) <= PASSWORD_MAX_BYTES


def sanitize_input(value: str) -> str:
    """Trim whitespace and drop angle brackets from user-supplied text."""
    return _MARKUP_RE.sub("", value).strip()


def is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()
