"""
Validation utilities for input validation and error handling.

The `is_*` / `normalize_*` helpers are pure and used by the ORM models (which
raise ValueError); the `validate_*` helpers are for request handlers and raise
HTTPException(400).
"""
import re
from typing import Any
from urllib.parse import urlparse

from fastapi import HTTPException

from ..enums import Role

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PHONE_PATTERN = re.compile(r"^\+?[0-9\s\-()]{7,20}$")
CATEGORY_NAME_PATTERN = re.compile(r"^[A-Za-z0-9\s-]+$")
PASSWORD_SYMBOL_PATTERN = re.compile(r"[^A-Za-z0-9]")

EMAIL_MIN_LENGTH = 6
EMAIL_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128


def is_valid_email(email: str | None) -> bool:
    if not email or not isinstance(email, str):
        return False
    email = email.strip()
    if len(email) < EMAIL_MIN_LENGTH or len(email) > EMAIL_MAX_LENGTH:
        return False
    return bool(EMAIL_PATTERN.match(email))


def is_valid_phone(phone: str | None) -> bool:
    if not phone or not isinstance(phone, str):
        return False
    phone = phone.strip()
    if not PHONE_PATTERN.match(phone):
        return False
    return sum(ch.isdigit() for ch in phone) >= 7


def is_password_complex(password: str | None) -> bool:
    """At least 8 chars with upper, lower, digit and a symbol."""
    if not password or not isinstance(password, str) or not password.strip():
        return False
    if len(password) < PASSWORD_MIN_LENGTH:
        return False
    if not any(ch.isupper() for ch in password):
        return False
    if not any(ch.islower() for ch in password):
        return False
    if not any(ch.isdigit() for ch in password):
        return False
    return bool(PASSWORD_SYMBOL_PATTERN.search(password))


def _is_http_url(url: str) -> bool:
    if not url or any(ch.isspace() for ch in url):
        return False
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"}:
        return False
    host = parsed.hostname or ""
    labels = host.split(".")
    return len(labels) >= 2 and all(labels)


def normalize_url(url: str | None) -> str | None:
    """
    Normalize a user-supplied website/logo URL.

    Empty -> None, a missing scheme gets `http://`. Raises ValueError if the result
    still isn't an http(s) URL with a dotted host.
    """
    if url is None:
        return None
    url = url.strip()
    if not url:
        return None
    candidate = url if "://" in url else f"http://{url}"
    if not _is_http_url(candidate):
        raise ValueError("Invalid URL format")
    return candidate


def is_absolute_http_url(url: str | None) -> bool:
    if not url or not isinstance(url, str):
        return False
    return _is_http_url(url.strip())


def generate_slug(name: str | None) -> str:
    """'Data Science' -> 'data-science'; empty results fall back to 'category'."""
    slug = re.sub(r"[^a-z0-9]+", "-", (name or "").strip().lower()).strip("-")
    return slug or "category"


def validate_email(email: str) -> str:
    """Validate email format."""
    if not email or not isinstance(email, str):
        raise HTTPException(status_code=400, detail="Email is required")

    email = email.strip().lower()
    if len(email) > EMAIL_MAX_LENGTH:
        raise HTTPException(status_code=400, detail=f"Email too long (max {EMAIL_MAX_LENGTH} characters)")

    if not is_valid_email(email):
        raise HTTPException(status_code=400, detail="Invalid email format")

    return email


def validate_password(password: str) -> None:
    """Validate password strength."""
    if not password or not isinstance(password, str):
        raise HTTPException(status_code=400, detail="Password is required")

    if len(password) > PASSWORD_MAX_LENGTH:
        raise HTTPException(status_code=400, detail=f"Password too long (max {PASSWORD_MAX_LENGTH} characters)")

    if not is_password_complex(password):
        raise HTTPException(status_code=400, detail="Password does not meet complexity requirements")


def validate_string_field(
    value: Any,
    field_name: str,
    min_length: int = 1,
    max_length: int = 1000,
    required: bool = True,
    pattern: str | None = None,
) -> str | None:
    """Validate a string field with common rules."""
    if value is None:
        if required:
            raise HTTPException(status_code=400, detail=f"{field_name} is required")
        return None

    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{field_name} must be a string")

    value = value.strip()

    if required and not value:
        raise HTTPException(status_code=400, detail=f"{field_name} cannot be empty")

    if len(value) < min_length:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must be at least {min_length} characters"
        )

    if len(value) > max_length:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must not exceed {max_length} characters"
        )

    if pattern and not re.match(pattern, value):
        raise HTTPException(status_code=400, detail=f"{field_name} format is invalid")

    return value


def validate_integer_field(
    value: Any,
    field_name: str,
    min_value: int | None = None,
    max_value: int | None = None,
    required: bool = True,
) -> int | None:
    """Validate an integer field."""
    if value is None:
        if required:
            raise HTTPException(status_code=400, detail=f"{field_name} is required")
        return None

    if not isinstance(value, int):
        try:
            value = int(value)
        except (ValueError, TypeError):
            raise HTTPException(status_code=400, detail=f"{field_name} must be a valid integer")

    if min_value is not None and value < min_value:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must be at least {min_value}"
        )

    if max_value is not None and value > max_value:
        raise HTTPException(
            status_code=400,
            detail=f"{field_name} must not exceed {max_value}"
        )

    return value


def validate_role(role: Any) -> Role:
    """Validate user role (accepts 0/1/2 or Admin/Employer/JobSeeker)."""
    if role is None or role == "":
        raise HTTPException(status_code=400, detail="Role is required")
    try:
        return Role.parse(role)
    except ValueError:
        labels = ", ".join(f"{r.label}({int(r)})" for r in Role)
        raise HTTPException(
            status_code=400,
            detail=f"Invalid role. Must be one of: {labels}"
        ) from None
