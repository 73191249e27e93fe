"""
Validation utilities for request payloads.

Mutation endpoints validate strictly and raise HTTPException(400); listing filters
use the lenient parsers in ``services.job_filters`` instead.
"""
import re
from typing import Any
from fastapi import HTTPException

from ..models.application import APPLICATION_STATUSES
from ..models.user import USER_ROLES


def validate_email(email: str) -> str:
    """Validate email format."""
    if not email or not isinstance(email, str):
        raise HTTPException(status_code=400, detail="Email is required")

    email = email.strip().lower()
    if len(email) > 255:
        raise HTTPException(status_code=400, detail="Email too long (max 255 characters)")

    # Basic email regex
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    if not re.match(pattern, email):
        raise HTTPException(status_code=400, detail="Invalid email format")

    return email


def validate_password(password: str) -> None:
    """Validate password strength."""
    if not password or not isinstance(password, str):
        raise HTTPException(status_code=400, detail="Password is required")

    if len(password) < 6:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters")

    if len(password) > 128:
        raise HTTPException(status_code=400, detail="Password too long (max 128 characters)")


def validate_string_field(
    value: Any,
    field_name: str,
    min_length: int = 1,
    max_length: int = 1000,
    required: bool = True,
) -> str | None:
    """Validate a string field with common rules."""
    if value is None:
        if required:
            raise HTTPException(status_code=400, detail=f"{field_name} is required")
        return None

    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{field_name} must be a string")

    value = value.strip()

    if not value:
        if required:
            raise HTTPException(status_code=400, detail=f"{field_name} cannot be empty")
        return None

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

    if isinstance(value, bool) or not isinstance(value, int):
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


def validate_id_list(values: Any, field_name: str) -> list[int]:
    """Validate a list of positive integer ids, dropping duplicates but keeping order."""
    if not isinstance(values, list):
        raise HTTPException(status_code=400, detail=f"{field_name} must be a list")

    out: list[int] = []
    for v in values:
        i = validate_integer_field(v, field_name, min_value=1)
        if i not in out:
            out.append(i)
    return out


def validate_role(role: str | None) -> str:
    """Validate user role; registration defaults to candidate."""
    if role is None:
        return "candidate"
    if not isinstance(role, str):
        raise HTTPException(status_code=400, detail="Role must be a string")

    role = role.strip().lower()
    if role not in USER_ROLES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid role. Must be one of: {', '.join(USER_ROLES)}"
        )

    return role


def validate_application_status(status: Any) -> str:
    if not isinstance(status, str) or status.strip().lower() not in APPLICATION_STATUSES:
        raise HTTPException(
            status_code=400,
            detail="Invalid status. Must be pending, accepted, or rejected"
        )
    return status.strip().lower()


def sanitize_filename(filename: str) -> str:
    """Sanitize filename to prevent directory traversal and other attacks."""
    if not filename:
        raise HTTPException(status_code=400, detail="Filename is required")

    # Remove any path separators
    filename = filename.replace("/", "_").replace("\\", "_")

    # Remove any null bytes
    filename = filename.replace("\x00", "")

    # Remove directory traversal sequences
    filename = filename.replace("..", "_")

    # Remove leading dots to prevent hidden files
    filename = filename.lstrip(".")

    if len(filename) > 255:
        raise HTTPException(status_code=400, detail="Filename too long")

    if not filename or filename == "_":
        raise HTTPException(status_code=400, detail="Invalid filename")

    return filename
