"""
Validation utilities for input validation and sanitization.
"""
import json
import re
from typing import Any

from fastapi import HTTPException
from pydantic import ValidationError as PydanticValidationError

from ..models.user import ROLES, Experience
from .error_handlers import get_error_message

_TAG_PATTERN = re.compile(r"<[^>]*>")


def sanitize_text(value: Any) -> str:
    """Strip markup and NUL bytes from user-supplied text."""
    if value is None:
        return ""
    text = _TAG_PATTERN.sub("", str(value))
    return text.replace("\x00", "").strip()


def validate_email(email: str) -> str:
    """Validate email format."""
    if not email or not isinstance(email, str):
        raise HTTPException(status_code=400, detail=get_error_message("email_required"))

    email = sanitize_text(email).lower()
    if len(email) > 255:
        raise HTTPException(status_code=400, detail="Email too long (max 255 characters)")

    # Basic email regex
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    if not re.match(pattern, email):
        raise HTTPException(status_code=400, detail="Invalid email format")

    return email


def validate_string_field(
    value: Any,
    field_name: str,
    min_length: int = 1,
    max_length: int = 1000,
    required: bool = True,
    pattern: str | None = None,
) -> str | None:
    """Validate a string field with common rules. Markup is stripped first."""
    if value is None:
        if required:
            raise HTTPException(status_code=400, detail=f"{field_name} is required")
        return None

    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{field_name} must be a string")

    value = sanitize_text(value)

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

    if pattern and not re.match(pattern, value):
        raise HTTPException(status_code=400, detail=f"{field_name} format is invalid")

    return value


def validate_role(role: str) -> str:
    """Validate user role."""
    if not role or not isinstance(role, str):
        raise HTTPException(status_code=400, detail="Role is required")

    role = role.strip().lower()
    if role not in ROLES:
        raise HTTPException(status_code=400, detail=get_error_message("invalid_role"))

    return role


def parse_experiences(raw: Any) -> list[Experience]:
    """
    Parse an employee's experiences.

    Accepts a JSON string (multipart forms) or an already decoded list of
    {company, position, years} objects.
    """
    if raw is None or raw == "":
        return []

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail=get_error_message("invalid_experiences"))

    if not isinstance(raw, list):
        raise HTTPException(status_code=400, detail=get_error_message("invalid_experiences"))

    experiences = []
    for item in raw:
        if not isinstance(item, dict):
            raise HTTPException(status_code=400, detail=get_error_message("invalid_experiences"))
        try:
            exp = Experience.model_validate(item)
        except PydanticValidationError:
            raise HTTPException(status_code=400, detail=get_error_message("invalid_experiences"))
        exp.company = sanitize_text(exp.company)
        exp.position = sanitize_text(exp.position)
        experiences.append(exp)
    return experiences


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

    # Ensure it's not too long
    if len(filename) > 255:
        raise HTTPException(status_code=400, detail="Filename too long")

    # Ensure it has some content
    if not filename or filename == "_":
        raise HTTPException(status_code=400, detail="Invalid filename")

    return filename
