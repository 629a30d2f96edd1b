from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} cannot exceed {max_len} characters")
    return value


def optional_text(value: Optional[str]) -> Optional[str]:
    """Strip a free-text field, turning blanks into None."""
    return (value or "").strip() or None


def require_decimal(value, field_name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")


def require_positive(value, field_name: str) -> Decimal:
    number = require_decimal(value, field_name)
    if number <= 0:
        raise ValidationError(f"{field_name} must be greater than 0")
    return number


def require_range(value, field_name: str, low, high) -> Decimal:
    number = require_decimal(value, field_name)
    if number < Decimal(str(low)) or number > Decimal(str(high)):
        raise ValidationError(f"{field_name} must be between {low} and {high}")
    return number


def require_email(value: Optional[str], field_name: str = "Email") -> Optional[str]:
    email = optional_text(value)
    if email is None:
        return None
    if not _EMAIL_RE.match(email):
        raise ValidationError(f"{field_name} is not a valid email address")
    return email.lower()


def require_country_codes(values, field_name: str = "Countries") -> tuple[str, ...]:
    """Normalise a list of ISO 3166 alpha-2 codes (uppercased, de-duplicated, order kept)."""
    codes: list[str] = []
    for raw in values or []:
        code = str(raw).strip().upper()
        if len(code) != 2 or not code.isalpha():
            raise ValidationError(f"{field_name} must be 2-letter country codes")
        if code not in codes:
            codes.append(code)
    return tuple(codes)


def normalize_tags(values) -> tuple[str, ...]:
    tags: list[str] = []
    for raw in values or []:
        tag = str(raw).strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tuple(tags)
