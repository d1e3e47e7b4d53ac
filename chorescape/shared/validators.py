"""Shared validation utilities"""

import re
from typing import Optional

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a North American phone number to E.164 format.

    Args:
        phone: Phone number string in various formats

    Returns:
        Normalized phone number in E.164 format (+1XXXXXXXXXX)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    # Remove all non-digit characters
    digits = re.sub(r"\D", "", phone)

    # Handle +1 prefix
    if digits.startswith("1") and len(digits) == 11:
        digits = digits[1:]

    if len(digits) != 10:
        raise ValueError("Phone number must be 10 digits")

    return f"+1{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Stripped, lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")

    return email


def validate_slug(slug: Optional[str]) -> Optional[str]:
    """Slugs are lowercase letters, numbers and hyphens only"""
    if slug is None:
        return slug

    slug = slug.strip()
    if not SLUG_PATTERN.match(slug):
        raise ValueError("Slug must contain only lowercase letters, numbers, and hyphens")

    return slug


def require_text(value: Optional[str], field: str = "Value") -> str:
    """Reject None and whitespace-only strings, return the stripped value"""
    if value is None or not str(value).strip():
        raise ValueError(f"{field} is required")
    return str(value).strip()
