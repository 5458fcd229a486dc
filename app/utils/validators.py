"""Validators."""

import re
from typing import Optional

from app.utils.constants import PHONE_NUMBER_PATTERN

MIN_PASSWORD_LENGTH = 4


def validate_phone(phone: str) -> bool:
    """Phone numbers are exactly ten ASCII digits, no separators."""
    return bool(re.fullmatch(PHONE_NUMBER_PATTERN, phone or ""))


def validate_password_length(password: Optional[str]) -> bool:
    return bool(password) and len(password) >= MIN_PASSWORD_LENGTH


def strip_to_none(value: Optional[str]) -> Optional[str]:
    """Trim a string; blank strings become None."""
    if value is None:
        return None
    value = value.strip()
    return value or None
