"""Normalization helpers for form input and directory records."""

from __future__ import annotations

import re

_NON_DIGITS = re.compile(r"[^0-9]")


def phone_digits(value: str | None) -> str:
    """Strip every non-digit character from a phone number.

    Country-code prefixes are not canonicalized: "+92 300" and "0300" keep
    their different leading digits.

    >>> phone_digits("+92 (300) 123-4567")
    '923001234567'
    """
    if not value:
        return ""
    return _NON_DIGITS.sub("", value)


def normalize_name(value: str | None) -> str:
    """Trim and lower-case a name for substring comparison."""
    if not value:
        return ""
    return value.strip().lower()


def is_placeholder_phone(value: str | None, placeholder: str) -> bool:
    """True when the phone field is empty or holds only the prefilled prefix."""
    stripped = (value or "").strip()
    return not stripped or stripped == placeholder


def is_trivial_input(name: str | None, phone: str | None, placeholder: str) -> bool:
    """True when neither field carries anything worth searching for."""
    return not (name or "").strip() and is_placeholder_phone(phone, placeholder)


def apply_phone_prefix(value: str | None, placeholder: str) -> str:
    """Reset a phone value that lost the prefilled prefix back to the prefix.

    >>> apply_phone_prefix("0300", "+92")
    '+92'
    >>> apply_phone_prefix("+92300", "+92")
    '+92300'
    """
    if value and value.startswith(placeholder):
        return value
    return placeholder
