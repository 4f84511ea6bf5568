"""Boundary validation rules shared by request schemas."""

from __future__ import annotations

import re

from userdeck.core.auth import MAX_PASSWORD_BYTES, password_too_long

NAME_PATTERN = r"^[\w\s'.\-]+$"
USERNAME_PATTERN = r"^[a-z0-9]+(?:[.\-][a-z0-9]+)*$"

_PASSWORD_LOWER = re.compile(r"[a-z]")
_PASSWORD_UPPER = re.compile(r"[A-Z]")
_PASSWORD_DIGIT_OR_SYMBOL = re.compile(r"[\d\W]")


def check_password_strength(value: str) -> str:
    if password_too_long(value):
        raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    if not (
        _PASSWORD_LOWER.search(value)
        and _PASSWORD_UPPER.search(value)
        and _PASSWORD_DIGIT_OR_SYMBOL.search(value)
    ):
        raise ValueError(
            "Password requires a lowercase letter, an uppercase letter, "
            "and a number or symbol"
        )
    return value
