"""
Input rules shared by the account flows.
"""

import re
from typing import Optional

from storefront_auth.app.services.passwords import MAX_PASSWORD_BYTES
from storefront_auth.libs.result import Error, Result, Return

NAME_PATTERN = re.compile(r"^[a-zA-Z\s]+$")

MIN_PASSWORD_LENGTH = 6


def _invalid(message: str) -> Result:
    return Return.err(Error("VALIDATION_ERROR", message))


def validate_name(name: Optional[str]) -> Result[str]:
    name = (name or "").strip()
    if len(name) < 2:
        return _invalid("Name must be at least 2 characters long")
    if len(name) > 50:
        return _invalid("Name must be less than 50 characters")
    if not NAME_PATTERN.match(name):
        return _invalid("Name can only contain letters and spaces")
    return Return.ok(name)


def validate_password(password: Optional[str]) -> Result[str]:
    password = password or ""
    if len(password) < MIN_PASSWORD_LENGTH:
        return _invalid("Password must be at least 6 characters long")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return _invalid("Password must be at most 72 bytes long")
    return Return.ok(password)
