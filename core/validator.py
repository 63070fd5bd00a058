"""
core/validator.py -- Field-keyed validation that reports every violation at once.

Usage:
    v = Validator()
    v.check(email != "", "email", "must be provided")
    v.check(matches(email, EMAIL_RX), "email", "must be a valid email address")
    v.raise_if_invalid()      # ValidationError({"email": "must be provided"})

Checks never short-circuit. The first message recorded for a field wins, so
callers order their checks from most to least fundamental.
"""

from __future__ import annotations

import re

from core.errors import ValidationError

EMAIL_RX = re.compile(
    r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*"
)


class Validator:
    def __init__(self) -> None:
        self.errors: dict[str, str] = {}

    @property
    def valid(self) -> bool:
        return not self.errors

    def add_error(self, field: str, message: str) -> None:
        self.errors.setdefault(field, message)

    def check(self, ok: bool, field: str, message: str) -> None:
        if not ok:
            self.add_error(field, message)

    def raise_if_invalid(self) -> None:
        if self.errors:
            raise ValidationError(self.errors)


def matches(value: str, rx: re.Pattern) -> bool:
    return rx.fullmatch(value) is not None


def validate_email(v: Validator, email: str) -> None:
    v.check(email != "", "email", "must be provided")
    v.check(matches(email, EMAIL_RX), "email", "must be a valid email address")


def validate_password(v: Validator, password: str) -> None:
    """Length is measured in UTF-8 bytes: bcrypt only reads the first 72."""
    size = len(password.encode("utf-8"))
    v.check(password != "", "password", "must be provided")
    v.check(size >= 8, "password", "must be at least 8 bytes long")
    v.check(size <= 72, "password", "must not be more than 72 bytes long")
