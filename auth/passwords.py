"""
auth/passwords.py -- One-way password hashing and verification (bcrypt).

bcrypt embeds its own random salt and cost factor in the hash string, so the
stored value is self-describing: verify() needs nothing but the hash and the
candidate password, and raising the cost later only affects new hashes.

Only the first 72 bytes of a password are significant to bcrypt. We pass at
most 72 bytes explicitly (recent bcrypt releases raise instead of truncating)
so hash() never fails on password shape. Length policy lives in
core.validator.validate_password and runs before hashing.

Both methods are CPU-bound by design. Async callers run them in a worker
thread (see auth/service.py).

Layer rule: no imports from api/, account/, or events/.
"""

from __future__ import annotations

import logging

import bcrypt

from core.errors import InternalError
from core.log import get_logger

DEFAULT_ROUNDS = 12
_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_BYTES]


class CredentialHasher:
    def __init__(self, rounds: int = DEFAULT_ROUNDS, logger: logging.Logger | None = None) -> None:
        if rounds < 4 or rounds > 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self.rounds = rounds
        self._logger = logger or get_logger("passwords")

    def hash(self, password: str) -> bytes:
        """Return a salted bcrypt hash of password.

        Raises InternalError only if bcrypt itself fails (entropy or
        computation); password content never causes an error here.
        """
        try:
            return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=self.rounds))
        except (ValueError, TypeError) as exc:
            self._logger.exception("bcrypt failed to hash a password")
            raise InternalError(f"password hashing failed: {exc}") from exc

    def verify(self, password_hash: bytes, password: str) -> bool:
        """Return True only if password produced password_hash.

        A wrong password is a clean False, never an exception. A hash bcrypt
        cannot parse means we cannot decide at all, so that raises
        InternalError; callers must not read it as "wrong password".
        """
        try:
            return bcrypt.checkpw(_encode(password), password_hash)
        except (ValueError, TypeError) as exc:
            self._logger.error("stored password hash could not be verified: %s", exc)
            raise InternalError(f"password verification failed: {exc}") from exc
