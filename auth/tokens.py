"""
auth/tokens.py -- Opaque bearer token issuance, hashing, and shape checks.

Security design decisions:
  Entropy: 16 bytes from the OS CSPRNG (secrets.token_bytes -> os.urandom),
       128 bits of entropy per token.
       If the OS source fails we raise RandomSourceError. There is no fallback
       to `random` or any other weaker generator.

  Encoding: unpadded RFC 4648 base-32 of the 16 bytes is exactly 26 chars of
       [A-Z2-7], safe in headers and URLs without escaping.

  Storage key: SHA-256(plaintext). A plain digest (not bcrypt, not HMAC) is
       enough here: the input already has 128 bits of entropy, so there is
       nothing for a slow hash to protect, and the lookup must be O(1). A
       leaked store gives an attacker digests, not usable tokens.

Layer rule: no imports from api/, account/, or events/.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from auth.models import SCOPE_AUTHENTICATION, Token
from core.errors import RandomSourceError
from core.log import get_logger
from core.validator import Validator

TOKEN_BYTES = 16
TOKEN_LENGTH = 26  # len(b32encode(16 bytes)) with the "======" padding stripped


def hash_plaintext(plaintext: str) -> bytes:
    """Return the raw SHA-256 digest used as the session store key."""
    return hashlib.sha256(plaintext.encode("utf-8")).digest()


def validate_token_shape(plaintext: str) -> Validator:
    """Check a client-supplied token before any store or network work.

    Both checks always run; the returned Validator holds every violation
    under the "token" key (first message wins). Callers decide whether to
    raise (v.raise_if_invalid()) or map to their own error.
    """
    v = Validator()
    v.check(plaintext != "", "token", "must be provided")
    v.check(len(plaintext) == TOKEN_LENGTH, "token", f"must be exactly {TOKEN_LENGTH} characters long")
    return v


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """Mints Token values. Stateless apart from its injected collaborators.

    Usage:
        issuer = TokenIssuer()
        token = issuer.generate_token(user_id=7, ttl=timedelta(minutes=60))
        token.plaintext   # give to the client, once
        token.hash        # key for SessionStore
    """

    def __init__(
        self,
        random_source: Callable[[int], bytes] = secrets.token_bytes,
        clock: Callable[[], datetime] = _utcnow,
        logger: logging.Logger | None = None,
    ) -> None:
        self._random = random_source
        self._clock = clock
        self._logger = logger or get_logger("tokens")

    def generate_token(self, user_id: int, ttl: timedelta, scope: str = SCOPE_AUTHENTICATION) -> Token:
        """Issue a new token for user_id expiring ttl from now.

        Raises RandomSourceError if the CSPRNG is unavailable or returns a
        short read.
        """
        try:
            raw = self._random(TOKEN_BYTES)
        except (OSError, NotImplementedError) as exc:
            self._logger.error("CSPRNG unavailable while issuing token for user %s: %s", user_id, exc)
            raise RandomSourceError(f"random source failed: {exc}") from exc
        if len(raw) != TOKEN_BYTES:
            self._logger.error("CSPRNG returned %d bytes, expected %d", len(raw), TOKEN_BYTES)
            raise RandomSourceError("random source returned a short read")

        plaintext = base64.b32encode(raw).decode("ascii").rstrip("=")
        return Token(
            plaintext=plaintext,
            hash=hash_plaintext(plaintext),
            user_id=user_id,
            expiry=self._clock() + ttl,
            scope=scope,
        )
