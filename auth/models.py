"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work; the session store owns the Token <-> record mapping.

Layer rule: no imports from api/, account/, or events/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

SCOPE_AUTHENTICATION = "authentication"


@dataclass
class Token:
    """An opaque bearer credential issued by login or signup.

    plaintext is handed to the client exactly once and is never written to the
    session store. hash (SHA-256 of plaintext, raw bytes) is the storage key.
    """

    plaintext: str
    hash: bytes
    user_id: int
    expiry: datetime  # timezone-aware UTC
    scope: str = SCOPE_AUTHENTICATION


@dataclass
class Credentials:
    """Email/password pair as submitted by a client. Never persisted."""

    email: str
    password: str


@dataclass
class User:
    """A stored account.

    password_hash is the full bcrypt string (salt and cost embedded). A User
    handed to UserStore.create_user() must already carry it.
    """

    email: str
    id: int | None = None
    password_hash: bytes | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """Who the gateway believes is making the current request.

    Always present on a request that passed the auth middleware. Requests with
    no Authorization header get ANONYMOUS, a real value rather than None, and
    protected routes reject it through is_anonymous().
    """

    user_id: int | None

    def is_anonymous(self) -> bool:
        return self.user_id is None


ANONYMOUS = Identity(user_id=None)
