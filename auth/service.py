"""
auth/service.py -- SignUp / Login / IsAuth / Logout.

CredentialAuthService composes the four leaf components. It keeps no state of
its own between calls; every call walks

    received -> validated -> persisted / looked up -> token issued / resolved

and stops with an exception at the first gate that rejects it.

bcrypt and SQLAlchemy calls are blocking, so they run in Starlette's worker
thread pool. Session store calls are native coroutines. Cancelling the
calling task (client disconnect) cancels whichever await is in flight.

Logins are independent: each successful login mints a new token and leaves
earlier tokens for the same user alive until their own expiry or logout.

AuthService is the structural interface the account RPC app depends on, so
tests can hand it a stub instead of a fully wired service.

Layer rule: no imports from api/, account/, or events/.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Protocol

from starlette.concurrency import run_in_threadpool

from auth.models import SCOPE_AUTHENTICATION, Credentials, Token, User
from auth.passwords import CredentialHasher
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.tokens import TokenIssuer, hash_plaintext, validate_token_shape
from core.errors import AuthenticationError, InvalidCredentials, ValidationError
from core.log import get_logger
from core.validator import Validator, validate_email, validate_password

SESSION_TTL = timedelta(minutes=60)


class AuthService(Protocol):
    async def sign_up(self, credentials: Credentials) -> tuple[int, Token]: ...

    async def login(self, credentials: Credentials) -> tuple[int, Token]: ...

    async def is_auth(self, plaintext: str) -> Token: ...

    async def logout(self, plaintext: str) -> None: ...

    async def status(self) -> dict[str, str]: ...


def validate_credentials(credentials: Credentials) -> None:
    """Raise ValidationError listing every problem with email and password."""
    v = Validator()
    validate_email(v, credentials.email)
    validate_password(v, credentials.password)
    v.raise_if_invalid()


class CredentialAuthService:
    def __init__(
        self,
        users: UserStore,
        sessions: SessionStore,
        hasher: CredentialHasher,
        issuer: TokenIssuer,
        session_ttl: timedelta = SESSION_TTL,
        logger: logging.Logger | None = None,
    ) -> None:
        self._users = users
        self._sessions = sessions
        self._hasher = hasher
        self._issuer = issuer
        self._ttl = session_ttl
        self._logger = logger or get_logger("auth")

    async def sign_up(self, credentials: Credentials) -> tuple[int, Token]:
        """Create the account and open its first session.

        Raises ValidationError (all field problems at once), DuplicateError
        when the email is taken (no token is issued), InternalError on
        store failures.
        """
        validate_credentials(credentials)
        password_hash = await run_in_threadpool(self._hasher.hash, credentials.password)
        user = User(email=credentials.email, password_hash=password_hash)
        user_id = await run_in_threadpool(self._users.create_user, user)
        token = await self._open_session(user_id)
        self._logger.info("user %s signed up", user_id)
        return user_id, token

    async def login(self, credentials: Credentials) -> tuple[int, Token]:
        """Verify the password against the stored hash and open a new session.

        Raises RecordNotFoundError for an unknown email and InvalidCredentials
        for a wrong password.
        """
        validate_credentials(credentials)
        user = await run_in_threadpool(self._users.get_by_email, credentials.email)
        matched = await run_in_threadpool(self._hasher.verify, user.password_hash, credentials.password)
        if not matched:
            self._logger.info("login rejected for user %s: wrong password", user.id)
            raise InvalidCredentials()
        token = await self._open_session(user.id)
        self._logger.info("user %s logged in", user.id)
        return user.id, token

    async def is_auth(self, plaintext: str) -> Token:
        """Return the live session for plaintext, or raise AuthenticationError.

        A malformed token never reaches the store.
        """
        if not validate_token_shape(plaintext).valid:
            raise AuthenticationError()
        return await self._sessions.get(plaintext)

    async def logout(self, plaintext: str) -> None:
        """Delete the session. An unknown or already-expired token is still a success."""
        v = validate_token_shape(plaintext)
        if not v.valid:
            raise ValidationError(v.errors)
        await self._sessions.delete(hash_plaintext(plaintext))
        self._logger.info("session closed")

    async def status(self) -> dict[str, str]:
        database_ok = await run_in_threadpool(self._users.ping)
        store_ok = await self._sessions.ping()
        return {
            "database": "ok" if database_ok else "error",
            "session_store": "ok" if store_ok else "error",
        }

    async def _open_session(self, user_id: int) -> Token:
        token = self._issuer.generate_token(user_id, self._ttl, SCOPE_AUTHENTICATION)
        await self._sessions.set(token)
        return token
