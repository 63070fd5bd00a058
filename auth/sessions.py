"""
auth/sessions.py -- Redis-backed session store keyed by token hash.

Each session is one Redis string:

    key    session:<sha256(plaintext) as hex>
    value  {"plaintext": "", "hash": "<hex>", "user_id": 7,
            "expiry": "2026-01-01T12:00:00+00:00", "scope": "authentication"}
    TTL    PX = expiry - now, in milliseconds

Redis is the only authority on liveness. There is no expiry check in this
module and no sweep process: once the TTL elapses the key is gone and get()
reports SessionNotFound, exactly as it does for a key that never existed or
was deleted by logout.

The plaintext field is kept in the record for wire-shape compatibility but is
always written empty. get() echoes back the plaintext the caller looked up
with, so a leaked store dump never contains a usable token.

Concurrency: every key is independent and every command is a single atomic
Redis operation, so no locking is needed here. The store is shared by all
account-service replicas; set-then-get against the same Redis is
read-your-writes.

Layer rule: no imports from api/, account/, or events/.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone

import redis.asyncio as redis
from redis.exceptions import RedisError

from auth.models import Token
from auth.tokens import hash_plaintext
from core.errors import InternalError, SessionNotFound
from core.log import get_logger

KEY_PREFIX = "session:"

_STORE_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


def session_key(token_hash: bytes) -> str:
    return KEY_PREFIX + token_hash.hex()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore:
    """Async session repository over a redis.asyncio client.

    Usage:
        store = SessionStore.from_url("redis://localhost:6379/0")
        await store.connect()                 # bootstrap ping, 5s timeout
        await store.set(token)
        token = await store.get(token.plaintext)
        await store.delete(token.hash)
        await store.close()

    Any Redis connection or timeout failure surfaces as InternalError.
    """

    def __init__(
        self,
        client: redis.Redis,
        op_timeout: float = 3.0,
        clock: Callable[[], datetime] = _utcnow,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._op_timeout = op_timeout
        self._clock = clock
        self._logger = logger or get_logger("sessions")

    @classmethod
    def from_url(
        cls,
        url: str,
        password: str = "",
        op_timeout: float = 3.0,
        logger: logging.Logger | None = None,
    ) -> SessionStore:
        options: dict = {"socket_timeout": op_timeout, "socket_connect_timeout": op_timeout}
        if password:
            options["password"] = password
        return cls(redis.Redis.from_url(url, **options), op_timeout=op_timeout, logger=logger)

    async def connect(self, timeout: float = 5.0) -> None:
        """Ping the store once at startup. Raises InternalError if unreachable."""
        try:
            await asyncio.wait_for(self._client.ping(), timeout)
        except _STORE_ERRORS as exc:
            self._logger.error("session store unreachable at startup: %s", exc)
            raise InternalError(f"session store ping failed: {exc}") from exc
        self._logger.info("Session store reachable")

    async def ping(self) -> bool:
        """Health probe for the status endpoint. Never raises."""
        try:
            return bool(await asyncio.wait_for(self._client.ping(), self._op_timeout))
        except _STORE_ERRORS as exc:
            self._logger.warning("session store ping failed: %s", exc)
            return False

    async def set(self, token: Token) -> None:
        """Write token under its hash with TTL = expiry - now. Overwrites.

        A token that is already expired is not written; any previous record
        under the same key is removed instead, so the outcome matches what a
        reader would see after the TTL elapsed.
        """
        key = session_key(token.hash)
        ttl_ms = int((token.expiry - self._clock()).total_seconds() * 1000)
        try:
            if ttl_ms <= 0:
                self._logger.warning("refusing to store expired session for user %s", token.user_id)
                await asyncio.wait_for(self._client.delete(key), self._op_timeout)
                return
            await asyncio.wait_for(self._client.set(key, _to_record(token), px=ttl_ms), self._op_timeout)
        except _STORE_ERRORS as exc:
            self._logger.error("failed to save session for user %s: %s", token.user_id, exc)
            raise InternalError(f"failed to save session: {exc}") from exc

    async def get(self, plaintext: str) -> Token:
        """Return the live session for plaintext or raise SessionNotFound.

        Missing and TTL-expired keys are indistinguishable by design.
        """
        token_hash = hash_plaintext(plaintext)
        try:
            raw = await asyncio.wait_for(self._client.get(session_key(token_hash)), self._op_timeout)
        except _STORE_ERRORS as exc:
            self._logger.error("failed to read session: %s", exc)
            raise InternalError(f"failed to read session: {exc}") from exc
        if raw is None:
            raise SessionNotFound()
        try:
            token = _from_record(raw)
        except (ValueError, KeyError, TypeError) as exc:
            self._logger.error("corrupt session record under %s: %s", session_key(token_hash), exc)
            raise InternalError("corrupt session record") from exc
        token.plaintext = plaintext
        return token

    async def delete(self, token_hash: bytes) -> None:
        """Remove the session under token_hash. Deleting a missing key is fine."""
        try:
            removed = await asyncio.wait_for(self._client.delete(session_key(token_hash)), self._op_timeout)
        except _STORE_ERRORS as exc:
            self._logger.error("failed to delete session: %s", exc)
            raise InternalError(f"failed to delete session: {exc}") from exc
        if not removed:
            self._logger.debug("delete of absent session %s", session_key(token_hash))

    async def close(self) -> None:
        await self._client.aclose()


# ---------------------------------------------------------------------------
# Record mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _to_record(token: Token) -> str:
    return json.dumps(
        {
            "plaintext": "",
            "hash": token.hash.hex(),
            "user_id": token.user_id,
            "expiry": token.expiry.isoformat(),
            "scope": token.scope,
        }
    )


def _from_record(raw: bytes | str) -> Token:
    data = json.loads(raw)
    return Token(
        plaintext=data.get("plaintext", ""),
        hash=bytes.fromhex(data["hash"]),
        user_id=int(data["user_id"]),
        expiry=datetime.fromisoformat(data["expiry"]),
        scope=data["scope"],
    )
