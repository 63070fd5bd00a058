"""
tests/test_sessions.py -- Unit tests for auth/sessions.py.

SessionStore runs against FakeRedis (see conftest.py), whose keys expire on
the shared FakeClock. Coroutines are driven with asyncio.run().

Covers:
  - set then get returns the same user_id / scope / expiry before expiry
  - the stored record never contains the plaintext
  - TTL expiry and delete both end in SessionNotFound
  - already-expired tokens are not written
  - corrupt records and store failures surface as InternalError
"""

from __future__ import annotations

import asyncio
import json
from datetime import timedelta

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from auth.sessions import KEY_PREFIX, SessionStore, session_key
from auth.tokens import TokenIssuer, hash_plaintext
from core.errors import InternalError, SessionNotFound


def _issue(clock, user_id: int = 7, ttl: timedelta = timedelta(minutes=60)):
    return TokenIssuer(clock=clock).generate_token(user_id, ttl)


class BrokenRedis:
    """Every command fails as if the server were down."""

    async def set(self, *args, **kwargs):
        raise RedisConnectionError("connection refused")

    async def get(self, *args, **kwargs):
        raise RedisConnectionError("connection refused")

    async def delete(self, *args, **kwargs):
        raise RedisConnectionError("connection refused")

    async def ping(self):
        raise RedisConnectionError("connection refused")

    async def aclose(self):
        return None


class TestSetGet:
    def test_round_trip_before_expiry(self, clock, session_store):
        token = _issue(clock)
        asyncio.run(session_store.set(token))
        got = asyncio.run(session_store.get(token.plaintext))
        assert got.user_id == token.user_id
        assert got.scope == token.scope
        assert got.hash == token.hash
        assert got.expiry == token.expiry
        assert got.plaintext == token.plaintext

    def test_key_is_hex_of_hash(self, clock, session_store, fake_redis):
        token = _issue(clock)
        asyncio.run(session_store.set(token))
        assert fake_redis.live_keys() == [KEY_PREFIX + hash_plaintext(token.plaintext).hex()]

    def test_record_never_contains_plaintext(self, clock, session_store, fake_redis):
        token = _issue(clock)
        asyncio.run(session_store.set(token))
        record = json.loads(fake_redis.raw(session_key(token.hash)))
        assert record["plaintext"] == ""
        assert token.plaintext not in fake_redis.raw(session_key(token.hash)).decode()

    def test_unknown_token_is_session_not_found(self, session_store):
        with pytest.raises(SessionNotFound):
            asyncio.run(session_store.get("A" * 26))


class TestExpiryAndDelete:
    """TTL expiry and explicit delete are indistinguishable to readers."""

    def test_get_after_ttl_elapses(self, clock, session_store):
        token = _issue(clock, ttl=timedelta(minutes=60))
        asyncio.run(session_store.set(token))
        clock.advance(60 * 60 - 1)
        assert asyncio.run(session_store.get(token.plaintext)).user_id == 7
        clock.advance(1)
        with pytest.raises(SessionNotFound):
            asyncio.run(session_store.get(token.plaintext))

    def test_get_after_delete(self, clock, session_store):
        token = _issue(clock)
        asyncio.run(session_store.set(token))
        asyncio.run(session_store.delete(token.hash))
        with pytest.raises(SessionNotFound):
            asyncio.run(session_store.get(token.plaintext))

    def test_delete_missing_key_is_not_an_error(self, clock, session_store):
        token = _issue(clock)
        asyncio.run(session_store.delete(token.hash))

    def test_expired_token_is_not_written(self, clock, session_store, fake_redis):
        token = _issue(clock, ttl=timedelta(seconds=-1))
        asyncio.run(session_store.set(token))
        assert fake_redis.live_keys() == []

    def test_expired_token_removes_previous_record(self, clock, session_store, fake_redis):
        token = _issue(clock)
        asyncio.run(session_store.set(token))
        token.expiry = clock() - timedelta(seconds=1)
        asyncio.run(session_store.set(token))
        assert fake_redis.live_keys() == []


class TestFailures:
    def test_corrupt_record_is_internal_error(self, clock, session_store, fake_redis):
        token = _issue(clock)
        asyncio.run(fake_redis.set(session_key(token.hash), "{not json", px=60_000))
        with pytest.raises(InternalError):
            asyncio.run(session_store.get(token.plaintext))

    def test_store_down_is_internal_error(self, clock):
        store = SessionStore(BrokenRedis(), clock=clock)
        token = _issue(clock)
        with pytest.raises(InternalError):
            asyncio.run(store.set(token))
        with pytest.raises(InternalError):
            asyncio.run(store.get(token.plaintext))
        with pytest.raises(InternalError):
            asyncio.run(store.delete(token.hash))

    def test_connect_raises_when_unreachable(self, clock):
        store = SessionStore(BrokenRedis(), clock=clock)
        with pytest.raises(InternalError):
            asyncio.run(store.connect(timeout=0.5))

    def test_ping_reports_false_instead_of_raising(self, clock):
        assert asyncio.run(SessionStore(BrokenRedis(), clock=clock).ping()) is False

    def test_ping_and_connect_ok(self, session_store):
        asyncio.run(session_store.connect())
        assert asyncio.run(session_store.ping()) is True

    def test_close_releases_client(self, session_store, fake_redis):
        asyncio.run(session_store.close())
        assert fake_redis.closed
