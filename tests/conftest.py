"""
tests/conftest.py -- Shared test fixtures for Calendarium.

This module provides:
  - FakeClock / FakeRedis: a deterministic stand-in for the four Redis
    commands SessionStore uses (SET with PX, GET, DEL, PING). Keys expire
    when the shared clock passes their PX deadline, so TTL tests advance the
    clock instead of sleeping.
  - make_db_url(): a fresh named shared-memory SQLite URI per call.
  - auth_service: a fully wired CredentialAuthService (bcrypt cost 4).
  - account_app / events_app: the real RPC apps with a patched lifespan.
  - gateway: (client, fake_redis) with the gateway's httpx clients routed to
    the in-process account and events apps through httpx.ASGITransport.

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because stores are called from Starlette's thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.
"""

from __future__ import annotations

import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from account.main import create_app as create_account_app
from api.clients import AccountClient, EventsClient
from api.limiter import RateLimiter
from api.main import create_app as create_gateway_app
from auth.passwords import CredentialHasher
from auth.service import CredentialAuthService
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.tokens import TokenIssuer
from events.main import create_app as create_events_app
from events.service import EventService
from events.store import EventStore

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable wall clock returning an aware UTC datetime. advance() moves it."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeMonotonic:
    """Callable monotonic clock in seconds for the rate limiter."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedis:
    """In-memory redis.asyncio.Redis stand-in with PX expiry on a FakeClock."""

    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self._data: dict[str, tuple[bytes, datetime | None]] = {}
        self.closed = False

    def _live(self, key: str) -> bytes | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    async def set(self, key: str, value, px: int | None = None) -> bool:
        raw = value.encode("utf-8") if isinstance(value, str) else value
        expires_at = self._clock() + timedelta(milliseconds=px) if px is not None else None
        self._data[key] = (raw, expires_at)
        return True

    async def get(self, key: str) -> bytes | None:
        return self._live(key)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._live(key) is not None:
                del self._data[key]
                removed += 1
        return removed

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        self.closed = True

    def live_keys(self) -> list[str]:
        return [key for key in list(self._data) if self._live(key) is not None]

    def raw(self, key: str) -> bytes | None:
        return self._live(key)


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_db_url(prefix: str) -> str:
    """Return a unique named shared-memory SQLite URI."""
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def build_auth_service(clock: FakeClock, redis: FakeRedis) -> tuple[CredentialAuthService, UserStore]:
    users = UserStore(make_db_url("auth"))
    service = CredentialAuthService(
        users=users,
        sessions=SessionStore(redis, clock=clock),
        hasher=CredentialHasher(rounds=4),
        issuer=TokenIssuer(clock=clock),
    )
    return service, users


def _state_lifespan(**state):
    """Return a lifespan that only copies pre-built objects onto app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        for name, value in state.items():
            setattr(app.state, name, value)
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Function-scoped fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ticks() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def fake_redis(clock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def session_store(clock, fake_redis) -> SessionStore:
    return SessionStore(fake_redis, clock=clock)


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore(make_db_url("users"))
    yield store
    store.close()


@pytest.fixture
def event_store() -> Generator[EventStore, None, None]:
    store = EventStore(make_db_url("events"))
    yield store
    store.close()


@pytest.fixture
def auth_service(clock, fake_redis) -> Generator[CredentialAuthService, None, None]:
    service, users = build_auth_service(clock, fake_redis)
    yield service
    users.close()


@pytest.fixture
def account_app(auth_service):
    """The real account RPC app serving auth_service."""
    app = create_account_app(app_lifespan=_state_lifespan(auth_service=auth_service))
    # ASGITransport does not run lifespan; set state up front as well.
    app.state.auth_service = auth_service
    return app


@pytest.fixture
def events_app(event_store):
    service = EventService(event_store)
    app = create_events_app(app_lifespan=_state_lifespan(event_service=service))
    app.state.event_service = service
    return app


def _gateway_lifespan(account_app, events_app, limiter: RateLimiter | None):
    @asynccontextmanager
    async def test_lifespan(app):
        account_http = httpx.AsyncClient(transport=httpx.ASGITransport(app=account_app), base_url="http://account")
        events_http = httpx.AsyncClient(transport=httpx.ASGITransport(app=events_app), base_url="http://events")
        app.state.account_client = AccountClient(account_http)
        app.state.events_client = EventsClient(events_http)
        app.state.trusted_proxies = []
        app.state.limiter = limiter
        yield
        await account_http.aclose()
        await events_http.aclose()

    return test_lifespan


@pytest.fixture
def gateway(account_app, events_app, fake_redis) -> Generator[tuple[TestClient, FakeRedis], None, None]:
    """Yield (client, fake_redis) for a gateway with rate limiting switched off."""
    app = create_gateway_app(app_lifespan=_gateway_lifespan(account_app, events_app, None))
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, fake_redis


@pytest.fixture
def limited_gateway(account_app, events_app, ticks) -> Generator[tuple[TestClient, FakeMonotonic], None, None]:
    """Yield (client, monotonic_clock) for a gateway with the default 4 / 2 per second bucket."""
    limiter = RateLimiter(capacity=4, refill_per_second=2.0, clock=ticks)
    app = create_gateway_app(app_lifespan=_gateway_lifespan(account_app, events_app, limiter))
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, ticks


# ---------------------------------------------------------------------------
# Gateway helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def signup_user(gateway):
    """Return a function that signs a user up through the gateway -> (user_id, plaintext)."""
    client, _ = gateway

    def _signup(email: str = "a@b.com", password: str = "password1") -> tuple[int, str]:
        resp = client.post("/v1/signup", json={"user": {"email": email, "password": password}})
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return body["user_id"], body["token"]["plaintext"]

    return _signup
