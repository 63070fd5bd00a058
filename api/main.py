"""
api/main.py -- FastAPI application for the Calendarium HTTP gateway.

Exposes signup / login / logout and the calendar to browsers. Does no
credential work itself: bearer tokens are resolved by the account service
and events live in the events service, both reached over RPC.

Run with:  python main.py gateway --port 8080
           uvicorn asgi:app --reload

Middleware stack (request order, outermost first):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- CORS headers for configured browser origins
  3. secure_headers        -- X-Frame-Options, X-XSS-Protection, Vary
  4. log_requests          -- one log line and one metrics sample per request
  5. rate_limit            -- per-client token bucket (429), every route
  6. authenticate          -- Authorization header -> Identity

Lifespan handles startup (RPC clients, limiter, sweep task, account service
check) and shutdown (cancel sweep task, close HTTP pool) symmetrically.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from api import middleware
from api.clients import AccountClient, EventsClient, RPCClient
from api.limiter import RateLimiter, sweep_loop
from api.metrics import GatewayMetrics
from api.models import HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.calendar import router as calendar_router
from core.config import Settings, get_settings
from core.errors import ServiceError
from core.http import install_error_handlers
from core.log import configure_logging, get_logger

VERSION = "1.0.0"

logger = get_logger("api")


# ---------------------------------------------------------------------------
# Startup helpers
# ---------------------------------------------------------------------------


def build_limiter(settings: Settings) -> RateLimiter | None:
    if not settings.rate_limit_enabled:
        logger.warning("rate limiting is disabled")
        return None
    return RateLimiter(
        capacity=settings.rate_limit_capacity,
        refill_per_second=settings.rate_limit_refill_per_second,
        idle_seconds=settings.rate_limit_idle_seconds,
        logger=get_logger("ratelimit"),
    )


async def probe(client: RPCClient, timeout: float) -> str:
    """Return "ok" when the service status endpoint answers 2xx, else "error"."""
    try:
        await asyncio.wait_for(client.status(), timeout)
    except (ServiceError, asyncio.TimeoutError):
        return "error"
    return "ok"


async def check_account_service(client: AccountClient, timeout: float) -> bool:
    """Ping the account service once at startup.

    Services may start in any order, so an unreachable account service is a
    warning, not a startup failure. Until it answers, every authenticated
    request fails closed with 401.
    """
    if await probe(client, timeout) != "ok":
        logger.warning("account service not reachable at startup; authenticated requests will fail until it is")
        return False
    logger.info("account service reachable")
    return True


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the RPC clients and the limiter; run the sweep task until shutdown."""
    settings = get_settings()
    logger.info("Calendarium gateway starting up")

    account_http = httpx.AsyncClient(base_url=settings.account_service_url)
    events_http = httpx.AsyncClient(base_url=settings.events_service_url)
    app.state.account_client = AccountClient(
        account_http,
        timeout=settings.rpc_timeout,
        auth_timeout=settings.auth_rpc_timeout,
        logger=get_logger("rpc.account"),
    )
    app.state.events_client = EventsClient(events_http, timeout=settings.rpc_timeout, logger=get_logger("rpc.events"))
    app.state.trusted_proxies = settings.trusted_proxies
    app.state.limiter = build_limiter(settings)

    sweep_task = None
    if app.state.limiter is not None:
        sweep_task = asyncio.create_task(sweep_loop(app.state.limiter, settings.rate_limit_sweep_interval))

    await check_account_service(app.state.account_client, settings.bootstrap_timeout)

    yield

    if sweep_task is not None:
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            pass
    await account_http.aclose()
    await events_http.aclose()
    logger.info("Calendarium gateway shutdown complete")


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(app_lifespan=lifespan) -> FastAPI:
    """Build the gateway app. Tests pass their own lifespan to wire in-process services."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Calendarium API",
        description="Per-user calendar with bearer-token sessions.",
        version=VERSION,
        lifespan=app_lifespan,
    )

    # Each registration wraps everything registered before it, so the last one
    # added is the first to see a request. Register innermost first.
    app.middleware("http")(middleware.authenticate)
    app.middleware("http")(middleware.rate_limit)
    app.middleware("http")(middleware.log_requests)
    app.middleware("http")(middleware.secure_headers)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

    # App-scoped, independent of whichever lifespan runs.
    app.state.metrics = GatewayMetrics()

    install_error_handlers(app, logger)

    app.include_router(auth_router, prefix="/v1", tags=["Auth"])
    app.include_router(calendar_router, prefix="/v1", tags=["Calendar"])

    @app.get("/v1/health", tags=["Health"])
    async def health(request: Request) -> HealthResponse:
        """Gateway liveness plus backend reachability. No auth; rate limited like any route."""
        timeout = get_settings().bootstrap_timeout
        components = {
            "app": "ok",
            "account_service": await probe(request.app.state.account_client, timeout),
            "events_service": await probe(request.app.state.events_client, timeout),
        }
        return HealthResponse(version=VERSION, components=components)

    @app.get("/v1/metrics", tags=["Health"], include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus exposition of the gateway request counters and latencies."""
        gateway_metrics = request.app.state.metrics
        return Response(content=gateway_metrics.render(), media_type=gateway_metrics.content_type)

    return app


app = create_app()
