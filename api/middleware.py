"""
api/middleware.py -- Gateway HTTP middleware.

Registered in api/main.py with @app.middleware("http"). Request order
(outermost first):

  secure_headers  -> response hardening headers and Vary: Authorization
  log_requests    -> one log line and one metrics sample per request
  rate_limit      -> token bucket per client; 429 before any auth work
  authenticate    -> resolve Authorization into an Identity on request.state

These run outside FastAPI's exception handlers, so each one builds its own
error response instead of raising.
"""

from __future__ import annotations

import time

from fastapi import Request
from fastapi.responses import JSONResponse

from api.limiter import RateLimiter, client_id
from api.metrics import GatewayMetrics, route_label
from auth.dependencies import set_identity
from auth.models import ANONYMOUS, Identity
from auth.tokens import validate_token_shape
from core.errors import AuthenticationError, InternalError, ServiceError
from core.http import error_body, error_response
from core.log import get_logger

logger = get_logger("api")


async def secure_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-XSS-Protection"] = "1; mode=block"
    response.headers["X-Frame-Options"] = "deny"
    response.headers.add_vary_header("Authorization")
    return response


async def log_requests(request: Request, call_next):
    """Log one line per request and record it in the Prometheus metrics."""
    start = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - start
    metrics: GatewayMetrics | None = getattr(request.app.state, "metrics", None)
    if metrics is not None:
        metrics.observe(request.method, route_label(request), response.status_code, elapsed)
    ms = elapsed * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


async def rate_limit(request: Request, call_next):
    """Reject with 429 when the client's bucket is empty. No Retry-After is sent.

    Every route draws from the bucket, /v1/health included: a health call fans
    out to both backend services. CORS preflights never get here, since
    CORSMiddleware answers them further out.
    """
    limiter: RateLimiter | None = getattr(request.app.state, "limiter", None)
    if limiter is None:
        return await call_next(request)
    key = client_id(request, getattr(request.app.state, "trusted_proxies", None))
    if not limiter.allow(key):
        logger.info("rate limit exceeded for %s", key)
        return JSONResponse(status_code=429, content=error_body("rate_limited", "rate limit exceeded"))
    return await call_next(request)


def _unauthorized(reason: str) -> JSONResponse:
    logger.info("authentication rejected: %s", reason)
    return error_response(AuthenticationError())


async def authenticate(request: Request, call_next):
    """Attach an Identity to every request.

    No Authorization header: the anonymous identity, and the route decides.
    Otherwise the header must be exactly `Bearer <token>`, the token must be
    well-formed, and the account service must confirm it within the auth RPC
    timeout. Every failure, a timeout included, is a 401.
    """
    header = request.headers.get("Authorization", "")
    if not header:
        set_identity(request, ANONYMOUS)
        return await call_next(request)

    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        return _unauthorized("malformed Authorization header")
    plaintext = parts[1]
    if not validate_token_shape(plaintext).valid:
        return _unauthorized("malformed bearer token")

    try:
        token = await request.app.state.account_client.is_auth(plaintext)
    except InternalError as exc:
        logger.error("token check failed closed: %r", exc)
        return _unauthorized("account service unavailable")
    except ServiceError as exc:
        return _unauthorized(exc.code)

    set_identity(request, Identity(user_id=token.user_id))
    return await call_next(request)
