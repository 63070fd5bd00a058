"""
auth/dependencies.py -- Request identity accessors for the gateway.

The gateway's auth middleware (api/middleware.py) resolves every request to
an Identity and stores it on request.state. Route code reads it back through
these helpers only.

get_identity() is the soft variant: it returns None when no identity was
attached (the middleware did not run for this request). That is a wiring
mistake, but it is reported, not crashed on.

require_user() is the FastAPI dependency for protected routes. It rejects
both the missing and the anonymous case with a 401, and it decides through
Identity.is_anonymous(), never through a None check on user_id.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import Identity
from core.errors import AuthenticationRequired
from core.log import get_logger

logger = get_logger("identity")

_STATE_ATTR = "identity"


def set_identity(request: Request, identity: Identity) -> None:
    setattr(request.state, _STATE_ATTR, identity)


def get_identity(request: Request) -> Identity | None:
    """Return the identity attached by the auth middleware, or None."""
    identity = getattr(request.state, _STATE_ATTR, None)
    return identity if isinstance(identity, Identity) else None


def require_user(request: Request) -> Identity:
    """Require an authenticated user. Raises AuthenticationRequired (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(identity: Identity = Depends(require_user)): ...
    """
    identity = get_identity(request)
    if identity is None:
        logger.error("no identity on request %s %s; is the auth middleware installed?", request.method, request.url.path)
        raise AuthenticationRequired()
    if identity.is_anonymous():
        raise AuthenticationRequired()
    return identity
