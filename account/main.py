"""
account/main.py -- FastAPI application for the account service.

Run with:  python main.py account --port 8083
           uvicorn asgi:account_app --port 8083

Lifespan builds the collaborators explicitly and hands them to
CredentialAuthService; nothing is looked up from module globals. Startup
fails if the session store does not answer a ping within
store_ping_timeout, so a misconfigured Redis is noticed at boot rather than
on the first login.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI

from account.routes import router
from auth.passwords import CredentialHasher
from auth.service import CredentialAuthService
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.config import get_settings
from core.http import install_error_handlers
from core.log import configure_logging, get_logger

logger = get_logger("account")

RPC_PREFIX = "/rpc/v1/account"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger.info("account service starting up")
    users = UserStore(settings.auth_db_url, timeout=settings.db_timeout, logger=get_logger("auth.store"))
    sessions = SessionStore.from_url(
        settings.redis_url,
        password=settings.redis_password,
        op_timeout=settings.store_op_timeout,
        logger=get_logger("auth.sessions"),
    )
    try:
        await sessions.connect(timeout=settings.store_ping_timeout)
    except Exception:
        users.close()
        await sessions.close()
        raise
    app.state.auth_service = CredentialAuthService(
        users=users,
        sessions=sessions,
        hasher=CredentialHasher(settings.bcrypt_rounds, logger=get_logger("auth.passwords")),
        issuer=TokenIssuer(logger=get_logger("auth.tokens")),
        session_ttl=timedelta(seconds=settings.session_ttl_seconds),
        logger=get_logger("auth.service"),
    )
    logger.info("account service ready")

    yield

    await sessions.close()
    users.close()
    logger.info("account service shutdown complete")


def create_app(app_lifespan=lifespan) -> FastAPI:
    """Build the account RPC app. Tests pass their own lifespan to inject fakes."""
    configure_logging(get_settings().log_level)
    app = FastAPI(
        title="Calendarium account service",
        version="1.0.0",
        lifespan=app_lifespan,
        docs_url=None,
        redoc_url=None,
    )
    install_error_handlers(app, logger)
    app.include_router(router, prefix=RPC_PREFIX, tags=["Account RPC"])
    return app


app = create_app()
