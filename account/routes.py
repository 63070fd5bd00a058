"""
account/routes.py -- RPC endpoints of the account service.

    POST /rpc/v1/account/signup   CredentialsRequest -> SessionReply
    POST /rpc/v1/account/login    CredentialsRequest -> SessionReply
    POST /rpc/v1/account/is-auth  TokenRequest       -> TokenReply
    POST /rpc/v1/account/logout   TokenRequest       -> LogoutReply
    GET  /rpc/v1/account/status                      -> StatusReply

Handlers are thin adapters: decode, call the AuthService on app.state, encode.
ServiceErrors propagate to the app's handlers, which render the error envelope.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from account.schemas import (
    CredentialsRequest,
    LogoutReply,
    SessionReply,
    StatusReply,
    TokenMessage,
    TokenReply,
    TokenRequest,
)
from auth.service import AuthService

router = APIRouter()


def _service(request: Request) -> AuthService:
    return request.app.state.auth_service


@router.post("/signup", response_model=SessionReply, status_code=201)
async def signup(request: Request, body: CredentialsRequest) -> SessionReply:
    user_id, token = await _service(request).sign_up(body.user.to_credentials())
    return SessionReply(user_id=user_id, token=TokenMessage.from_token(token))


@router.post("/login", response_model=SessionReply)
async def login(request: Request, body: CredentialsRequest) -> SessionReply:
    user_id, token = await _service(request).login(body.user.to_credentials())
    return SessionReply(user_id=user_id, token=TokenMessage.from_token(token))


@router.post("/is-auth", response_model=TokenReply)
async def is_auth(request: Request, body: TokenRequest) -> TokenReply:
    token = await _service(request).is_auth(body.token.plaintext)
    return TokenReply(token=TokenMessage.from_token(token))


@router.post("/logout", response_model=LogoutReply)
async def logout(request: Request, body: TokenRequest) -> LogoutReply:
    await _service(request).logout(body.token.plaintext)
    return LogoutReply()


@router.get("/status", response_model=StatusReply)
async def status(request: Request):
    """200 when the database and session store both answer, 503 otherwise."""
    components = await _service(request).status()
    healthy = all(state == "ok" for state in components.values())
    reply = StatusReply(status="ok" if healthy else "degraded", components=components)
    if healthy:
        return reply
    return JSONResponse(status_code=503, content=reply.model_dump())
