"""
api/routes/v1/auth.py -- Public account endpoints.

Routes:
  POST /v1/signup  -- create account; returns user_id and a bearer token (201)
  POST /v1/login   -- new session for existing account; returns user_id and token
  POST /v1/logout  -- end the session named in the body

Credentials and token shape are checked here before any RPC, so malformed
input never costs a round trip. The account service checks again.

Security:
  Only plaintext and expiry of a token are returned; the hash never leaves
  the account service.
  Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, Response

from api.clients import AccountClient
from api.models import (
    CredentialsRequest,
    ErrorResponse,
    LogoutRequest,
    MessageResponse,
    SessionResponse,
    TokenOut,
)
from auth.models import Credentials
from auth.service import validate_credentials
from auth.tokens import validate_token_shape
from core.errors import ValidationError

# Auth policy: every route in this module is public.
router = APIRouter()


def _account(request: Request) -> AccountClient:
    return request.app.state.account_client


@router.post(
    "/signup",
    response_model=SessionResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def signup(request: Request, response: Response, body: CredentialsRequest) -> SessionResponse:
    credentials = Credentials(email=body.user.email, password=body.user.password)
    validate_credentials(credentials)
    user_id, token = await _account(request).sign_up(credentials)
    response.headers["Cache-Control"] = "no-store"
    return SessionResponse(user_id=user_id, token=TokenOut.from_token(token))


@router.post(
    "/login",
    response_model=SessionResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def login(request: Request, response: Response, body: CredentialsRequest) -> SessionResponse:
    """Each login opens a new, independent session; earlier tokens stay valid."""
    credentials = Credentials(email=body.user.email, password=body.user.password)
    validate_credentials(credentials)
    user_id, token = await _account(request).login(credentials)
    response.headers["Cache-Control"] = "no-store"
    return SessionResponse(user_id=user_id, token=TokenOut.from_token(token))


@router.post("/logout", response_model=MessageResponse, responses={400: {"model": ErrorResponse}})
async def logout(request: Request, body: LogoutRequest) -> MessageResponse:
    """Logging out an unknown or already-expired token still succeeds."""
    v = validate_token_shape(body.token.plaintext)
    if not v.valid:
        raise ValidationError(v.errors)
    await _account(request).logout(body.token.plaintext)
    return MessageResponse(message="you have been logged out")
