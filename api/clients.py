"""
api/clients.py -- Gateway-side RPC clients for the account and events services.

Both services speak JSON over HTTP at POST /rpc/v1/<service>/<method>. A
client wraps one shared httpx.AsyncClient (created in the gateway lifespan,
closed on shutdown) and turns every reply back into domain values:

  2xx           -> decoded reply model
  error envelope -> the same ServiceError subclass the callee raised
                    (core.errors.error_from_payload)
  timeout / connection failure / undecodable reply -> InternalError

The timeout is a deadline for the whole call, from connect to the last byte
of the body.

Each call is awaited inside the request task, so a client disconnect that
cancels the task also cancels the in-flight HTTP request.

AccountClient has the same method surface as auth.service.AuthService, so
gateway code does not care whether it talks to the service in-process or
across the network.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from account.schemas import (
    CredentialsRequest,
    SessionReply,
    TokenMessage,
    TokenReply,
    TokenRequest,
    UserMessage,
)
from auth.models import Credentials, Token
from core.errors import InternalError, error_from_payload
from core.log import get_logger
from events.models import Event
from events.schemas import (
    CreateEventReply,
    CreateEventRequest,
    DeleteEventRequest,
    EventMessage,
    ListEventsReply,
    ListEventsRequest,
)


class RPCClient:
    """Shared call/decode logic. Subclasses name the service and its methods."""

    service = ""

    def __init__(
        self,
        http: httpx.AsyncClient,
        timeout: float = 5.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._http = http
        self._timeout = timeout
        self._logger = logger or get_logger(f"rpc.{self.service}")

    def _path(self, method: str) -> str:
        return f"/rpc/v1/{self.service}/{method}"

    async def _call(
        self,
        method: str,
        payload: dict | None = None,
        timeout: float | None = None,
        http_method: str = "POST",
    ) -> dict:
        name = f"{self.service}.{method}"
        limit = timeout if timeout is not None else self._timeout
        try:
            # Overall deadline. httpx alone applies `limit` per connect/read/write step.
            response = await asyncio.wait_for(
                self._http.request(http_method, self._path(method), json=payload, timeout=limit),
                limit,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            self._logger.warning("%s timed out", name)
            raise InternalError(f"{name} timed out") from exc
        except httpx.HTTPError as exc:
            self._logger.error("%s transport failure: %s", name, exc)
            raise InternalError(f"{name} failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_success:
            if not isinstance(body, dict):
                self._logger.error("%s returned a non-object body (status %d)", name, response.status_code)
                raise InternalError(f"{name} returned an undecodable reply")
            return body

        err = error_from_payload(body)
        if isinstance(err, InternalError):
            self._logger.error("%s failed upstream with status %d", name, response.status_code)
        raise err

    def _decode(self, method: str, model, body: dict):
        try:
            return model.model_validate(body)
        except ValueError as exc:
            self._logger.error("%s.%s reply did not match %s: %s", self.service, method, model.__name__, exc)
            raise InternalError(f"malformed {self.service}.{method} reply") from exc

    async def status(self) -> dict:
        """Return the service's status reply. Raises on a non-2xx answer."""
        return await self._call("status", http_method="GET")


# ---------------------------------------------------------------------------
# Account service
# ---------------------------------------------------------------------------


class AccountClient(RPCClient):
    service = "account"

    def __init__(
        self,
        http: httpx.AsyncClient,
        timeout: float = 5.0,
        auth_timeout: float = 1.0,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(http, timeout=timeout, logger=logger)
        self._auth_timeout = auth_timeout

    async def sign_up(self, credentials: Credentials) -> tuple[int, Token]:
        return await self._session_call("signup", credentials)

    async def login(self, credentials: Credentials) -> tuple[int, Token]:
        return await self._session_call("login", credentials)

    async def is_auth(self, plaintext: str) -> Token:
        """Resolve a bearer token with the short auth timeout."""
        payload = TokenRequest(token=TokenMessage(plaintext=plaintext)).model_dump(mode="json")
        body = await self._call("is-auth", payload, timeout=self._auth_timeout)
        reply = self._decode("is-auth", TokenReply, body)
        return self._to_token("is-auth", reply.token)

    async def logout(self, plaintext: str) -> None:
        payload = TokenRequest(token=TokenMessage(plaintext=plaintext)).model_dump(mode="json")
        await self._call("logout", payload)

    async def _session_call(self, method: str, credentials: Credentials) -> tuple[int, Token]:
        user = UserMessage(email=credentials.email, password=credentials.password)
        body = await self._call(method, CredentialsRequest(user=user).model_dump(mode="json"))
        reply = self._decode(method, SessionReply, body)
        return reply.user_id, self._to_token(method, reply.token)

    def _to_token(self, method: str, message: TokenMessage) -> Token:
        try:
            return message.to_token()
        except ValueError as exc:
            self._logger.error("account.%s returned an unusable token: %s", method, exc)
            raise InternalError(f"malformed account.{method} token") from exc


# ---------------------------------------------------------------------------
# Events service
# ---------------------------------------------------------------------------


class EventsClient(RPCClient):
    service = "events"

    async def create_event(self, event: Event) -> int:
        payload = CreateEventRequest(event=EventMessage.from_event(event)).model_dump(mode="json")
        body = await self._call("create", payload)
        return self._decode("create", CreateEventReply, body).event_id

    async def list_events(self, user_id: int) -> list[Event]:
        body = await self._call("list", ListEventsRequest(user_id=user_id).model_dump(mode="json"))
        reply = self._decode("list", ListEventsReply, body)
        return [message.to_event() for message in reply.events]

    async def delete_event(self, event_id: int, user_id: int) -> None:
        payload = DeleteEventRequest(event_id=event_id, user_id=user_id).model_dump(mode="json")
        await self._call("delete", payload)

