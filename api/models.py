"""
API request and response models for the Calendarium gateway.

These Pydantic v2 models define the public HTTP contract. They are kept
separate from the RPC wire models in account/schemas.py and events/schemas.py:
the public surface never exposes a token hash or lets a client name a user_id.
Route handlers map between the two.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from auth.models import Token
from events.models import Event

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class UserIn(BaseModel):
    email: str = ""
    password: str = ""


class CredentialsRequest(BaseModel):
    """Body of POST /v1/signup and POST /v1/login."""

    user: UserIn


class TokenIn(BaseModel):
    plaintext: str = ""


class LogoutRequest(BaseModel):
    """Body of POST /v1/logout."""

    token: TokenIn


class EventIn(BaseModel):
    """A new calendar event. The owner is always the authenticated caller."""

    name: str = ""
    details: str = ""
    start: datetime
    end: datetime
    color: str = ""

    def to_event(self, user_id: int) -> Event:
        return Event(
            user_id=user_id,
            name=self.name,
            details=self.details,
            start=self.start,
            end=self.end,
            color=self.color,
        )


class CreateEventRequest(BaseModel):
    """Body of POST /v1/calendar."""

    event: EventIn


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class TokenOut(BaseModel):
    plaintext: str
    expiry: datetime

    @classmethod
    def from_token(cls, token: Token) -> "TokenOut":
        return cls(plaintext=token.plaintext, expiry=token.expiry)


class SessionResponse(BaseModel):
    """Returned by signup and login. The only place a plaintext token is ever sent."""

    user_id: int
    token: TokenOut


class MessageResponse(BaseModel):
    message: str


class EventOut(BaseModel):
    id: int
    name: str
    details: str
    start: datetime
    end: datetime
    color: str

    @classmethod
    def from_event(cls, event: Event) -> "EventOut":
        return cls(
            id=event.id,
            name=event.name,
            details=event.details,
            start=event.start,
            end=event.end,
            color=event.color,
        )


class EventListResponse(BaseModel):
    events: list[EventOut]


class EventCreatedResponse(BaseModel):
    event_id: int


class ErrorDetail(BaseModel):
    """Structured error detail returned in all error responses."""

    code: str
    message: str
    fields: Optional[dict[str, str]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope. All API errors return this shape."""

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response body for GET /v1/health.

    status is about the gateway process itself; components reports whether
    each backend service answered its status probe.
    """

    status: str = "healthy"
    version: str
    components: dict[str, str]
