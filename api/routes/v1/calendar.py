"""
api/routes/v1/calendar.py -- Calendar endpoints (authentication required).

Routes:
  GET    /v1/calendar        -- list the caller's events
  POST   /v1/calendar        -- create an event for the caller (201)
  DELETE /v1/calendar/{id}   -- delete one of the caller's events (204)

The user_id forwarded to the events service always comes from the resolved
Identity, never from the request body, so a caller can only touch their own
events. Deleting someone else's event id is indistinguishable from deleting
an id that does not exist (404).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.clients import EventsClient
from api.models import (
    CreateEventRequest,
    ErrorResponse,
    EventCreatedResponse,
    EventListResponse,
    EventOut,
)
from auth.dependencies import require_user
from auth.models import Identity
from core.validator import Validator
from events.models import validate_event

# Auth policy: every route requires an authenticated identity (require_user).
router = APIRouter(responses={401: {"model": ErrorResponse}})


def _events(request: Request) -> EventsClient:
    return request.app.state.events_client


@router.get("/calendar", response_model=EventListResponse)
async def list_events(request: Request, identity: Identity = Depends(require_user)) -> EventListResponse:
    events = await _events(request).list_events(identity.user_id)
    return EventListResponse(events=[EventOut.from_event(e) for e in events])


@router.post(
    "/calendar",
    response_model=EventCreatedResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
)
async def create_event(
    request: Request,
    body: CreateEventRequest,
    identity: Identity = Depends(require_user),
) -> EventCreatedResponse:
    event = body.event.to_event(identity.user_id)
    v = Validator()
    validate_event(v, event)
    v.raise_if_invalid()
    event_id = await _events(request).create_event(event)
    return EventCreatedResponse(event_id=event_id)


@router.delete("/calendar/{event_id}", status_code=204, responses={404: {"model": ErrorResponse}})
async def delete_event(
    event_id: int,
    request: Request,
    identity: Identity = Depends(require_user),
) -> Response:
    await _events(request).delete_event(event_id, identity.user_id)
    return Response(status_code=204)
