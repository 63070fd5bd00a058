"""
events/routes.py -- RPC endpoints of the events service.

    POST /rpc/v1/events/create   CreateEventRequest -> CreateEventReply
    POST /rpc/v1/events/list     ListEventsRequest  -> ListEventsReply
    POST /rpc/v1/events/delete   DeleteEventRequest -> DeleteEventReply
    GET  /rpc/v1/events/status                      -> StatusReply
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from events.schemas import (
    CreateEventReply,
    CreateEventRequest,
    DeleteEventReply,
    DeleteEventRequest,
    EventMessage,
    ListEventsReply,
    ListEventsRequest,
    StatusReply,
)
from events.service import EventService

router = APIRouter()


def _service(request: Request) -> EventService:
    return request.app.state.event_service


@router.post("/create", response_model=CreateEventReply, status_code=201)
async def create_event(request: Request, body: CreateEventRequest) -> CreateEventReply:
    event_id = await _service(request).create_event(body.event.to_event())
    return CreateEventReply(event_id=event_id)


@router.post("/list", response_model=ListEventsReply)
async def list_events(request: Request, body: ListEventsRequest) -> ListEventsReply:
    events = await _service(request).list_events(body.user_id)
    return ListEventsReply(events=[EventMessage.from_event(e) for e in events])


@router.post("/delete", response_model=DeleteEventReply)
async def delete_event(request: Request, body: DeleteEventRequest) -> DeleteEventReply:
    await _service(request).delete_event(body.event_id, body.user_id)
    return DeleteEventReply()


@router.get("/status", response_model=StatusReply)
async def status(request: Request):
    components = await _service(request).status()
    healthy = all(state == "ok" for state in components.values())
    reply = StatusReply(status="ok" if healthy else "degraded", components=components)
    if healthy:
        return reply
    return JSONResponse(status_code=503, content=reply.model_dump())
