"""
events/schemas.py -- Wire models for the events service RPC.

Shared by the callee (events/routes.py) and the caller (api/clients.py).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from events.models import Event


class EventMessage(BaseModel):
    id: int | None = None
    user_id: int = 0
    name: str = ""
    details: str = ""
    start: datetime
    end: datetime
    color: str = ""

    @classmethod
    def from_event(cls, event: Event) -> "EventMessage":
        return cls(
            id=event.id,
            user_id=event.user_id,
            name=event.name,
            details=event.details,
            start=event.start,
            end=event.end,
            color=event.color,
        )

    def to_event(self) -> Event:
        return Event(
            id=self.id,
            user_id=self.user_id,
            name=self.name,
            details=self.details,
            start=self.start,
            end=self.end,
            color=self.color,
        )


class CreateEventRequest(BaseModel):
    event: EventMessage


class CreateEventReply(BaseModel):
    event_id: int


class ListEventsRequest(BaseModel):
    user_id: int


class ListEventsReply(BaseModel):
    events: list[EventMessage]


class DeleteEventRequest(BaseModel):
    event_id: int
    user_id: int


class DeleteEventReply(BaseModel):
    message: str = "event deleted"


class StatusReply(BaseModel):
    status: str
    components: dict[str, str]
