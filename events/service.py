"""
events/service.py -- Calendar operations on top of EventStore.

EventService validates before writing and runs the blocking store calls in
Starlette's thread pool. The user_id on every call is whatever the gateway
resolved from the bearer token; this layer does not authenticate.
"""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from core.log import get_logger
from core.validator import Validator
from events.models import Event, validate_event
from events.store import EventStore


class EventService:
    def __init__(self, store: EventStore, logger: logging.Logger | None = None) -> None:
        self._store = store
        self._logger = logger or get_logger("events.service")

    async def create_event(self, event: Event) -> int:
        """Raises ValidationError when the event breaks a field rule."""
        v = Validator()
        v.check(event.user_id > 0, "user_id", "must be provided")
        validate_event(v, event)
        v.raise_if_invalid()
        return await run_in_threadpool(self._store.create_event, event)

    async def list_events(self, user_id: int) -> list[Event]:
        return await run_in_threadpool(self._store.list_events, user_id)

    async def delete_event(self, event_id: int, user_id: int) -> None:
        """Raises RecordNotFoundError when user_id owns no event with event_id."""
        await run_in_threadpool(self._store.delete_event, event_id, user_id)

    async def status(self) -> dict[str, str]:
        database_ok = await run_in_threadpool(self._store.ping)
        return {"database": "ok" if database_ok else "error"}
