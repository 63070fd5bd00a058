"""
events/store.py -- SQLAlchemy Core persistence for calendar events.

Pattern: Repository + Data Mapper. EventStore is the repository; _row_to_event
is the mapper. Every query is scoped by user_id, so one user can neither see
nor delete another user's events.

Timestamps are stored as ISO 8601 text, like every other timestamp column in
this codebase, and mapped back to datetime on read.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = EventStore("sqlite:///:memory:")
    event_id = store.create_event(Event(user_id=7, name="standup", ...))
    events = store.list_events(7)
    store.delete_event(event_id, 7)
    store.close()
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, and_, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.db import make_engine
from core.errors import RecordNotFoundError
from core.log import get_logger
from events.models import Event

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_events = Table(
    "events",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("name", String(80), nullable=False),
    Column("details", Text, nullable=False, server_default=""),
    Column("start", String(40), nullable=False),
    Column("end", String(40), nullable=False),
    Column("color", String(7), nullable=False),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class EventStore:
    def __init__(self, db_url: str, timeout: float = 3.0, logger: logging.Logger | None = None) -> None:
        self.engine: Engine = make_engine(db_url, timeout)
        self._logger = logger or get_logger("events.store")
        _metadata.create_all(self.engine)

    def create_event(self, event: Event) -> int:
        """Insert event for event.user_id and return the new id."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _events.insert().values(
                    user_id=event.user_id,
                    name=event.name,
                    details=event.details,
                    start=event.start.isoformat(),
                    end=event.end.isoformat(),
                    color=event.color,
                )
            )
            conn.commit()
        event_id = result.inserted_primary_key[0]
        self._logger.info("event %s created for user %s", event_id, event.user_id)
        return event_id

    def list_events(self, user_id: int) -> list[Event]:
        """Return the user's events ordered by start. An empty list is not an error."""
        query = _events.select().where(_events.c.user_id == user_id).order_by(_events.c.start, _events.c.id)
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_event(row) for row in rows]

    def delete_event(self, event_id: int, user_id: int) -> None:
        """Delete one event owned by user_id.

        Raises RecordNotFoundError when no row matched, which covers both an
        unknown id and an id that belongs to someone else.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _events.delete().where(and_(_events.c.id == event_id, _events.c.user_id == user_id))
            )
            conn.commit()
        if result.rowcount == 0:
            raise RecordNotFoundError("event not found")
        self._logger.info("event %s deleted for user %s", event_id, user_id)

    def ping(self) -> bool:
        """Health probe for the status endpoint. Never raises."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            self._logger.warning("events database ping failed: %s", exc)
            return False

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_event(row) -> Event:
    return Event(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        details=row.details or "",
        start=datetime.fromisoformat(row.start),
        end=datetime.fromisoformat(row.end),
        color=row.color,
    )
