"""
events/models.py -- Calendar event dataclass and its field rules.

Pattern: Data class plus a free validation function, so the gateway can run
the same checks before forwarding (fail fast) and the events service can run
them again before writing.

Layer rule: imports only core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from core.validator import Validator

NAME_MAX_BYTES = 80
DETAILS_MAX_BYTES = 1100
COLOR_LENGTH = 7


@dataclass
class Event:
    """One calendar entry owned by exactly one user."""

    name: str
    start: datetime
    end: datetime
    color: str
    details: str = ""
    user_id: int = 0
    id: int | None = None


def validate_event(v: Validator, event: Event) -> None:
    """Record every problem with event on v. user_id and id are not checked here."""
    v.check(event.name != "", "name", "must be provided")
    v.check(len(event.name.encode("utf-8")) <= NAME_MAX_BYTES, "name", f"must not be more than {NAME_MAX_BYTES} bytes long")

    v.check(event.color != "", "color", "must be provided")
    v.check(event.color.startswith("#"), "color", "must start with #")
    v.check(len(event.color.encode("utf-8")) == COLOR_LENGTH, "color", f"must be {COLOR_LENGTH} bytes long")

    v.check(
        len(event.details.encode("utf-8")) <= DETAILS_MAX_BYTES,
        "details",
        f"must not be more than {DETAILS_MAX_BYTES} bytes long",
    )

    v.check(_as_utc(event.end) >= _as_utc(event.start), "end", "must not be before start")


def _as_utc(moment: datetime) -> datetime:
    # Naive timestamps are treated as UTC.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
