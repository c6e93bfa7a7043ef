"""Reminder evaluator — pure business logic.

An event's reminder window is the half-open interval
[scheduled_at - reminder_minutes, scheduled_at). An event is due while
the window is open and its reminder has not fired yet. Once the event has
started it is never due again, even if every tick inside the window was
missed.

A zero-minute lead gives an empty window, so such events never remind.

No I/O: this module only transforms data.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from synclife.data.models import Event

REMINDER_TITLE = "Upcoming Event"


def reminder_window(event: Event) -> tuple[datetime, datetime]:
    """Return (opens_at, closes_at); closes_at is exclusive."""
    opens_at = event.scheduled_at - timedelta(minutes=event.reminder_minutes)
    return opens_at, event.scheduled_at


def is_due(event: Event, now: datetime) -> bool:
    if event.notified:
        return False
    opens_at, closes_at = reminder_window(event)
    return opens_at <= now < closes_at


def reminder_message(event: Event) -> tuple[str, str]:
    """Build the (title, body) pair delivered for a due event."""
    return REMINDER_TITLE, f"{event.title} starts in {event.reminder_minutes} minutes!"
