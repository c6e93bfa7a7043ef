"""Completion ledger — per-routine set of days the routine was done.

No I/O: every function returns a new Routine and leaves its input alone.
Callers persist the result.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from synclife.core.clock import Clock
    from synclife.data.models import Routine


def _day_key(day: date | str) -> str:
    if isinstance(day, datetime):
        day = day.date()
    return day.isoformat() if isinstance(day, date) else day


def is_completed_on(routine: Routine, day: date | str) -> bool:
    return _day_key(day) in routine.completion_history


def is_completed_today(routine: Routine, clock: Clock) -> bool:
    return is_completed_on(routine, clock.today())


def toggle(routine: Routine, day: date | str) -> Routine:
    """Flip the completion mark for `day`.

    Marking a day done appends it and records it as the last completion;
    unmarking removes it and clears that marker. Applying the same toggle
    twice restores the original history.
    """
    key = _day_key(day)
    if key in routine.completion_history:
        history = [d for d in routine.completion_history if d != key]
        return replace(routine, completion_history=history, last_completed_date=None)

    history = [*routine.completion_history, key]
    return replace(routine, completion_history=history, last_completed_date=key)
