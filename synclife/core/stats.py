"""Routine statistics — completion rate, trailing daily series, streaks.

Every figure is recomputed from the routines' completion histories on each
call, so there is nothing to cache or invalidate.

The daily series divides by the *current* number of routines for every
day in the window, including days before a routine existed or after one
was deleted. Past bars are an approximation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta

from synclife.core.ledger import is_completed_on
from synclife.data.models import DayOfWeek, Routine


@dataclass(frozen=True)
class DailyStat:
    date: str             # YYYY-MM-DD
    weekday_label: str    # "Mon", "Tue", ...
    completed_count: int
    total_routines: int


def daily_series(
    routines: list[Routine],
    today: date,
    window_days: int = 7,
) -> list[DailyStat]:
    """One entry per day for the `window_days` days ending today, oldest first."""
    if window_days < 1:
        raise ValueError(f"window_days must be >= 1, got {window_days}")

    total = len(routines)
    series: list[DailyStat] = []
    for offset in range(window_days - 1, -1, -1):
        day = today - timedelta(days=offset)
        key = day.isoformat()
        series.append(
            DailyStat(
                date=key,
                weekday_label=DayOfWeek.for_date(day).value,
                completed_count=sum(1 for r in routines if is_completed_on(r, key)),
                total_routines=total,
            )
        )
    return series


def completion_rate_today(routines: list[Routine], today: date) -> int:
    """Percentage (0–100) of routines completed today; 0 with no routines."""
    if not routines:
        return 0
    done = sum(1 for r in routines if is_completed_on(r, today))
    # Half-up, not banker's rounding: 1 of 8 is 13%, not 12%
    return int(math.floor(done * 100 / len(routines) + 0.5))


def current_streak(routine: Routine, today: date) -> int:
    """Consecutive completed days ending today.

    An unfinished today does not break the streak yet, so counting starts
    from yesterday in that case.
    """
    day = today if is_completed_on(routine, today) else today - timedelta(days=1)
    streak = 0
    while is_completed_on(routine, day):
        streak += 1
        day -= timedelta(days=1)
    return streak
