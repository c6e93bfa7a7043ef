"""
SyncLife — Data Models.

Routines recur on chosen weekdays and carry their own completion ledger;
events are one-off and carry a single reminder flag. Timetables ride along
in the snapshot untouched.

Field names are snake_case in Python; the snapshot document keeps the
camelCase keys existing data files were written with.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class DayOfWeek(Enum):
    MONDAY = "Mon"
    TUESDAY = "Tue"
    WEDNESDAY = "Wed"
    THURSDAY = "Thu"
    FRIDAY = "Fri"
    SATURDAY = "Sat"
    SUNDAY = "Sun"

    @classmethod
    def for_date(cls, day: date) -> DayOfWeek:
        return list(cls)[day.weekday()]


class Category(Enum):
    HEALTH = "health"
    WORK = "work"
    PERSONAL = "personal"
    EDUCATION = "education"


def _require(data: dict, key: str):
    if key not in data or data[key] is None:
        raise ValueError(f"Missing required field {key!r}")
    return data[key]


def parse_local_datetime(raw: str) -> datetime:
    """Parse an ISO 8601 timestamp into a naive local wall-clock datetime.

    Offset-aware values (including a trailing "Z") are converted to the
    local timezone first.
    """
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


@dataclass
class Routine:
    """A recurring commitment with a per-day completion ledger.

    `completion_history` holds ISO dates (YYYY-MM-DD), each at most once.
    Only core.ledger writes it after creation.
    """

    id: str
    title: str
    time: str = "08:00"                                 # HH:MM
    days: list[DayOfWeek] = field(default_factory=lambda: [DayOfWeek.MONDAY])
    category: Category = Category.PERSONAL
    completion_history: list[str] = field(default_factory=list)
    last_completed_date: str | None = None              # YYYY-MM-DD

    def is_active_on(self, day: date) -> bool:
        return DayOfWeek.for_date(day) in self.days

    def to_dict(self, today: date | None = None) -> dict:
        today_str = (today or date.today()).isoformat()
        return {
            "id": self.id,
            "title": self.title,
            "time": self.time,
            "days": [d.value for d in self.days],
            "category": self.category.value,
            # Derived on write; never trusted on read
            "completed": today_str in self.completion_history,
            "lastCompletedDate": self.last_completed_date,
            "completionHistory": list(self.completion_history),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Routine:
        history: list[str] = []
        for raw in data.get("completionHistory") or []:
            if raw not in history:
                history.append(raw)
        return cls(
            id=str(_require(data, "id")),
            title=str(_require(data, "title")),
            time=data.get("time") or "08:00",
            days=[DayOfWeek(d) for d in data.get("days") or []],
            category=Category(data.get("category") or "personal"),
            completion_history=history,
            last_completed_date=data.get("lastCompletedDate"),
        )


@dataclass
class Event:
    """A one-off scheduled event with a lead-time reminder.

    `notified` flips to True once, when the reminder scheduler hands the
    event to the dispatcher.
    """

    id: str
    title: str
    scheduled_at: datetime               # naive, local wall-clock
    reminder_minutes: int = 15
    notified: bool = False
    description: str | None = None
    location: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "dateTime": self.scheduled_at.isoformat(),
            "reminderMinutes": self.reminder_minutes,
            "notified": self.notified,
            "description": self.description,
            "location": self.location,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Event:
        minutes = int(data.get("reminderMinutes") or 0)
        if minutes < 0:
            raise ValueError(f"reminderMinutes must be non-negative, got {minutes}")
        return cls(
            id=str(_require(data, "id")),
            title=str(_require(data, "title")),
            scheduled_at=parse_local_datetime(_require(data, "dateTime")),
            reminder_minutes=minutes,
            notified=data.get("notified") is True,
            description=data.get("description"),
            location=data.get("location"),
        )


@dataclass
class TimeBlock:
    id: str
    label: str
    start_time: str    # HH:MM
    end_time: str      # HH:MM
    color: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: dict) -> TimeBlock:
        return cls(
            id=str(_require(data, "id")),
            label=str(_require(data, "label")),
            start_time=_require(data, "startTime"),
            end_time=_require(data, "endTime"),
            color=data.get("color") or "",
        )


@dataclass
class Timetable:
    """A static blueprint of time blocks. No completion or reminder state."""

    id: str
    name: str
    description: str = ""
    blocks: list[TimeBlock] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "blocks": [b.to_dict() for b in self.blocks],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Timetable:
        return cls(
            id=str(_require(data, "id")),
            name=str(_require(data, "name")),
            description=data.get("description") or "",
            blocks=[TimeBlock.from_dict(b) for b in data.get("blocks") or []],
        )


@dataclass
class Snapshot:
    """The three collections, persisted and reloaded as one document."""

    routines: list[Routine] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    timetables: list[Timetable] = field(default_factory=list)

    def to_dict(self, today: date | None = None) -> dict:
        return {
            "routines": [r.to_dict(today) for r in self.routines],
            "events": [e.to_dict() for e in self.events],
            "timetables": [t.to_dict() for t in self.timetables],
        }
