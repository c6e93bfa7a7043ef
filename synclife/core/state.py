"""
SyncLife — State Store.

Holds the routines, events and timetables collections for the running
process. All writes take a single asyncio lock, replace whole
collections, and then hand the full snapshot to the storage port.

Readers get the current lists; those lists are never mutated in place,
so a reader holding one keeps a consistent snapshot across awaits.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import replace
from datetime import date
from typing import TYPE_CHECKING, AsyncIterator

from synclife.core import ledger
from synclife.data.models import Event, Routine, Snapshot, Timetable

if TYPE_CHECKING:
    from synclife.core.clock import Clock
    from synclife.ports.storage_port import SnapshotStorage

logger = logging.getLogger(__name__)


class StateStore:
    """Single-writer in-memory state with write-through persistence."""

    def __init__(
        self,
        snapshot: Snapshot,
        clock: Clock,
        storage: SnapshotStorage | None = None,
    ) -> None:
        self._routines: list[Routine] = list(snapshot.routines)
        self._events: list[Event] = list(snapshot.events)
        self._timetables: list[Timetable] = list(snapshot.timetables)
        self._clock = clock
        self._storage = storage
        self._lock = asyncio.Lock()

    @classmethod
    def load(cls, storage: SnapshotStorage, clock: Clock) -> StateStore:
        return cls(storage.load(), clock, storage)

    # --- reads ---------------------------------------------------------------

    @property
    def routines(self) -> list[Routine]:
        return self._routines

    @property
    def events(self) -> list[Event]:
        return self._events

    @property
    def timetables(self) -> list[Timetable]:
        return self._timetables

    def snapshot(self) -> Snapshot:
        return Snapshot(
            routines=list(self._routines),
            events=list(self._events),
            timetables=list(self._timetables),
        )

    def get_routine(self, routine_id: str) -> Routine | None:
        return next((r for r in self._routines if r.id == routine_id), None)

    def get_event(self, event_id: str) -> Event | None:
        return next((e for e in self._events if e.id == event_id), None)

    # --- write discipline ----------------------------------------------------

    @contextlib.asynccontextmanager
    async def writer(self) -> AsyncIterator[StateStore]:
        """Hold the writer lock across a multi-step read-modify-write."""
        async with self._lock:
            yield self

    def commit_events(self, events: list[Event]) -> None:
        """Replace the events collection. Caller must hold `writer()`."""
        if not self._lock.locked():
            raise RuntimeError("commit_events() requires the writer lock")
        self._events = list(events)
        self._persist()

    def _persist(self) -> None:
        if self._storage is None:
            return
        try:
            self._storage.save(self.snapshot())
        except Exception as exc:
            logger.error("Failed to persist snapshot: %s", exc)

    # --- routines ------------------------------------------------------------

    async def add_routine(self, routine: Routine) -> Routine:
        fresh = replace(routine, completion_history=[], last_completed_date=None)
        async with self._lock:
            self._routines = [*self._routines, fresh]
            self._persist()
        logger.info("Routine added: %s (%s)", fresh.id, fresh.title)
        return fresh

    async def import_routines(self, routines: list[Routine]) -> list[Routine]:
        fresh = [replace(r, completion_history=[], last_completed_date=None) for r in routines]
        if not fresh:
            return []
        async with self._lock:
            self._routines = [*self._routines, *fresh]
            self._persist()
        logger.info("Imported %d routines", len(fresh))
        return fresh

    async def delete_routine(self, routine_id: str) -> bool:
        async with self._lock:
            remaining = [r for r in self._routines if r.id != routine_id]
            if len(remaining) == len(self._routines):
                logger.warning("delete_routine: unknown id %r", routine_id)
                return False
            self._routines = remaining
            self._persist()
        return True

    async def toggle_routine(
        self, routine_id: str, day: date | str | None = None,
    ) -> Routine | None:
        """Toggle completion for `day` (default: today). None if unknown id."""
        target = day if day is not None else self._clock.today()
        async with self._lock:
            updated: Routine | None = None
            routines: list[Routine] = []
            for r in self._routines:
                if r.id == routine_id:
                    updated = ledger.toggle(r, target)
                    routines.append(updated)
                else:
                    routines.append(r)
            if updated is None:
                logger.warning("toggle_routine: unknown id %r", routine_id)
                return None
            self._routines = routines
            self._persist()
        return updated

    # --- events --------------------------------------------------------------

    async def add_event(self, event: Event) -> Event:
        async with self._lock:
            self._events = [*[e for e in self._events if e.id != event.id], event]
            self._persist()
        logger.info("Event added: %s (%s at %s)", event.id, event.title, event.scheduled_at)
        return event

    async def replace_event(self, event: Event) -> bool:
        """Swap in an edited event wholesale; this is what resets `notified`."""
        async with self._lock:
            if not any(e.id == event.id for e in self._events):
                logger.warning("replace_event: unknown id %r", event.id)
                return False
            self._events = [event if e.id == event.id else e for e in self._events]
            self._persist()
        return True

    async def delete_event(self, event_id: str) -> bool:
        async with self._lock:
            remaining = [e for e in self._events if e.id != event_id]
            if len(remaining) == len(self._events):
                logger.warning("delete_event: unknown id %r", event_id)
                return False
            self._events = remaining
            self._persist()
        return True

    # --- timetables ----------------------------------------------------------

    async def add_timetable(self, timetable: Timetable) -> Timetable:
        async with self._lock:
            self._timetables = [*self._timetables, timetable]
            self._persist()
        return timetable

    async def delete_timetable(self, timetable_id: str) -> bool:
        async with self._lock:
            remaining = [t for t in self._timetables if t.id != timetable_id]
            if len(remaining) == len(self._timetables):
                logger.warning("delete_timetable: unknown id %r", timetable_id)
                return False
            self._timetables = remaining
            self._persist()
        return True
