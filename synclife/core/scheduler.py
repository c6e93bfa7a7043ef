"""
SyncLife — Reminder Scheduler.

A recurring tick that walks the event collection, flips `notified` on
every event whose reminder window is open, and hands those events to the
dispatcher.

The flag flip is committed (and persisted) and every flipped event is
handed to the dispatcher in the same step, with no await in between: a
flagged event always has its banner up and its sink delivery queued, even
if the tick is cancelled while deliveries are still running. A crash
before the commit means the next tick sees the event as due again. An
individual tick that fails is logged and the loop keeps going.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import TYPE_CHECKING

from synclife.core.reminders import is_due

if TYPE_CHECKING:
    from synclife.core.clock import Clock
    from synclife.core.dispatcher import NotificationDispatcher
    from synclife.core.state import StateStore
    from synclife.data.models import Event

logger = logging.getLogger(__name__)


@dataclass
class TickResult:
    events: list[Event]                               # updated collection
    due: list[Event] = field(default_factory=list)    # newly fired, already flagged


def evaluate_tick(events: list[Event], now: datetime) -> TickResult:
    """Flag every due event and return the new collection plus the due subset.

    Pure: the input list and its events are not modified. An event that
    cannot be evaluated is kept as-is and does not stop the others.
    """
    updated: list[Event] = []
    due: list[Event] = []
    for event in events:
        try:
            fire = is_due(event, now)
        except Exception as exc:
            logger.error("Cannot evaluate reminder for event %r: %s", getattr(event, "id", "?"), exc)
            updated.append(event)
            continue
        if fire:
            flagged = replace(event, notified=True)
            updated.append(flagged)
            due.append(flagged)
        else:
            updated.append(event)
    return TickResult(events=updated, due=due)


class ReminderScheduler:
    """Owns the recurring reminder tick. Start/stop independently of any UI."""

    def __init__(
        self,
        state: StateStore,
        dispatcher: NotificationDispatcher,
        clock: Clock,
        interval_seconds: float = 15.0,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self._state = state
        self._dispatcher = dispatcher
        self._clock = clock
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> list[Event]:
        """Run one evaluation pass. Returns the events delivered this tick."""
        async with self._state.writer():
            now = self._clock.now()
            result = evaluate_tick(self._state.events, now)
            if result.due:
                self._state.commit_events(result.events)
                for event in result.due:
                    self._dispatcher.announce(event)

        if result.due:
            await self._dispatcher.drain()
            logger.info(
                "Tick at %s delivered %d reminder(s)",
                now.isoformat(timespec="seconds"), len(result.due),
            )
        return result.due

    def start(self) -> None:
        if self.running:
            logger.warning("Reminder scheduler already running")
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="reminder-scheduler",
        )
        logger.info("Reminder scheduler started (every %.0fs)", self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Reminder scheduler stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Reminder tick failed; will retry next interval")
            await asyncio.sleep(self._interval)
