"""
SyncLife — Service.

UI-agnostic facade over the reminder and ledger engine. It loads the
snapshot, owns the state store, banner queue, dispatcher and scheduler,
and exposes the operations a front end (CLI, bot, web) calls. Front ends
render the returned data however they like.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING

from synclife.core import stats
from synclife.core.clock import SystemClock
from synclife.core.dispatcher import BannerQueue, NotificationDispatcher
from synclife.core.scheduler import ReminderScheduler
from synclife.core.state import StateStore
from synclife.core.suggestions import generate_suggestions, normalize_suggestions
from synclife.data.models import Event

if TYPE_CHECKING:
    from synclife.config import Settings
    from synclife.core.clock import Clock
    from synclife.core.dispatcher import Notification
    from synclife.core.suggestions import SourceCitation
    from synclife.data.models import Routine, Timetable
    from synclife.ports.notification_port import NotificationSink
    from synclife.ports.storage_port import SnapshotStorage

logger = logging.getLogger(__name__)

SELF_TEST_EVENT_ID = "test-event"


class SyncLifeService:
    """Wires the engine together and owns its lifecycle."""

    def __init__(
        self,
        settings: Settings,
        storage: SnapshotStorage,
        sink: NotificationSink | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._settings = settings
        self._clock = clock or SystemClock()
        self.state = StateStore.load(storage, self._clock)
        self.banners = BannerQueue(ttl_seconds=settings.BANNER_TTL_SECONDS)
        self.dispatcher = NotificationDispatcher(
            self.banners,
            self._clock,
            sink=sink,
            sink_timeout=settings.SINK_TIMEOUT_SECONDS,
        )
        self.scheduler = ReminderScheduler(
            self.state,
            self.dispatcher,
            self._clock,
            interval_seconds=settings.REMINDER_TICK_SECONDS,
        )

    # --- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        await self.dispatcher.ensure_permission()
        self.scheduler.start()
        logger.info(
            "SyncLife started: %d routines, %d events, %d timetables",
            len(self.state.routines), len(self.state.events), len(self.state.timetables),
        )

    async def stop(self) -> None:
        await self.scheduler.stop()
        await self.dispatcher.drain()
        self.dispatcher.close()
        logger.info("SyncLife stopped")

    # --- routines ------------------------------------------------------------

    async def add_routine(self, routine: Routine) -> Routine:
        return await self.state.add_routine(routine)

    async def delete_routine(self, routine_id: str) -> bool:
        return await self.state.delete_routine(routine_id)

    async def toggle_routine(self, routine_id: str) -> Routine | None:
        return await self.state.toggle_routine(routine_id, self._clock.today())

    def completion_rate(self) -> int:
        return stats.completion_rate_today(self.state.routines, self._clock.today())

    def weekly_stats(self) -> list[stats.DailyStat]:
        return stats.daily_series(
            self.state.routines,
            self._clock.today(),
            window_days=self._settings.STATS_WINDOW_DAYS,
        )

    def streaks(self) -> dict[str, int]:
        """Current completion streak per routine id."""
        today = self._clock.today()
        return {r.id: stats.current_streak(r, today) for r in self.state.routines}

    def routines_for(self, day: date | None = None) -> list[Routine]:
        """Routines active on `day` (default today), ordered by time of day."""
        target = day or self._clock.today()
        return sorted(
            (r for r in self.state.routines if r.is_active_on(target)),
            key=lambda r: r.time,
        )

    # --- events --------------------------------------------------------------

    async def add_event(self, event: Event) -> Event:
        return await self.state.add_event(event)

    async def update_event(self, event: Event) -> bool:
        return await self.state.replace_event(event)

    async def delete_event(self, event_id: str) -> bool:
        return await self.state.delete_event(event_id)

    def upcoming_events(self) -> list[Event]:
        now = self._clock.now()
        return sorted(
            (e for e in self.state.events if e.scheduled_at >= now),
            key=lambda e: e.scheduled_at,
        )

    # --- timetables ----------------------------------------------------------

    async def add_timetable(self, timetable: Timetable) -> Timetable:
        return await self.state.add_timetable(timetable)

    async def delete_timetable(self, timetable_id: str) -> bool:
        return await self.state.delete_timetable(timetable_id)

    # --- banners -------------------------------------------------------------

    def active_banners(self) -> list[Notification]:
        return self.banners.items()

    def dismiss_banner(self, notification_id: int) -> bool:
        return self.banners.dismiss(notification_id)

    # --- AI suggestions ------------------------------------------------------

    async def suggest_routines(self, goal: str) -> tuple[list[Routine], list[SourceCitation]]:
        """Generate, normalize and import routines for `goal`.

        Returns (imported routines, sources). Both empty when the generator
        fails.
        """
        result = await generate_suggestions(goal)
        routines = normalize_suggestions(result.routines)
        imported = await self.state.import_routines(routines)
        return imported, result.sources

    # --- diagnostics ---------------------------------------------------------

    async def run_self_test(self) -> Event:
        """Fire a test notification and plant an event whose reminder opens now.

        The event starts 65 seconds from now with a 1-minute lead, so the
        next tick or two delivers a real reminder through the whole path.
        """
        await self.dispatcher.notify("Test Successful", "Notifications are active and working!")
        event = Event(
            id=SELF_TEST_EVENT_ID,
            title="Self-Test Event",
            scheduled_at=self._clock.now() + timedelta(seconds=65),
            reminder_minutes=1,
            description="This is an automated test event.",
        )
        return await self.state.add_event(event)
