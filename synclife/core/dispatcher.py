"""
SyncLife — Notification Dispatcher.

Every reminder lands in two places:

1. The in-app banner queue, unconditionally. Each banner removes itself
   after a fixed delay using its own timer, or earlier when dismissed.
2. The external notification sink, only when one is configured and has
   permission. Delivery there is best-effort and runs as a tracked task:
   a slow or failing sink never affects the banner path and
   never raises to the caller. A sink still undecided about permission
   is asked again on the next delivery.

Banner timers run on the asyncio event loop, so push/dismiss/expire must
be called from the loop thread.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from synclife.core.reminders import reminder_message
from synclife.ports.notification_port import PermissionState

if TYPE_CHECKING:
    from synclife.core.clock import Clock
    from synclife.data.models import Event
    from synclife.ports.notification_port import NotificationSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """A transient in-app banner. Never persisted."""

    id: int
    title: str
    body: str
    created_at: datetime

    @property
    def text(self) -> str:
        return f"{self.title}: {self.body}"


# ---------------------------------------------------------------------------
# Banner queue
# ---------------------------------------------------------------------------


class BannerQueue:
    """FIFO of live banners, keyed by id, each with its own expiry handle."""

    def __init__(self, ttl_seconds: float = 8.0) -> None:
        self._ttl = ttl_seconds
        self._ids = itertools.count(1)
        # dicts keep insertion order, which is the display order
        self._entries: dict[int, Notification] = {}
        self._timers: dict[int, asyncio.TimerHandle] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, notification_id: int) -> bool:
        return notification_id in self._entries

    def items(self) -> list[Notification]:
        return list(self._entries.values())

    def push(self, title: str, body: str, created_at: datetime) -> Notification:
        loop = asyncio.get_running_loop()
        entry = Notification(
            id=next(self._ids), title=title, body=body, created_at=created_at,
        )
        self._entries[entry.id] = entry
        self._timers[entry.id] = loop.call_later(self._ttl, self._expire, entry.id)
        return entry

    def dismiss(self, notification_id: int) -> bool:
        """Remove a banner early. Returns False if it is already gone."""
        timer = self._timers.pop(notification_id, None)
        if timer is not None:
            timer.cancel()
        return self._entries.pop(notification_id, None) is not None

    def clear(self) -> None:
        """Drop every banner and cancel all pending expiry timers."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._entries.clear()

    def _expire(self, notification_id: int) -> None:
        self._timers.pop(notification_id, None)
        if self._entries.pop(notification_id, None) is not None:
            logger.debug("Banner %d expired", notification_id)


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class NotificationDispatcher:
    """Fans a reminder out to the banner queue and the external sink."""

    def __init__(
        self,
        banners: BannerQueue,
        clock: Clock,
        sink: NotificationSink | None = None,
        sink_timeout: float = 5.0,
    ) -> None:
        self._banners = banners
        self._clock = clock
        self._sink = sink
        self._sink_timeout = sink_timeout
        self._deliveries: set[asyncio.Task] = set()

    @property
    def banners(self) -> BannerQueue:
        return self._banners

    @property
    def pending_deliveries(self) -> int:
        return len(self._deliveries)

    async def ensure_permission(self) -> PermissionState | None:
        """Ask the sink for permission if it has not decided yet."""
        if self._sink is None:
            return None
        state = await self._resolve_permission()
        logger.info("Notification sink permission: %s", state.value)
        return state

    async def _resolve_permission(self) -> PermissionState:
        try:
            state = self._sink.permission_state()
            if state is PermissionState.UNDETERMINED:
                state = await asyncio.wait_for(
                    self._sink.request_permission(), timeout=self._sink_timeout,
                )
        except Exception as exc:
            logger.warning("Notification permission request failed: %s", exc)
            return PermissionState.UNDETERMINED
        return state

    # --- handoff -------------------------------------------------------------

    def announce(self, event: Event) -> Notification:
        """Hand a due reminder off without awaiting anything.

        The banner is live when this returns. Sink delivery runs as a tracked
        task, so cancelling whoever called this does not drop it.
        """
        title, body = reminder_message(event)
        logger.info("Reminder fired for event %s (%s)", event.id, event.title)
        return self.post(title, body)

    def post(self, title: str, body: str) -> Notification:
        banner = self._banners.push(title, body, self._clock.now())
        if self._sink is None:
            logger.debug("No notification sink configured, banner only")
            return banner
        task = asyncio.get_running_loop().create_task(self._deliver_external(title, body))
        self._deliveries.add(task)
        task.add_done_callback(self._deliveries.discard)
        return banner

    async def drain(self) -> None:
        """Wait for in-flight sink deliveries. Each is bounded by the sink timeout.

        Cancelling the waiter leaves the deliveries running.
        """
        if self._deliveries:
            await asyncio.shield(asyncio.gather(*self._deliveries, return_exceptions=True))

    async def dispatch(self, event: Event) -> Notification:
        banner = self.announce(event)
        await self.drain()
        return banner

    async def notify(self, title: str, body: str) -> Notification:
        banner = self.post(title, body)
        await self.drain()
        return banner

    async def _deliver_external(self, title: str, body: str) -> None:
        try:
            state = self._sink.permission_state()
        except Exception as exc:
            logger.warning("Notification sink permission check failed: %s", exc)
            return
        if state is PermissionState.UNDETERMINED:
            # an earlier request may have timed out; ask again
            state = await self._resolve_permission()
        if state is not PermissionState.GRANTED:
            logger.info("Notification sink permission is %s, banner only", state.value)
            return

        try:
            await asyncio.wait_for(self._sink.notify(title, body), timeout=self._sink_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Notification sink timed out after %.1fs: %s", self._sink_timeout, title,
            )
        except Exception as exc:
            logger.warning("Notification sink delivery failed: %s", exc)

    def close(self) -> None:
        """Drop live banners and abandon deliveries still in flight."""
        for task in self._deliveries:
            task.cancel()
        self._deliveries.clear()
        self._banners.clear()
