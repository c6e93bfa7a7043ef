"""Shared test fixtures and configuration.

Sets up environment variables so synclife.config never talks to real
services, and provides common fixtures like a fixed clock and a fake sink.
"""

import os

# Patch env vars BEFORE any synclife imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "")
os.environ.setdefault("LLM_API_KEY", "fake-llm-key-for-tests")
os.environ.setdefault("LLM_PROVIDER", "gemini")
os.environ.setdefault("DATA_PATH", "data/test-synclife.json")

from datetime import datetime

import pytest

from synclife.ports.notification_port import PermissionState

NOW = datetime(2024, 1, 10, 9, 0, 0)


class FakeSink:
    """In-memory NotificationSink that records deliveries."""

    def __init__(self, state: PermissionState = PermissionState.GRANTED) -> None:
        self.state = state
        self.sent: list[tuple[str, str]] = []
        self.permission_requests = 0

    def permission_state(self) -> PermissionState:
        return self.state

    async def request_permission(self) -> PermissionState:
        self.permission_requests += 1
        return self.state

    async def notify(self, title: str, body: str) -> None:
        self.sent.append((title, body))


@pytest.fixture
def clock():
    """Return a FixedClock set to a known Wednesday morning."""
    from synclife.core.clock import FixedClock
    return FixedClock(NOW)


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def make_sink():
    """Factory for fake sinks in a given permission state."""
    return FakeSink


@pytest.fixture
def snapshot_path(tmp_path):
    """Return a temporary snapshot file path."""
    return str(tmp_path / "data" / "synclife.json")


@pytest.fixture
def snapshot_store(snapshot_path, clock):
    """Return a JsonSnapshotStore backed by a temp file."""
    from synclife.data.snapshot_store import JsonSnapshotStore
    return JsonSnapshotStore(snapshot_path, clock=clock)


@pytest.fixture
def make_event():
    """Factory for events relative to NOW."""
    from datetime import timedelta

    from synclife.data.models import Event

    def _make(
        id: str = "e1",
        starts_in: timedelta = timedelta(minutes=10),
        lead: int = 15,
        notified: bool = False,
        title: str = "Dentist",
    ) -> Event:
        return Event(
            id=id,
            title=title,
            scheduled_at=NOW + starts_in,
            reminder_minutes=lead,
            notified=notified,
        )

    return _make


@pytest.fixture
def make_routine():
    """Factory for routines with an optional completion history."""
    from synclife.data.models import Routine

    def _make(id: str = "r1", history: list[str] | None = None, title: str = "Stretch") -> Routine:
        return Routine(id=id, title=title, completion_history=list(history or []))

    return _make
