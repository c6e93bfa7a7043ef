"""Tests for synclife.core.reminders — reminder window evaluation."""

from datetime import datetime, timedelta

from synclife.core.reminders import is_due, reminder_message, reminder_window

NOW = datetime(2024, 1, 10, 9, 0, 0)


class TestIsDue:
    def test_inside_window(self, make_event):
        # Scenario A: starts in 10 min, 15 min lead
        assert is_due(make_event(starts_in=timedelta(minutes=10), lead=15), NOW) is True

    def test_window_not_open_yet(self, make_event):
        # Scenario B: starts in 10 min, 5 min lead → opens at NOW+5
        event = make_event(starts_in=timedelta(minutes=10), lead=5)
        assert is_due(event, NOW) is False
        assert is_due(event, NOW + timedelta(minutes=5)) is True

    def test_notified_is_never_due(self, make_event):
        event = make_event(notified=True)
        for minutes in range(-20, 20):
            assert is_due(event, NOW + timedelta(minutes=minutes)) is False

    def test_half_open_window(self, make_event):
        event = make_event(starts_in=timedelta(minutes=30), lead=10)
        opens = NOW + timedelta(minutes=20)
        closes = NOW + timedelta(minutes=30)
        assert is_due(event, opens - timedelta(seconds=1)) is False
        assert is_due(event, opens) is True
        assert is_due(event, closes - timedelta(seconds=1)) is True
        assert is_due(event, closes) is False
        assert is_due(event, closes + timedelta(hours=1)) is False

    def test_window_sweep(self, make_event):
        lead = 7
        event = make_event(starts_in=timedelta(minutes=60), lead=lead)
        start = event.scheduled_at
        for seconds in range(-(lead + 2) * 60, 120, 15):
            now = start + timedelta(seconds=seconds)
            expected = -lead * 60 <= seconds < 0
            assert is_due(event, now) is expected, seconds

    def test_zero_lead_never_due(self, make_event):
        event = make_event(starts_in=timedelta(minutes=1), lead=0)
        assert is_due(event, event.scheduled_at) is False
        assert is_due(event, event.scheduled_at - timedelta(seconds=1)) is False

    def test_past_event_is_not_fired_late(self, make_event):
        event = make_event(starts_in=timedelta(minutes=-1), lead=15)
        assert is_due(event, NOW) is False


class TestHelpers:
    def test_reminder_window(self, make_event):
        event = make_event(starts_in=timedelta(minutes=10), lead=15)
        assert reminder_window(event) == (NOW - timedelta(minutes=5), NOW + timedelta(minutes=10))

    def test_reminder_message(self, make_event):
        title, body = reminder_message(make_event(lead=15, title="Dentist"))
        assert title == "Upcoming Event"
        assert body == "Dentist starts in 15 minutes!"
