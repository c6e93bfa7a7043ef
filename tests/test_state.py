"""Tests for synclife.core.state — StateStore mutations and persistence."""

from __future__ import annotations

from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from synclife.core.state import StateStore
from synclife.data.models import Snapshot, TimeBlock, Timetable


def _store(clock, storage=None, **collections):
    return StateStore(Snapshot(**collections), clock, storage)


class TestRoutines:
    @pytest.mark.asyncio
    async def test_add_routine_starts_with_empty_history(self, clock, make_routine):
        store = _store(clock)
        added = await store.add_routine(make_routine(history=["2024-01-01"]))
        assert added.completion_history == []
        assert store.routines == [added]

    @pytest.mark.asyncio
    async def test_toggle_defaults_to_today(self, clock, make_routine):
        store = _store(clock, routines=[make_routine()])
        updated = await store.toggle_routine("r1")
        assert updated.completion_history == ["2024-01-10"]
        assert store.get_routine("r1").completion_history == ["2024-01-10"]

    @pytest.mark.asyncio
    async def test_scenario_c_toggle_round_trip(self, clock, make_routine):
        store = _store(clock, routines=[make_routine()])
        await store.toggle_routine("r1", "2024-01-01")
        assert store.get_routine("r1").completion_history == ["2024-01-01"]
        await store.toggle_routine("r1", "2024-01-01")
        assert store.get_routine("r1").completion_history == []

    @pytest.mark.asyncio
    async def test_toggle_unknown_id(self, clock, make_routine):
        storage = MagicMock()
        store = _store(clock, storage, routines=[make_routine()])
        assert await store.toggle_routine("nope") is None
        storage.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_routine(self, clock, make_routine):
        store = _store(clock, routines=[make_routine("a"), make_routine("b")])
        assert await store.delete_routine("a") is True
        assert [r.id for r in store.routines] == ["b"]
        assert await store.delete_routine("a") is False

    @pytest.mark.asyncio
    async def test_import_routines(self, clock, make_routine):
        store = _store(clock, routines=[make_routine("a")])
        imported = await store.import_routines([make_routine("b"), make_routine("c", ["2024-01-01"])])
        assert [r.id for r in store.routines] == ["a", "b", "c"]
        assert all(r.completion_history == [] for r in imported)

    @pytest.mark.asyncio
    async def test_import_nothing(self, clock):
        storage = MagicMock()
        store = _store(clock, storage)
        assert await store.import_routines([]) == []
        storage.save.assert_not_called()


class TestEvents:
    @pytest.mark.asyncio
    async def test_add_and_delete_event(self, clock, make_event):
        store = _store(clock)
        await store.add_event(make_event("a"))
        await store.add_event(make_event("b"))
        assert [e.id for e in store.events] == ["a", "b"]
        assert await store.delete_event("a") is True
        assert [e.id for e in store.events] == ["b"]
        assert await store.delete_event("zzz") is False

    @pytest.mark.asyncio
    async def test_add_event_with_same_id_replaces(self, clock, make_event):
        store = _store(clock, events=[make_event("a", notified=True)])
        await store.add_event(make_event("a", title="Moved"))
        assert len(store.events) == 1
        assert store.events[0].title == "Moved"
        assert store.events[0].notified is False

    @pytest.mark.asyncio
    async def test_replace_event_resets_notified(self, clock, make_event):
        original = make_event("a", notified=True)
        store = _store(clock, events=[original])
        assert await store.replace_event(replace(original, notified=False)) is True
        assert store.get_event("a").notified is False
        assert await store.replace_event(make_event("zzz")) is False

    @pytest.mark.asyncio
    async def test_commit_events_requires_writer(self, clock, make_event):
        store = _store(clock)
        with pytest.raises(RuntimeError):
            store.commit_events([make_event()])
        async with store.writer():
            store.commit_events([make_event()])
        assert len(store.events) == 1

    @pytest.mark.asyncio
    async def test_readers_keep_their_snapshot(self, clock, make_event):
        store = _store(clock, events=[make_event("a")])
        before = store.events
        await store.add_event(make_event("b"))
        assert [e.id for e in before] == ["a"]
        assert [e.id for e in store.events] == ["a", "b"]


class TestTimetables:
    @pytest.mark.asyncio
    async def test_add_and_delete(self, clock):
        store = _store(clock)
        tt = Timetable(
            id="t1", name="Deep work",
            blocks=[TimeBlock(id="b1", label="Focus", start_time="09:00", end_time="11:00")],
        )
        await store.add_timetable(tt)
        assert store.timetables == [tt]
        assert await store.delete_timetable("t1") is True
        assert await store.delete_timetable("t1") is False


class TestPersistence:
    @pytest.mark.asyncio
    async def test_every_mutation_saves_full_snapshot(self, clock, make_routine, make_event):
        storage = MagicMock()
        store = _store(clock, storage, routines=[make_routine()])
        await store.add_event(make_event())
        await store.toggle_routine("r1")

        assert storage.save.call_count == 2
        saved = storage.save.call_args.args[0]
        assert isinstance(saved, Snapshot)
        assert [e.id for e in saved.events] == ["e1"]
        assert saved.routines[0].completion_history == ["2024-01-10"]

    @pytest.mark.asyncio
    async def test_save_failure_keeps_memory_state(self, clock, make_event):
        storage = MagicMock()
        storage.save.side_effect = OSError("disk full")
        store = _store(clock, storage)
        await store.add_event(make_event())
        assert len(store.events) == 1

    def test_load_uses_storage(self, clock, make_routine):
        storage = MagicMock()
        storage.load.return_value = Snapshot(routines=[make_routine()])
        store = StateStore.load(storage, clock)
        assert [r.id for r in store.routines] == ["r1"]
