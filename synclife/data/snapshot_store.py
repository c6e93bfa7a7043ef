"""
SyncLife — Snapshot Store.

The three collections persist as one JSON document, loaded in full at
startup and rewritten in full after every mutation. A damaged document
never blocks startup: whatever cannot be read is replaced by an empty
collection.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, TypeVar

from synclife.core.clock import Clock, SystemClock
from synclife.data.models import Event, Routine, Snapshot, Timetable

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class JsonSnapshotStore:
    """File-backed storage for the routines/events/timetables document."""

    def __init__(self, path: str | None = None, clock: Clock | None = None) -> None:
        if path is None:
            from synclife.config import settings
            path = settings.DATA_PATH

        self._path = Path(path)
        self._clock = clock or SystemClock()
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Snapshot:
        """Read the snapshot, substituting empty collections for bad parts."""
        if not self._path.exists():
            logger.info("No snapshot at %s, starting empty", self._path)
            return Snapshot()

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Unreadable snapshot %s: %s; starting empty", self._path, exc)
            return Snapshot()

        if not isinstance(raw, dict):
            logger.error("Snapshot %s is not a JSON object; starting empty", self._path)
            return Snapshot()

        snapshot = Snapshot(
            routines=_load_collection(raw, "routines", Routine.from_dict),
            events=_load_collection(raw, "events", Event.from_dict),
            timetables=_load_collection(raw, "timetables", Timetable.from_dict),
        )
        logger.debug(
            "Loaded snapshot: %d routines, %d events, %d timetables",
            len(snapshot.routines), len(snapshot.events), len(snapshot.timetables),
        )
        return snapshot

    def save(self, snapshot: Snapshot) -> None:
        """Replace the document on disk with `snapshot`.

        Writes to a sibling temp file first so a crash mid-write leaves
        the previous document intact.
        """
        payload = json.dumps(snapshot.to_dict(self._clock.today()), ensure_ascii=False, indent=2)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=self._path.name, suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def _load_collection(
    raw: dict,
    key: str,
    parse: Callable[[dict], _T],
) -> list[_T]:
    """Parse one top-level collection, skipping entities that fail to parse."""
    items = raw.get(key)
    if items is None:
        logger.warning("Snapshot has no %r collection", key)
        return []
    if not isinstance(items, list):
        logger.warning("Snapshot %r is not a list, ignoring it", key)
        return []

    parsed: list[_T] = []
    seen_ids: set[str] = set()
    for item in items:
        if not isinstance(item, dict):
            logger.warning("Skipping non-object %s entry %r", key, item)
            continue
        try:
            entity = parse(item)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping malformed %s entry %r: %s", key, item, exc)
            continue
        if entity.id in seen_ids:
            logger.warning("Skipping duplicate %s id %r", key, entity.id)
            continue
        seen_ids.add(entity.id)
        parsed.append(entity)
    return parsed
