"""Storage port — abstract interface for snapshot persistence.

The state store hands over the whole document after every mutation;
implementations never see partial diffs.
"""

from __future__ import annotations

from typing import Protocol

from synclife.data.models import Snapshot


class SnapshotStorage(Protocol):
    """Abstract snapshot persistence used by the state store."""

    def load(self) -> Snapshot: ...

    def save(self, snapshot: Snapshot) -> None: ...
