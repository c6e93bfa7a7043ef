"""Notification port — abstract interface for out-of-app reminder delivery.

Core modules depend on this protocol, never on a specific messaging provider.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol


class PermissionState(Enum):
    GRANTED = "granted"
    DENIED = "denied"
    UNDETERMINED = "undetermined"


class NotificationSink(Protocol):
    """Abstract notification interface used by the dispatcher."""

    def permission_state(self) -> PermissionState: ...

    async def request_permission(self) -> PermissionState: ...

    async def notify(self, title: str, body: str) -> None: ...
