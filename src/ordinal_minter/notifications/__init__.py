"""Notifications — user-visible notices emitted by the session components.

Provides:
- ``Notice`` — a user-facing message with a kind
- ``NotificationService`` — synchronous fan-out to asyncio queues
"""

from __future__ import annotations

from ordinal_minter.notifications.events import Notice, NoticeKind, RawEvent
from ordinal_minter.notifications.service import NotificationService

__all__ = [
    "Notice",
    "NoticeKind",
    "NotificationService",
    "RawEvent",
]
