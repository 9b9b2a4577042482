"""Notice bus — fan notices out to subscribers.

Publishing is synchronous so session components can report from any code
path, including ``except`` blocks, without awaiting. Each subscriber owns a
bounded ``asyncio.Queue``.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from ordinal_minter.notifications.events import Notice

    NoticeSink = Callable[[Notice], None]

logger = logging.getLogger(__name__)

_SUBSCRIBER_BUFFER = 100
_RECENT_LIMIT = 50


class NotificationService:
    """Fan-out bus for :class:`Notice` events.

    Usage::

        bus = NotificationService()
        q = bus.add_subscriber("ui")
        bus.publish(Notice(kind="cancellation", message="Wallet connection was canceled"))
        notice = await q.get()
    """

    def __init__(self, *, recent_limit: int = _RECENT_LIMIT) -> None:
        self._subscribers: dict[str, asyncio.Queue[Notice]] = {}
        self._recent: deque[Notice] = deque(maxlen=recent_limit)

    @property
    def recent(self) -> list[Notice]:
        """Most recent notices, oldest first."""
        return list(self._recent)

    def add_subscriber(self, key: str, *, buffer: int = _SUBSCRIBER_BUFFER) -> asyncio.Queue[Notice]:
        """Register a subscriber and return its queue."""
        q: asyncio.Queue[Notice] = asyncio.Queue(maxsize=buffer)
        self._subscribers[key] = q
        return q

    def remove_subscriber(self, key: str) -> None:
        """Unregister a subscriber."""
        self._subscribers.pop(key, None)

    def publish(self, notice: Notice) -> None:
        """Record *notice* and hand it to every subscriber."""
        logger.debug("Notice %s: %s", notice.kind, notice.message)
        self._recent.append(notice)
        for key, q in list(self._subscribers.items()):
            try:
                q.put_nowait(notice)
            except asyncio.QueueFull:
                logger.warning("Subscriber %s queue full, dropping notice %s", key, notice.kind)

    def clear(self) -> None:
        """Forget the recent-notice history."""
        self._recent.clear()
