"""Queue-backed event channel for session and statement notifications."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Iterator

from livyctl.shared.models import SessionChanged, StatementComplete

logger = logging.getLogger(__name__)

Event = SessionChanged | StatementComplete


class EventChannel:
    """Fan-out channel: every subscriber gets its own unbounded queue.

    Publishing never blocks, so the publisher's poll loop is never held up by
    a slow consumer.
    """

    def __init__(self) -> None:
        self._subscribers: list[asyncio.Queue[Event]] = []

    def subscribe(self) -> asyncio.Queue[Event]:
        queue: asyncio.Queue[Event] = asyncio.Queue()
        self._subscribers.append(queue)
        logger.debug("event subscriber added (total=%d)", len(self._subscribers))
        return queue

    def unsubscribe(self, queue: asyncio.Queue[Event]) -> bool:
        try:
            self._subscribers.remove(queue)
        except ValueError:
            return False
        return True

    @contextlib.contextmanager
    def subscription(self) -> Iterator[asyncio.Queue[Event]]:
        queue = self.subscribe()
        try:
            yield queue
        finally:
            self.unsubscribe(queue)

    def publish(self, event: Event) -> None:
        for queue in self._subscribers:
            queue.put_nowait(event)
        logger.debug("published %s to %d subscriber(s)", type(event).__name__, len(self._subscribers))
