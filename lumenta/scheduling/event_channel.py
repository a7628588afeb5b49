"""Bounded hand-off from background requests to the next tick."""

import logging
from collections import deque
from typing import Deque, List

from lumenta.events.schema import VideoEvent

logger = logging.getLogger(__name__)


class EventChannel:
    """Events completed by background requests, drained once per tick.

    When full, the oldest pending event is dropped. After close() further
    events are discarded.
    """

    def __init__(self, capacity: int = 256):
        if capacity < 1:
            raise ValueError("EventChannel capacity must be >= 1")
        self.capacity = capacity
        self._pending: Deque[VideoEvent] = deque()
        self._closed = False
        self.dropped = 0

    def __len__(self):
        return len(self._pending)

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, event: VideoEvent) -> bool:
        if self._closed:
            logger.debug(f"Channel closed, discarding event {event.id}")
            return False
        if len(self._pending) >= self.capacity:
            oldest = self._pending.popleft()
            self.dropped += 1
            logger.warning(f"Event channel full, dropped {oldest.id}")
        self._pending.append(event)
        return True

    def drain(self) -> List[VideoEvent]:
        events = list(self._pending)
        self._pending.clear()
        return events

    def close(self):
        self._closed = True
        self._pending.clear()
