"""Event merge (union by id) and per-second cache."""

import math
from typing import Dict, Iterable, List

from lumenta.events.schema import VideoEvent


def merge_events(*batches: Iterable[VideoEvent]) -> List[VideoEvent]:
    """Union events by id (last write wins), sorted ascending by timestamp.

    Merging the same event twice leaves the result unchanged.
    """
    by_id: Dict[str, VideoEvent] = {}
    for batch in batches:
        for event in batch:
            by_id[event.id] = event
    return sorted(by_id.values(), key=lambda e: e.timestamp)


class EventCache:
    """Events of each tick, keyed by floor(timestamp)."""

    def __init__(self):
        self._by_second: Dict[int, List[VideoEvent]] = {}

    def __len__(self):
        return len(self._by_second)

    def store(self, timestamp: float, events: List[VideoEvent]):
        self._by_second[math.floor(timestamp)] = list(events)

    def get(self, timestamp: float) -> List[VideoEvent]:
        return list(self._by_second.get(math.floor(timestamp), []))

    def seconds(self) -> List[int]:
        return sorted(self._by_second.keys())

    def clear(self):
        self._by_second.clear()
