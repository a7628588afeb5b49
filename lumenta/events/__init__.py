"""Video events: types, assembly and merge/cache."""

from lumenta.events.schema import (
    EventType,
    Severity,
    EventSource,
    VideoEvent,
    confidence_band,
    clamp_confidence,
)
from lumenta.events.assembler import EventAssembler, passes_allow_list
from lumenta.events.event_cache import EventCache, merge_events

__all__ = [
    "EventType",
    "Severity",
    "EventSource",
    "VideoEvent",
    "confidence_band",
    "clamp_confidence",
    "EventAssembler",
    "passes_allow_list",
    "EventCache",
    "merge_events",
]
