"""Periodic scene narrative.

One shared RateLimiter (fixed interval, no sensitivity tiers). A response
listing discrete events yields one event per item; a free-text response is
classified by the ordered keyword table below and yields exactly one event.
Any narrative text returned becomes the context for the next request, and for
analyze requests.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, Tuple

from lumenta.events.schema import (
    EventSource,
    EventType,
    Severity,
    VideoEvent,
    clamp_confidence,
)
from lumenta.gemini.contracts import NarrativeRequest, NarrativeResponse
from lumenta.scheduling.base_scheduler import BaseScheduler
from lumenta.scheduling.event_channel import EventChannel
from lumenta.scheduling.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

DEFAULT_NARRATIVE_CONFIDENCE = 0.6


@dataclass(frozen=True)
class KeywordRule:
    keywords: Tuple[str, ...]
    type: EventType
    severity: Severity

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        return any(k in lowered for k in self.keywords)


# First matching rule wins
NARRATIVE_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(("person", "people", "individual"), EventType.PERSON, Severity.MEDIUM),
    KeywordRule(("vehicle", "car", "truck"), EventType.VEHICLE, Severity.MEDIUM),
    KeywordRule(("alert", "incident", "suspicious"), EventType.ALERT, Severity.HIGH),
)
FALLBACK_RULE = KeywordRule((), EventType.MOTION, Severity.MEDIUM)


def classify_text(text: str) -> KeywordRule:
    for rule in NARRATIVE_RULES:
        if rule.matches(text):
            return rule
    return FALLBACK_RULE


def narrative_context(response: NarrativeResponse) -> Optional[str]:
    """Text to carry into the next request, if the response had any."""
    if response.text:
        return response.text
    if response.events:
        return "; ".join(item.description for item in response.events)
    return None


def narrative_events(
    response: NarrativeResponse, feed_id: str, timestamp: float
) -> List[VideoEvent]:
    confidence = (
        clamp_confidence(response.confidence)
        if response.confidence is not None
        else DEFAULT_NARRATIVE_CONFIDENCE
    )

    if response.events:
        return [
            VideoEvent(
                id=f"{feed_id}-periodic-{timestamp}-{i}",
                timestamp=timestamp,
                type=EventType.coerce(item.type, EventType.MOTION),
                severity=Severity.coerce(item.severity, Severity.MEDIUM),
                confidence=confidence,
                description=item.description,
                source=EventSource.PERIODIC,
            )
            for i, item in enumerate(response.events)
        ]

    text = response.text
    if not text:
        return []

    rule = classify_text(text)
    return [
        VideoEvent(
            id=f"{feed_id}-periodic-{timestamp}-0",
            timestamp=timestamp,
            type=rule.type,
            severity=rule.severity,
            confidence=confidence,
            description=text,
            source=EventSource.PERIODIC,
        )
    ]


class NarrativeBackend(Protocol):
    async def narrate(self, request: NarrativeRequest) -> Any: ...


class NarrativeScheduler(BaseScheduler):
    """Fixed-interval narrative requests sharing one limiter."""

    name = "narrative"

    def __init__(
        self,
        backend: Optional[NarrativeBackend],
        channel: EventChannel,
        interval: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
        timeout: Optional[float] = 30.0,
    ):
        super().__init__(channel, clock=clock, timeout=timeout)
        self.backend = backend
        self.limiter = RateLimiter(interval=interval)
        self.latest_summary: Optional[str] = None

    def schedule(
        self, feed_id: str, timestamp: float, snapshot: Callable[[], bytes]
    ) -> bool:
        """Launch a narrative request if the limiter allows. Returns True if launched."""
        if self.backend is None:
            return False
        if not self.limiter.try_acquire(self.clock()):
            return False

        try:
            request = NarrativeRequest(
                frame_snapshot=snapshot(),
                feed_id=feed_id,
                timestamp=timestamp,
                previous_summary=self.latest_summary,
            )
        except Exception:
            self.limiter.abort()
            raise

        try:
            call = self.backend.narrate(request)
        except Exception as e:
            self.limiter.release(self.clock())
            logger.warning(f"Narrative request failed: {e}")
            return False

        logger.debug(f"Narrative request launched at t={timestamp}")
        self._launch(
            self.limiter, call, lambda raw: self._handle(raw, feed_id, timestamp)
        )
        return True

    def _handle(self, raw: Any, feed_id: str, timestamp: float):
        response = NarrativeResponse.parse_lenient(raw)

        context = narrative_context(response)
        if context:
            self.latest_summary = context

        for event in narrative_events(response, feed_id, timestamp):
            self.channel.put(event)
