"""Per-prompt semantic analysis of frames.

Every tick the caller passes the current analyze nodes (prompt + sensitivity).
Each distinct trimmed prompt gets its own RateLimiter. A prompt whose limiter
is idle and whose cooldown has elapsed launches one request to the analyze
backend; the tick does not wait for it. When the answer's confidence reaches
the sensitivity threshold an `alert` event is put on the event channel and
surfaces on a later tick.

    sensitivity   interval   threshold
    high          2 s        0.40
    medium        5 s        0.55
    low           10 s       0.70
"""

import hashlib
import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Protocol

from lumenta.events.schema import (
    EventSource,
    EventType,
    VideoEvent,
    clamp_confidence,
    confidence_band,
)
from lumenta.gemini.contracts import AnalyzeRequest, AnalyzeResponse
from lumenta.scheduling.base_scheduler import BaseScheduler
from lumenta.scheduling.event_channel import EventChannel
from lumenta.scheduling.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class Sensitivity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class SensitivityTier:
    interval: float
    threshold: float


SENSITIVITY_TIERS: Dict[Sensitivity, SensitivityTier] = {
    Sensitivity.HIGH: SensitivityTier(interval=2.0, threshold=0.4),
    Sensitivity.MEDIUM: SensitivityTier(interval=5.0, threshold=0.55),
    Sensitivity.LOW: SensitivityTier(interval=10.0, threshold=0.7),
}


@dataclass(frozen=True)
class AnalyzeNode:
    prompt: str
    sensitivity: str = Sensitivity.MEDIUM.value

    @property
    def key(self) -> str:
        return (self.prompt or "").strip()

    @property
    def tier(self) -> SensitivityTier:
        try:
            level = Sensitivity(str(self.sensitivity).lower())
        except ValueError:
            level = Sensitivity.MEDIUM
        return SENSITIVITY_TIERS[level]


class AnalyzeBackend(Protocol):
    async def analyze(self, request: AnalyzeRequest) -> Any: ...


def _prompt_tag(prompt: str) -> str:
    """Readable slug plus a digest of the exact prompt, unique per prompt key."""
    slug = re.sub(r"[^a-z0-9]+", "-", prompt.lower()).strip("-")[:48] or "prompt"
    digest = hashlib.sha1(prompt.encode("utf-8")).hexdigest()[:10]
    return f"{slug}-{digest}"


def build_analyze_event(
    response: AnalyzeResponse,
    prompt: str,
    tier: SensitivityTier,
    feed_id: str,
    timestamp: float,
) -> Optional[VideoEvent]:
    """Alert event for a response at or above the tier threshold, else None."""
    if response.confidence is None:
        return None
    confidence = clamp_confidence(response.confidence)
    if confidence < tier.threshold:
        return None

    return VideoEvent(
        id=f"{feed_id}-analyze-{_prompt_tag(prompt)}-{timestamp}",
        timestamp=timestamp,
        type=EventType.ALERT,
        severity=confidence_band(confidence),
        confidence=confidence,
        description=response.summary or f'Analyze match: "{prompt}"',
        source=EventSource.ANALYZE,
    )


class AnalyzeScheduler(BaseScheduler):
    """Rate-limited, confidence-gated prompt queries."""

    name = "analyze"

    def __init__(
        self,
        backend: Optional[AnalyzeBackend],
        channel: EventChannel,
        clock: Callable[[], float] = time.monotonic,
        timeout: Optional[float] = 30.0,
    ):
        super().__init__(channel, clock=clock, timeout=timeout)
        self.backend = backend
        self._limiters: Dict[str, RateLimiter] = {}

    def limiter(self, prompt: str) -> Optional[RateLimiter]:
        return self._limiters.get(prompt.strip())

    def schedule(
        self,
        nodes: Iterable[AnalyzeNode],
        feed_id: str,
        timestamp: float,
        snapshot: Callable[[], bytes],
        context_summary: Optional[str] = None,
    ) -> int:
        """Launch requests for every node whose limiter allows it.

        Args:
            nodes: analyze nodes for this tick
            feed_id: feed identifier
            timestamp: frame timestamp (becomes the event timestamp)
            snapshot: returns the JPEG-encoded frame; errors propagate
            context_summary: most recent narrative text

        Returns:
            Number of requests launched
        """
        if self.backend is None:
            return 0

        launched = 0
        for node in nodes:
            key = node.key
            if not key:
                continue
            tier = node.tier
            limiter = self._limiters.setdefault(key, RateLimiter(interval=tier.interval))
            if not limiter.try_acquire(self.clock(), tier.interval):
                continue

            try:
                request = AnalyzeRequest(
                    prompt=key,
                    frame_snapshot=snapshot(),
                    feed_id=feed_id,
                    context_summary=context_summary,
                )
            except Exception:
                limiter.abort()
                raise

            try:
                call = self.backend.analyze(request)
            except Exception as e:
                limiter.release(self.clock())
                logger.warning(f"Analyze request for '{key}' failed: {e}")
                continue

            logger.debug(f"Analyze request launched for '{key}' at t={timestamp}")
            self._launch(
                limiter,
                call,
                self._make_handler(key, tier, feed_id, timestamp),
            )
            launched += 1
        return launched

    def _make_handler(
        self, prompt: str, tier: SensitivityTier, feed_id: str, timestamp: float
    ) -> Callable[[Any], None]:
        def handle(raw: Any):
            response = AnalyzeResponse.parse_lenient(raw)
            event = build_analyze_event(response, prompt, tier, feed_id, timestamp)
            if event is None:
                logger.debug(
                    f"Analyze '{prompt}' below threshold "
                    f"({response.confidence} < {tier.threshold})"
                )
                return
            logger.info(f"Analyze match '{prompt}': {event.description}")
            self.channel.put(event)

        return handle
