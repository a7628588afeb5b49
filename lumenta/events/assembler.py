"""Maps raw detections to typed VideoEvents.

Label policy:

    person                          -> person   (>0.8 high, >0.6 medium, else low)
    car / truck / bus / motorcycle  -> vehicle  (>0.7 medium, else low)
    motion-diff marker              -> motion   (low, overlay only)
    any other label, conf > 0.5     -> motion   (>0.7 medium, else low)

When the feed has an allow-list, neural detections whose label is not on it
are dropped unless their confidence exceeds the bypass threshold.
"""

from typing import FrozenSet, List, Optional

from lumenta.detector.base_detector import DetectionResult
from lumenta.events.schema import EventType, Severity, VideoEvent
from lumenta.identity.base_identity import IdentityObservation
from lumenta.identity.correlator import match_observation

VEHICLE_LABELS = frozenset({"car", "truck", "bus", "motorcycle"})
MIN_OTHER_CONFIDENCE = 0.5


def person_severity(confidence: float) -> Severity:
    if confidence > 0.8:
        return Severity.HIGH
    if confidence > 0.6:
        return Severity.MEDIUM
    return Severity.LOW


def coarse_severity(confidence: float) -> Severity:
    return Severity.MEDIUM if confidence > 0.7 else Severity.LOW


def passes_allow_list(
    label: str,
    confidence: float,
    allow_list: Optional[FrozenSet[str]],
    bypass_confidence: float,
) -> bool:
    if allow_list is None:
        return True
    return label in allow_list or confidence > bypass_confidence


class EventAssembler:
    """Builds this tick's synchronous events."""

    def __init__(self, identity_tolerance: float = 10.0, bypass_confidence: float = 0.9):
        self.identity_tolerance = identity_tolerance
        self.bypass_confidence = bypass_confidence

    def assemble(
        self,
        feed_id: str,
        timestamp: float,
        detections: DetectionResult,
        motion: Optional[DetectionResult] = None,
        identities: Optional[List[IdentityObservation]] = None,
        allow_list: Optional[FrozenSet[str]] = None,
        bypass_confidence: Optional[float] = None,
    ) -> List[VideoEvent]:
        """
        Args:
            feed_id: feed identifier used as the event id prefix
            timestamp: frame timestamp in seconds
            detections: neural detector output
            motion: motion-diff markers (overlay only, never filtered)
            identities: identity matches for this tick
            allow_list: labels exempt from noise filtering (None = no filter)
            bypass_confidence: override of the allow-list bypass threshold

        Returns:
            Events in detection order
        """
        identities = identities or []
        bypass = self.bypass_confidence if bypass_confidence is None else bypass_confidence
        events: List[VideoEvent] = []

        for i, (box, label, confidence) in enumerate(detections):
            if not passes_allow_list(label, confidence, allow_list, bypass):
                continue

            event_id = f"{feed_id}-{timestamp}-{i}"

            if label == "person":
                match = match_observation(box, identities, self.identity_tolerance)
                description = f"{label} detected"
                if match is not None:
                    description += (
                        f" - Identity: {match.identity} "
                        f"({round(match.similarity * 100)}% match)"
                    )
                events.append(
                    VideoEvent(
                        id=event_id,
                        timestamp=timestamp,
                        type=EventType.PERSON,
                        severity=person_severity(confidence),
                        confidence=confidence,
                        description=description,
                        box=box,
                        identity=match.identity if match else None,
                    )
                )
            elif label in VEHICLE_LABELS:
                events.append(
                    VideoEvent(
                        id=event_id,
                        timestamp=timestamp,
                        type=EventType.VEHICLE,
                        severity=coarse_severity(confidence),
                        confidence=confidence,
                        description=f"{label} detected",
                        box=box,
                    )
                )
            elif confidence > MIN_OTHER_CONFIDENCE:
                events.append(
                    VideoEvent(
                        id=event_id,
                        timestamp=timestamp,
                        type=EventType.MOTION,
                        severity=coarse_severity(confidence),
                        confidence=confidence,
                        description=f"Motion detected - {label}",
                        box=box,
                    )
                )

        if motion is not None:
            for i, (box, _, confidence) in enumerate(motion):
                events.append(
                    VideoEvent(
                        id=f"{feed_id}-{timestamp}-motion-{i}",
                        timestamp=timestamp,
                        type=EventType.MOTION,
                        severity=Severity.LOW,
                        confidence=confidence,
                        description="Motion detected",
                        box=box,
                        overlay_only=True,
                    )
                )

        return events
