"""Video event types."""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

from lumenta.detector.base_detector import BoundingBox


class EventType(str, Enum):
    MOTION = "motion"
    PERSON = "person"
    VEHICLE = "vehicle"
    OBJECT = "object"
    ALERT = "alert"
    ACTIVITY = "activity"

    @classmethod
    def coerce(cls, value: Any, default: "EventType") -> "EventType":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def coerce(cls, value: Any, default: "Severity") -> "Severity":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default


class EventSource(str, Enum):
    """Which asynchronous stage produced an event (None for per-tick events)."""

    ANALYZE = "analyze"
    PERIODIC = "periodic"


@dataclass(frozen=True)
class VideoEvent:
    """A typed, timestamped event. Same id means same event."""

    id: str
    timestamp: float
    type: EventType
    severity: Severity
    confidence: float
    description: str
    box: Optional[BoundingBox] = None
    identity: Optional[str] = None
    overlay_only: bool = False
    source: Optional[EventSource] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        data["severity"] = self.severity.value
        data["source"] = self.source.value if self.source else None
        data["box"] = self.box.to_dict() if self.box else None
        return data


def confidence_band(confidence: float) -> Severity:
    """>0.8 high, >0.6 medium, else low."""
    if confidence > 0.8:
        return Severity.HIGH
    if confidence > 0.6:
        return Severity.MEDIUM
    return Severity.LOW


def clamp_confidence(value: float) -> float:
    return max(0.0, min(1.0, float(value)))
