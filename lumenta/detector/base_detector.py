"""Abstract base class for detection backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from lumenta.camera.frame import Frame


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in pixel coordinates (top-left origin)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        return cls(x=float(x1), y=float(y1), width=float(x2 - x1), height=float(y2 - y1))

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class DetectionResult:
    """Parallel lists describing N detections.

    Index i of boxes, labels and confidences describes one detection.
    """

    boxes: List[BoundingBox] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)
    confidences: List[float] = field(default_factory=list)

    def __post_init__(self):
        if not (len(self.boxes) == len(self.labels) == len(self.confidences)):
            raise ValueError(
                "DetectionResult arrays must have equal length "
                f"(boxes={len(self.boxes)}, labels={len(self.labels)}, "
                f"confidences={len(self.confidences)})"
            )

    def __len__(self):
        return len(self.boxes)

    @classmethod
    def empty(cls) -> "DetectionResult":
        return cls()

    def __iter__(self):
        return iter(zip(self.boxes, self.labels, self.confidences))

    def concat(self, other: "DetectionResult") -> "DetectionResult":
        return DetectionResult(
            boxes=self.boxes + other.boxes,
            labels=self.labels + other.labels,
            confidences=self.confidences + other.confidences,
        )

    def to_dict(self) -> dict:
        return {
            "boxes": [b.to_dict() for b in self.boxes],
            "labels": list(self.labels),
            "confidences": list(self.confidences),
        }


class BaseDetector(ABC):
    """Abstract interface for detection backends."""

    @abstractmethod
    def detect(self, frame: Frame) -> DetectionResult:
        """
        Run detection on a single frame.

        Args:
            frame: current frame

        Returns:
            DetectionResult with boxes, labels, confidences
        """
        pass

    def detect_with_previous(
        self, frame: Frame, previous: Optional[Frame]
    ) -> DetectionResult:
        """Run detection with access to the preceding frame.

        Backends that do not use temporal context just run detect().
        """
        return self.detect(frame)
