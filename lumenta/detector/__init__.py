"""Detection module."""

from lumenta.detector.base_detector import BaseDetector, BoundingBox, DetectionResult
from lumenta.detector.motion_detector import MotionDiffDetector, MOTION_LABEL
from lumenta.detector.gated_detector import GatedDetector
from lumenta.detector.detector_factory import (
    create_detector,
    create_gated_detector,
    get_detector_info,
)

__all__ = [
    "BaseDetector",
    "BoundingBox",
    "DetectionResult",
    "MotionDiffDetector",
    "MOTION_LABEL",
    "GatedDetector",
    "create_detector",
    "create_gated_detector",
    "get_detector_info",
]
