"""Identity correlation for person detections.

Detection and identity extraction are independent stages with no shared
identifier. An identity is attached to a detection when their box centroids
agree within a small pixel tolerance on both axes. This is best-effort: two
people standing very close together can swap or share an identity.
"""

import logging
from typing import List, Optional

from lumenta.camera.frame import Frame
from lumenta.detector.base_detector import BoundingBox, DetectionResult
from lumenta.identity.base_identity import BaseIdentityBackend, IdentityObservation
from lumenta.identity.identity_registry import IdentityRegistry

logger = logging.getLogger(__name__)

PERSON_LABEL = "person"


def match_observation(
    box: BoundingBox, observations: List[IdentityObservation], tolerance: float
) -> Optional[IdentityObservation]:
    """Nearest observation whose centroid is within tolerance of box's centroid.

    Args:
        box: detection box
        observations: identity matches from this tick
        tolerance: max per-axis centroid offset in pixels

    Returns:
        Closest qualifying observation, or None
    """
    cx, cy = box.center
    best = None
    best_dist = float("inf")
    for obs in observations:
        ox, oy = obs.box.center
        dx, dy = abs(ox - cx), abs(oy - cy)
        if dx < tolerance and dy < tolerance and dx + dy < best_dist:
            best = obs
            best_dist = dx + dy
    return best


class IdentityCorrelator:
    """Runs identity lookup for person detections."""

    def __init__(
        self,
        backend: Optional[BaseIdentityBackend],
        registry: Optional[IdentityRegistry] = None,
    ):
        self.backend = backend
        self.registry = registry if registry is not None else IdentityRegistry()

    def should_run(
        self, detections: DetectionResult, enabled: bool, privacy_mode: bool
    ) -> bool:
        return (
            enabled
            and not privacy_mode
            and self.backend is not None
            and len(self.registry) > 0
            and PERSON_LABEL in detections.labels
        )

    def correlate(
        self,
        frame: Frame,
        detections: DetectionResult,
        enabled: bool = True,
        privacy_mode: bool = False,
    ) -> List[IdentityObservation]:
        """Identify every person box; failures skip that box."""
        if not self.should_run(detections, enabled, privacy_mode):
            return []

        observations: List[IdentityObservation] = []
        for box, label, _ in detections:
            if label != PERSON_LABEL:
                continue
            try:
                embedding = self.backend.extract_embedding(frame, box)
                match = self.backend.identify(embedding, self.registry)
            except Exception as e:
                logger.debug(f"Identity extraction failed: {e}")
                continue

            if match is not None:
                observations.append(
                    IdentityObservation(
                        identity=match.identity, similarity=match.similarity, box=box
                    )
                )
        return observations
