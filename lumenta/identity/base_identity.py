"""Abstract base class for identity (embedding) backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

import numpy as np

from lumenta.camera.frame import Frame
from lumenta.detector.base_detector import BoundingBox

if TYPE_CHECKING:
    from lumenta.identity.identity_registry import IdentityRegistry


@dataclass(frozen=True)
class IdentityMatch:
    identity: str
    similarity: float
    threshold: float


@dataclass(frozen=True)
class IdentityObservation:
    """An identity match located at the detection box it was extracted from."""

    identity: str
    similarity: float
    box: BoundingBox

    def to_dict(self) -> dict:
        return {
            "identity": self.identity,
            "similarity": self.similarity,
            "box": self.box.to_dict(),
        }


class BaseIdentityBackend(ABC):
    """Abstract interface for per-person embedding extraction and lookup."""

    @abstractmethod
    def extract_embedding(self, frame: Frame, box: BoundingBox) -> np.ndarray:
        """
        Extract an embedding for the region inside `box`.

        Args:
            frame: current frame
            box: person bounding box in pixel coords

        Returns:
            (D,) float32 feature vector
        """
        raise NotImplementedError()

    def identify(
        self, embedding: np.ndarray, registry: "IdentityRegistry"
    ) -> Optional[IdentityMatch]:
        """Return the best registry match above the registry threshold."""
        return registry.best_match(embedding)
