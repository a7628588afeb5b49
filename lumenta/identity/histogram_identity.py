"""Simple identity embedding using a normalized colour histogram."""

import numpy as np

from lumenta.camera.frame import Frame
from lumenta.detector.base_detector import BoundingBox
from lumenta.identity.base_identity import BaseIdentityBackend


class HistogramIdentityBackend(BaseIdentityBackend):
    """Identity embeddings from per-channel colour histograms of the box crop.

    Fast and CPU-friendly. For production, replace with a learned face
    embedding (e.g. ArcFace).
    """

    def __init__(self, bins: int = 16):
        """
        Args:
            bins: number of histogram bins per channel
        """
        self.bins = bins

    def extract_embedding(self, frame: Frame, box: BoundingBox) -> np.ndarray:
        pixels = frame.pixels
        if pixels.ndim == 2:
            pixels = pixels[:, :, np.newaxis]
        pixels = pixels[:, :, :3]
        channels = pixels.shape[2]

        x1, y1 = max(0, int(box.x)), max(0, int(box.y))
        x2 = min(frame.width, int(box.x + box.width))
        y2 = min(frame.height, int(box.y + box.height))

        if x2 <= x1 or y2 <= y1:
            # Box outside the frame: zero feature never matches
            return np.zeros(self.bins * channels, dtype=np.float32)

        crop = pixels[y1:y2, x1:x2]
        hists = [
            np.histogram(crop[:, :, c], bins=self.bins, range=(0, 256))[0]
            for c in range(channels)
        ]
        hist = np.concatenate(hists).astype(np.float32)
        return hist / (hist.sum() + 1e-5)
