"""Block-based frame-differencing motion detector.

Cheap, model-free motion markers. The frame is partitioned into a fixed
reference grid (GRID_COLS x GRID_ROWS blocks, scaled to the frame size), each
block is sampled at a fixed stride, and blocks whose mean per-channel absolute
difference against the previous frame reaches MOTION_THRESHOLD become motion
points. Points are then thinned by greedy spatial suppression so a dense
cluster of changed blocks yields a few well-separated markers instead of noise.
"""

import math
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from lumenta.camera.frame import Frame
from lumenta.detector.base_detector import BaseDetector, BoundingBox, DetectionResult

MOTION_LABEL = "motion"

GRID_COLS = 32
GRID_ROWS = 18
SAMPLE_STRIDE = 4
# Mean absolute difference (0-255 scale) for a block to count as moving
MOTION_THRESHOLD = 18.0
MAX_POINTS = 12
# Pixels between accepted marker centres
MIN_SEPARATION = 48.0
MARKER_SIZE = 24
# score / SCORE_NORMALIZATION gives confidence, capped at 1
SCORE_NORMALIZATION = 64.0


@dataclass
class MotionPoint:
    x: float
    y: float
    score: float


def _comparable_channels(pixels: np.ndarray) -> np.ndarray:
    """Return an (H, W, C) int16 view with alpha dropped."""
    if pixels.ndim == 2:
        pixels = pixels[:, :, np.newaxis]
    return pixels[:, :, :3].astype(np.int16)


def suppress_points(
    points: List[MotionPoint], max_points: int, min_separation: float
) -> List[MotionPoint]:
    """Greedy spatial suppression.

    Points are visited by descending score; a point is accepted unless it lies
    closer than min_separation to an already-accepted point. Stops after
    max_points acceptances.
    """
    accepted: List[MotionPoint] = []
    for point in sorted(points, key=lambda p: p.score, reverse=True):
        if len(accepted) >= max_points:
            break
        too_close = any(
            math.hypot(point.x - kept.x, point.y - kept.y) < min_separation
            for kept in accepted
        )
        if not too_close:
            accepted.append(point)
    return accepted


class MotionDiffDetector(BaseDetector):
    """Frame-differencing detector producing coarse 'motion' markers."""

    def __init__(
        self,
        grid_cols: int = GRID_COLS,
        grid_rows: int = GRID_ROWS,
        sample_stride: int = SAMPLE_STRIDE,
        threshold: float = MOTION_THRESHOLD,
        max_points: int = MAX_POINTS,
        min_separation: float = MIN_SEPARATION,
        marker_size: int = MARKER_SIZE,
    ):
        self.grid_cols = grid_cols
        self.grid_rows = grid_rows
        self.sample_stride = max(1, int(sample_stride))
        self.threshold = threshold
        self.max_points = max_points
        self.min_separation = min_separation
        self.marker_size = marker_size

    def detect(self, frame: Frame) -> DetectionResult:
        # Differencing needs a previous frame
        return DetectionResult.empty()

    def detect_with_previous(
        self, frame: Frame, previous: Optional[Frame]
    ) -> DetectionResult:
        if previous is None or previous.shape != frame.shape:
            return DetectionResult.empty()

        points = self.find_motion_points(frame.pixels, previous.pixels)
        accepted = suppress_points(points, self.max_points, self.min_separation)

        half = self.marker_size / 2.0
        return DetectionResult(
            boxes=[
                BoundingBox(p.x - half, p.y - half, self.marker_size, self.marker_size)
                for p in accepted
            ],
            labels=[MOTION_LABEL] * len(accepted),
            confidences=[min(1.0, p.score / SCORE_NORMALIZATION) for p in accepted],
        )

    def find_motion_points(
        self, current: np.ndarray, previous: np.ndarray
    ) -> List[MotionPoint]:
        """Score every grid block and return those at or above threshold."""
        height, width = current.shape[:2]
        cur = _comparable_channels(current)
        prev = _comparable_channels(previous)

        block_w = width / self.grid_cols
        block_h = height / self.grid_rows
        stride = self.sample_stride

        points: List[MotionPoint] = []
        for row in range(self.grid_rows):
            y0 = int(round(row * block_h))
            y1 = int(round((row + 1) * block_h))
            if y1 <= y0:
                continue
            for col in range(self.grid_cols):
                x0 = int(round(col * block_w))
                x1 = int(round((col + 1) * block_w))
                if x1 <= x0:
                    continue

                diff = np.abs(
                    cur[y0:y1:stride, x0:x1:stride] - prev[y0:y1:stride, x0:x1:stride]
                )
                score = float(diff.mean())
                if score >= self.threshold:
                    points.append(
                        MotionPoint(x=(x0 + x1) / 2.0, y=(y0 + y1) / 2.0, score=score)
                    )
        return points
