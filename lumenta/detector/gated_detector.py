"""Interval-gated wrapper around a neural detection backend."""

import logging
import time
from typing import Callable, Optional

from lumenta.camera.frame import Frame
from lumenta.detector.base_detector import BaseDetector, DetectionResult

logger = logging.getLogger(__name__)


class GatedDetector:
    """Runs the wrapped detector at most once per `interval` seconds.

    Between runs the last computed result is returned unchanged, so the
    expensive model runs at its own cadence regardless of tick rate. When
    disabled for a tick the backend is not called at all.
    """

    def __init__(
        self,
        backend: Optional[BaseDetector],
        interval: float = 1.2,
        motion_trigger_count: Optional[int] = 6,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            backend: detection backend (None = always empty)
            interval: minimum wall-clock seconds between backend calls
            motion_trigger_count: motion markers on a tick that force an early
                run inside the interval (None = never)
            clock: time source (monotonic seconds)
        """
        self.backend = backend
        self.interval = interval
        self.motion_trigger_count = motion_trigger_count
        self.clock = clock
        self._last_run_at: Optional[float] = None
        self._cached = DetectionResult.empty()

    def detect(
        self, frame: Frame, enabled: bool = True, motion_count: int = 0
    ) -> DetectionResult:
        """Backend result for this tick, fresh or cached.

        A busy motion stage (`motion_count` at or above the trigger) runs the
        backend even inside the interval.
        """
        if not enabled or self.backend is None:
            return DetectionResult.empty()

        now = self.clock()
        busy = (
            self.motion_trigger_count is not None
            and motion_count >= self.motion_trigger_count
        )
        if (
            not busy
            and self._last_run_at is not None
            and now - self._last_run_at < self.interval
        ):
            return self._cached

        self._last_run_at = now
        try:
            self._cached = self.backend.detect(frame)
        except Exception as e:
            logger.warning(f"Object detection failed: {e}")
            self._cached = DetectionResult.empty()
        return self._cached

    def reset(self):
        self._last_run_at = None
        self._cached = DetectionResult.empty()
