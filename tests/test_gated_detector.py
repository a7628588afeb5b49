import numpy as np

from lumenta.camera.frame import Frame
from lumenta.detector.base_detector import BaseDetector, BoundingBox, DetectionResult
from lumenta.detector.gated_detector import GatedDetector


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class CountingDetector(BaseDetector):
    def __init__(self, fail=False):
        self.calls = 0
        self.fail = fail

    def detect(self, frame):
        self.calls += 1
        if self.fail:
            raise RuntimeError("model crashed")
        return DetectionResult(
            boxes=[BoundingBox(10, 10, 20, 40)],
            labels=["person"],
            confidences=[0.9],
        )


FRAME = Frame(pixels=np.zeros((20, 20, 3), dtype=np.uint8))


def test_runs_once_per_interval_and_reuses_result():
    clock = FakeClock()
    backend = CountingDetector()
    gated = GatedDetector(backend, interval=1.2, clock=clock)

    first = gated.detect(FRAME)
    clock.now = 1.0
    second = gated.detect(FRAME)

    assert backend.calls == 1
    assert second is first
    assert second.labels == ["person"]

    clock.now = 1.2
    gated.detect(FRAME)
    assert backend.calls == 2


def test_disabled_never_calls_backend():
    backend = CountingDetector()
    gated = GatedDetector(backend, clock=FakeClock())
    result = gated.detect(FRAME, enabled=False)
    assert len(result) == 0
    assert backend.calls == 0


def test_no_backend_is_empty():
    assert len(GatedDetector(None).detect(FRAME)) == 0


def test_backend_failure_degrades_to_empty():
    clock = FakeClock()
    backend = CountingDetector(fail=True)
    gated = GatedDetector(backend, clock=clock)

    assert len(gated.detect(FRAME)) == 0
    # failure still consumes the interval
    clock.now = 0.5
    gated.detect(FRAME)
    assert backend.calls == 1


def test_reset_forces_rerun():
    backend = CountingDetector()
    gated = GatedDetector(backend, clock=FakeClock())
    gated.detect(FRAME)
    gated.reset()
    gated.detect(FRAME)
    assert backend.calls == 2


def test_motion_trigger_bypasses_interval():
    clock = FakeClock()
    backend = CountingDetector()
    gated = GatedDetector(backend, interval=1.2, motion_trigger_count=6, clock=clock)

    gated.detect(FRAME)
    clock.now = 0.3
    gated.detect(FRAME, motion_count=5)
    assert backend.calls == 1

    clock.now = 0.4
    gated.detect(FRAME, motion_count=6)
    assert backend.calls == 2

    # the early run restarts the interval
    clock.now = 1.0
    gated.detect(FRAME)
    assert backend.calls == 2


def test_motion_trigger_can_be_disabled():
    backend = CountingDetector()
    gated = GatedDetector(backend, motion_trigger_count=None, clock=FakeClock())
    gated.detect(FRAME)
    gated.detect(FRAME, motion_count=50)
    assert backend.calls == 1
