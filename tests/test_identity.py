import numpy as np
import pytest

from lumenta.camera.frame import Frame
from lumenta.detector.base_detector import BoundingBox, DetectionResult
from lumenta.identity.base_identity import BaseIdentityBackend, IdentityObservation
from lumenta.identity.correlator import IdentityCorrelator, match_observation
from lumenta.identity.histogram_identity import HistogramIdentityBackend
from lumenta.identity.identity_registry import IdentityRegistry, l2_normalize


class BoxCornerBackend(BaseIdentityBackend):
    """Embedding is a one-hot vector chosen by the box's x position."""

    def __init__(self, fail_at_x=None):
        self.fail_at_x = fail_at_x
        self.calls = 0

    def extract_embedding(self, frame, box):
        self.calls += 1
        if box.x == self.fail_at_x:
            raise RuntimeError("crop failed")
        vec = np.zeros(3, dtype=np.float32)
        vec[int(box.x) % 3] = 1.0
        return vec


FRAME = Frame(pixels=np.zeros((100, 100, 3), dtype=np.uint8))


def _registry():
    registry = IdentityRegistry(threshold=0.6)
    registry.add("alice", [1.0, 0.0, 0.0])
    registry.add("bob", [0.0, 1.0, 0.0])
    return registry


def test_registry_best_match_above_threshold():
    registry = _registry()
    match = registry.best_match(l2_normalize([0.9, 0.1, 0.0]))
    assert match is not None
    assert match.identity == "alice"
    assert match.similarity > 0.6


def test_registry_threshold_is_strict():
    registry = IdentityRegistry(threshold=0.0)
    registry.add("alice", [1.0, 0.0])
    query = [0.6, 0.8]

    match = registry.best_match(query)
    assert match is not None
    # a similarity equal to the threshold is not a match
    assert registry.best_match(query, threshold=match.similarity) is None
    assert registry.best_match(query, threshold=match.similarity - 0.01) is not None


def test_registry_no_match_for_unrelated_vector():
    assert _registry().best_match([0.0, 0.0, 1.0]) is None


def test_registry_remove_and_replace():
    registry = _registry()
    registry.add("alice", [0.0, 0.0, 1.0])
    assert len(registry) == 2
    assert registry.best_match([0.0, 0.0, 1.0]).identity == "alice"

    assert registry.remove("bob") is True
    assert registry.remove("bob") is False
    assert registry.best_match([0.0, 1.0, 0.0]) is None


def test_registry_rejects_dimension_change():
    registry = _registry()
    with pytest.raises(ValueError):
        registry.add("carol", [1.0, 0.0])
    assert registry.best_match([1.0, 0.0]) is None


def test_histogram_embedding_shape_and_outside_box():
    backend = HistogramIdentityBackend(bins=8)
    frame = Frame(pixels=np.full((50, 50, 3), 128, dtype=np.uint8))

    emb = backend.extract_embedding(frame, BoundingBox(5, 5, 20, 20))
    assert emb.shape == (24,)
    assert emb.sum() == pytest.approx(1.0, rel=1e-3)

    outside = backend.extract_embedding(frame, BoundingBox(80, 80, 10, 10))
    assert not outside.any()


def test_match_observation_requires_both_axes_within_tolerance():
    obs = IdentityObservation("alice", 0.9, BoundingBox(100, 100, 20, 40))
    near = BoundingBox(105, 95, 20, 40)
    far_x = BoundingBox(111, 100, 20, 40)

    assert match_observation(near, [obs], tolerance=10) is obs
    assert match_observation(far_x, [obs], tolerance=10) is None


def test_match_observation_picks_nearest():
    a = IdentityObservation("alice", 0.9, BoundingBox(100, 100, 20, 20))
    b = IdentityObservation("bob", 0.9, BoundingBox(106, 100, 20, 20))
    assert match_observation(BoundingBox(104, 100, 20, 20), [a, b], 10).identity == "bob"


def test_correlator_skips_when_disabled_or_private():
    backend = BoxCornerBackend()
    correlator = IdentityCorrelator(backend, _registry())
    dets = DetectionResult([BoundingBox(0, 0, 10, 10)], ["person"], [0.9])

    assert correlator.correlate(FRAME, dets, enabled=False) == []
    assert correlator.correlate(FRAME, dets, enabled=True, privacy_mode=True) == []
    assert backend.calls == 0


def test_correlator_skips_without_persons_or_registry():
    backend = BoxCornerBackend()
    cars = DetectionResult([BoundingBox(0, 0, 10, 10)], ["car"], [0.9])
    persons = DetectionResult([BoundingBox(0, 0, 10, 10)], ["person"], [0.9])

    assert IdentityCorrelator(backend, _registry()).correlate(FRAME, cars) == []
    assert IdentityCorrelator(backend, IdentityRegistry()).correlate(FRAME, persons) == []
    assert backend.calls == 0


def test_correlator_matches_person_boxes_and_skips_failures():
    backend = BoxCornerBackend(fail_at_x=3)
    correlator = IdentityCorrelator(backend, _registry())
    dets = DetectionResult(
        boxes=[
            BoundingBox(0, 0, 10, 10),  # alice
            BoundingBox(1, 0, 10, 10),  # bob
            BoundingBox(2, 0, 10, 10),  # unknown
            BoundingBox(3, 0, 10, 10),  # extraction fails
            BoundingBox(30, 0, 10, 10),  # car, not looked up
        ],
        labels=["person", "person", "person", "person", "car"],
        confidences=[0.9] * 5,
    )

    observations = correlator.correlate(FRAME, dets)

    assert [o.identity for o in observations] == ["alice", "bob"]
    assert observations[0].box == dets.boxes[0]
    assert backend.calls == 4
