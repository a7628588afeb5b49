from lumenta.config.pipeline_config import PipelineConfig
from lumenta.detector.base_detector import BaseDetector, DetectionResult
from lumenta.detector.detector_factory import (
    create_detector,
    create_gated_detector,
    get_detector_info,
)


class NullDetector(BaseDetector):
    model_name = "null.pt"

    def detect(self, frame):
        return DetectionResult.empty()


def test_no_model_means_no_detector(monkeypatch):
    monkeypatch.setattr(PipelineConfig, "YOLO_MODEL", "")
    assert create_detector() is None


def test_gated_detector_uses_configured_interval(monkeypatch):
    monkeypatch.setattr(PipelineConfig, "DETECTION_INTERVAL", 0.5)
    gated = create_gated_detector(NullDetector(), clock=lambda: 0.0)
    assert gated.interval == 0.5


def test_gated_detector_motion_trigger_from_config(monkeypatch):
    monkeypatch.setattr(PipelineConfig, "MOTION_TRIGGER_COUNT", 0)
    assert create_gated_detector(NullDetector()).motion_trigger_count is None
    monkeypatch.setattr(PipelineConfig, "MOTION_TRIGGER_COUNT", 4)
    assert create_gated_detector(NullDetector()).motion_trigger_count == 4


def test_detector_info():
    assert get_detector_info(None) == {"type": "none"}
    info = get_detector_info(NullDetector())
    assert info["type"] == "NullDetector"
    assert info["model"] == "null.pt"
