"""Ultralytics YOLO detection backend."""

import os

from ultralytics import YOLO

from lumenta.camera.frame import Frame
from lumenta.detector.base_detector import BaseDetector, BoundingBox, DetectionResult

MODELS_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "models")


class YOLODetector(BaseDetector):
    """COCO object detection with any Ultralytics YOLO checkpoint.

    Weights are looked up in models/ first; a bare name like "yolov8n.pt" is
    otherwise handed to Ultralytics, which downloads it.
    """

    def __init__(
        self, model_name: str = "yolov8n.pt", device: str = "cpu", confidence: float = 0.25
    ):
        """
        Args:
            model_name: checkpoint file name or path
            device: "cpu", "cuda" or "mps"
            confidence: minimum confidence for returned detections
        """
        self.model_name = model_name
        self.device = device
        self.confidence = confidence

        local = os.path.join(MODELS_DIR, model_name)
        self.model = YOLO(local if os.path.exists(local) else model_name)
        self.model.to(device)
        self.labels_by_id = dict(self.model.names)

    def detect(self, frame: Frame) -> DetectionResult:
        pixels = frame.pixels
        if pixels.ndim == 3 and pixels.shape[2] == 4:
            pixels = pixels[:, :, :3]

        # iou=0.4 merges boxes with >40% overlap (stricter than default 0.7)
        results = self.model(pixels, conf=self.confidence, iou=0.4, verbose=False)
        if not results or results[0].boxes is None:
            return DetectionResult.empty()

        found = results[0].boxes
        xyxy = found.xyxy.cpu().numpy()
        scores = found.conf.cpu().numpy()
        class_ids = found.cls.cpu().numpy().astype(int)

        return DetectionResult(
            boxes=[BoundingBox.from_xyxy(*coords) for coords in xyxy],
            labels=[self.labels_by_id.get(int(c), f"class_{c}") for c in class_ids],
            confidences=[float(s) for s in scores],
        )

    def get_class_names(self):
        return [self.labels_by_id[k] for k in sorted(self.labels_by_id)]
