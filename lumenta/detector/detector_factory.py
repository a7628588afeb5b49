"""Detector factory: builds the detection stages from configuration.

The neural backend is optional: with no model configured the pipeline runs
on motion markers alone.
"""

import logging
from typing import Optional

from lumenta.config.pipeline_config import PipelineConfig
from lumenta.detector.base_detector import BaseDetector
from lumenta.detector.gated_detector import GatedDetector

logger = logging.getLogger(__name__)


def create_detector(device: Optional[str] = None) -> Optional[BaseDetector]:
    """Create the neural detection backend from configuration.

    Args:
        device: Device to run the model on (defaults to PipelineConfig.DEVICE)

    Returns:
        YOLODetector, or None when YOLO_MODEL is empty
    """
    if not PipelineConfig.YOLO_MODEL:
        logger.info("No YOLO_MODEL configured, object detection disabled")
        return None

    # Imported here so the model stack loads only when a detector is wanted
    from lumenta.detector.yolo_detector import YOLODetector

    logger.info(f"Initializing detector: {PipelineConfig.YOLO_MODEL}")
    return YOLODetector(
        model_name=PipelineConfig.YOLO_MODEL,
        device=device or PipelineConfig.DEVICE,
        confidence=PipelineConfig.YOLO_CONFIDENCE,
    )


def create_gated_detector(backend: Optional[BaseDetector] = None, **kwargs) -> GatedDetector:
    """Wrap a backend in the configured interval gate."""
    return GatedDetector(
        backend,
        interval=PipelineConfig.DETECTION_INTERVAL,
        motion_trigger_count=PipelineConfig.MOTION_TRIGGER_COUNT or None,
        **kwargs,
    )


def get_detector_info(detector: Optional[BaseDetector]) -> dict:
    """Describe the configured detection backend."""
    if detector is None:
        return {"type": "none"}
    return {
        "type": type(detector).__name__,
        "model": getattr(detector, "model_name", "unknown"),
        "interval": PipelineConfig.DETECTION_INTERVAL,
    }
