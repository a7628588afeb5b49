"""Per-frame event pipeline."""

from lumenta.pipeline.processor import (
    FrameProcessor,
    ProcessingOptions,
    ProcessingResult,
    analyze_nodes_from_dicts,
)

__all__ = [
    "FrameProcessor",
    "ProcessingOptions",
    "ProcessingResult",
    "analyze_nodes_from_dicts",
]
