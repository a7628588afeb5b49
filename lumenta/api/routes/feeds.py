"""
Per-feed frame ingest and event lookup.

Provides endpoints for:
- Pushing a JPEG frame through the feed's pipeline
- Looking up cached events for a second of the feed's timeline
- Clearing a feed's event cache
"""

import json
import logging
import time
from typing import Callable, Dict, List, Optional

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile
from pydantic import BaseModel, ValidationError

from lumenta.camera.frame import decode_image
from lumenta.pipeline.processor import (
    FrameProcessor,
    ProcessingOptions,
    analyze_nodes_from_dicts,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/feeds", tags=["feeds"])

ProcessorFactory = Callable[[str], FrameProcessor]

# One processor per feed, created on first frame
_processors: Dict[str, FrameProcessor] = {}
_factory: ProcessorFactory = FrameProcessor.from_config


def set_processor_factory(factory: ProcessorFactory):
    global _factory
    _factory = factory


def get_processor(feed_id: str) -> FrameProcessor:
    processor = _processors.get(feed_id)
    if processor is None:
        processor = _factory(feed_id)
        _processors[feed_id] = processor
        logger.info(f"Created pipeline for feed {feed_id}")
    return processor


async def close_processors():
    """Shut down every feed pipeline (cancels outstanding requests)."""
    for feed_id, processor in list(_processors.items()):
        try:
            await processor.aclose()
        except Exception as e:
            logger.warning(f"Failed to close pipeline for {feed_id}: {e}")
    _processors.clear()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================


class AnalyzeNodeModel(BaseModel):
    prompt: str
    sensitivity: Optional[str] = "medium"


class EventsResponse(BaseModel):
    feed_id: str
    timestamp: float
    events: List[dict]


def _parse_analyze(raw: Optional[str]) -> list:
    if not raw:
        return []
    try:
        items = json.loads(raw)
        if not isinstance(items, list):
            raise ValueError("analyze must be a JSON list")
        nodes = [AnalyzeNodeModel.model_validate(item).model_dump() for item in items]
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid analyze nodes: {e}")
    return analyze_nodes_from_dicts(nodes)


def _parse_allow_list(raw: Optional[str]) -> Optional[frozenset]:
    if raw is None or raw == "":
        return None
    try:
        labels = json.loads(raw)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid allow_list: {e}")
    if not isinstance(labels, list):
        raise HTTPException(status_code=400, detail="allow_list must be a JSON list")
    return frozenset(str(label) for label in labels)


# ============================================================================
# ENDPOINTS
# ============================================================================


@router.post("/{feed_id}/frames")
async def ingest_frame(
    feed_id: str,
    file: UploadFile = File(...),
    timestamp: Optional[float] = Form(None),
    analyze: Optional[str] = Form(None),
    allow_list: Optional[str] = Form(None),
    enable_object_detection: bool = Form(True),
    enable_motion_overlay: bool = Form(True),
    enable_face_recognition: bool = Form(False),
    privacy_mode: bool = Form(False),
    enable_narrative: bool = Form(True),
):
    """Run one pipeline tick on an uploaded JPEG frame.

    Form fields:
        timestamp: frame time in seconds (defaults to server wall time)
        analyze: JSON list of {"prompt", "sensitivity"} nodes
        allow_list: JSON list of labels exempt from noise filtering
    """
    nodes = _parse_analyze(analyze)
    labels = _parse_allow_list(allow_list)

    data = await file.read()
    ts = time.time() if timestamp is None else timestamp
    try:
        frame = decode_image(data, ts)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    options = ProcessingOptions(
        enable_object_detection=enable_object_detection,
        enable_motion_overlay=enable_motion_overlay,
        enable_face_recognition=enable_face_recognition,
        privacy_mode=privacy_mode,
        analyze_nodes=nodes,
        video_id=feed_id,
        allow_list=labels,
        enable_narrative=enable_narrative,
    )

    processor = get_processor(feed_id)
    try:
        result = await processor.process_frame(frame, ts, options)
    except ValueError as e:
        logger.error(f"Frame processing failed for {feed_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {"feed_id": feed_id, "timestamp": ts, **result.to_dict()}


@router.get("/{feed_id}/events", response_model=EventsResponse)
async def get_events(feed_id: str, t: float = Query(..., description="Seconds")):
    processor = _processors.get(feed_id)
    if processor is None:
        raise HTTPException(status_code=404, detail=f"Feed {feed_id} not found")
    events = processor.get_events_for_timestamp(t)
    return EventsResponse(
        feed_id=feed_id, timestamp=t, events=[e.to_dict() for e in events]
    )


@router.delete("/{feed_id}/events")
async def clear_events(feed_id: str):
    processor = _processors.get(feed_id)
    if processor is None:
        raise HTTPException(status_code=404, detail=f"Feed {feed_id} not found")
    processor.clear_cache()
    return {"ok": True, "feed_id": feed_id}
