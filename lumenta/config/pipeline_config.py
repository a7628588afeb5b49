"""Global pipeline configuration as class-level attributes.

This module defines PipelineConfig as a singleton-like configuration class
that holds all global settings for the frame pipeline. Environment variables
(optionally loaded from a .env file) are read once at import time and stored
here, making them accessible throughout the codebase without repeating env
lookups.

Usage:
    from lumenta.config.pipeline_config import PipelineConfig

    # Access settings
    interval = PipelineConfig.DETECTION_INTERVAL
    model = PipelineConfig.YOLO_MODEL

    # Override if needed (before pipeline init)
    PipelineConfig.DETECTION_INTERVAL = 0.5

Per-feed settings (allow-lists) live in a JSON file pointed to by FEED_CONFIG:

    {
      "feeds": {
        "camera-1": {"allow_list": ["person"], "bypass_confidence": 0.9}
      }
    }
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()


class PipelineConfig:
    """Global pipeline configuration class.

    All settings are class attributes initialized from environment variables
    at module load time.
    """

    # ========================================================================
    # OBJECT DETECTION
    # ========================================================================

    # YOLO model name (resolved from models/ folder or downloaded)
    # Override via env: YOLO_MODEL=yolov8n.pt
    YOLO_MODEL: str = os.getenv("YOLO_MODEL", "yolov8n.pt")

    # YOLO confidence threshold (0.0-1.0, lower = more sensitive)
    YOLO_CONFIDENCE: float = float(os.getenv("YOLO_CONFIDENCE", "0.25"))

    # Device selection: 'cpu', 'cuda', or 'mps'
    DEVICE: str = os.getenv("DEVICE", "cpu")

    # Re-run the neural detector at most once per this many seconds.
    # Between runs the last result is reused.
    # Override via env: DETECTION_INTERVAL=1.2
    DETECTION_INTERVAL: float = float(os.getenv("DETECTION_INTERVAL", "1.2"))

    # Motion markers on one tick that run the detector early (0 = never)
    MOTION_TRIGGER_COUNT: int = int(os.getenv("MOTION_TRIGGER_COUNT", "6"))

    # ========================================================================
    # IDENTITY
    # ========================================================================

    # Minimum cosine similarity for a known-identity match
    IDENTITY_SIMILARITY_THRESHOLD: float = float(
        os.getenv("IDENTITY_SIMILARITY_THRESHOLD", "0.6")
    )

    # Max centroid offset (pixels, per axis) to attach an identity to a detection
    IDENTITY_MATCH_TOLERANCE: float = float(
        os.getenv("IDENTITY_MATCH_TOLERANCE", "10")
    )

    # ========================================================================
    # ALLOW-LIST FILTERING
    # ========================================================================

    # Detections outside a feed's allow-list survive only above this confidence
    ALLOW_LIST_BYPASS_CONFIDENCE: float = float(
        os.getenv("ALLOW_LIST_BYPASS_CONFIDENCE", "0.9")
    )

    # Path to per-feed settings JSON file
    # Override via env: FEED_CONFIG=/path/to/feeds.json
    FEED_CONFIG: str = os.getenv("FEED_CONFIG", "config/feeds.json")

    # ========================================================================
    # SEMANTIC ANALYSIS (Gemini)
    # ========================================================================

    GEMINI_API_KEY: Optional[str] = os.getenv("GEMINI_API_KEY", None)

    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")

    # Seconds between narrative (scene description) requests
    NARRATIVE_INTERVAL: float = float(os.getenv("NARRATIVE_INTERVAL", "5"))

    # Seconds before an outstanding analyze/narrative request is abandoned.
    # A timed-out request releases its slot like any other failure.
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "30"))

    # Max events waiting to be drained into the next tick
    EVENT_CHANNEL_CAPACITY: int = int(os.getenv("EVENT_CHANNEL_CAPACITY", "256"))

    # JPEG quality for frame snapshots sent to the vision-language backend
    SNAPSHOT_JPEG_QUALITY: int = int(os.getenv("SNAPSHOT_JPEG_QUALITY", "80"))

    # ========================================================================
    # OUTPUT
    # ========================================================================

    # Append semantic events (analyze / periodic) to a JSONL journal
    EVENT_JOURNAL: bool = os.getenv("EVENT_JOURNAL", "false").lower() in (
        "1",
        "true",
        "yes",
    )
    EVENT_JOURNAL_DIR: str = os.getenv("EVENT_JOURNAL_DIR", "output/logs")

    @classmethod
    def get_summary(cls) -> dict:
        """Return a dictionary of all configuration settings.

        Useful for debugging and logging configuration state. The API key is
        reported only as set/unset.
        """
        return {
            "YOLO_MODEL": cls.YOLO_MODEL,
            "YOLO_CONFIDENCE": cls.YOLO_CONFIDENCE,
            "DEVICE": cls.DEVICE,
            "DETECTION_INTERVAL": cls.DETECTION_INTERVAL,
            "MOTION_TRIGGER_COUNT": cls.MOTION_TRIGGER_COUNT,
            "IDENTITY_SIMILARITY_THRESHOLD": cls.IDENTITY_SIMILARITY_THRESHOLD,
            "IDENTITY_MATCH_TOLERANCE": cls.IDENTITY_MATCH_TOLERANCE,
            "ALLOW_LIST_BYPASS_CONFIDENCE": cls.ALLOW_LIST_BYPASS_CONFIDENCE,
            "FEED_CONFIG": cls.FEED_CONFIG,
            "GEMINI_API_KEY": "set" if cls.GEMINI_API_KEY else "unset",
            "GEMINI_MODEL": cls.GEMINI_MODEL,
            "NARRATIVE_INTERVAL": cls.NARRATIVE_INTERVAL,
            "REQUEST_TIMEOUT": cls.REQUEST_TIMEOUT,
            "EVENT_CHANNEL_CAPACITY": cls.EVENT_CHANNEL_CAPACITY,
            "EVENT_JOURNAL": cls.EVENT_JOURNAL,
        }

    @classmethod
    def log_summary(cls) -> None:
        """Log configuration summary at INFO level."""
        for key, value in cls.get_summary().items():
            logger.info(f"  {key:30s} = {value}")


@dataclass(frozen=True)
class FeedSettings:
    """Per-feed filtering settings."""

    allow_list: Optional[FrozenSet[str]] = None
    bypass_confidence: float = 0.9


def load_feed_settings(path: Optional[str] = None) -> Dict[str, FeedSettings]:
    """Load per-feed settings from a JSON file.

    A missing file means no feed has settings. A file that exists but cannot
    be parsed raises.

    Args:
        path: JSON file path (defaults to PipelineConfig.FEED_CONFIG)

    Returns:
        Dict mapping feed id -> FeedSettings
    """
    config_path = Path(path or PipelineConfig.FEED_CONFIG)
    if not config_path.exists():
        logger.debug(f"No feed config at {config_path}, using defaults")
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    feeds = data.get("feeds", {})
    if not isinstance(feeds, dict):
        raise ValueError(f"'feeds' must be an object in {config_path}")

    settings: Dict[str, FeedSettings] = {}
    for feed_id, raw in feeds.items():
        raw = raw or {}
        allow_list = raw.get("allow_list")
        settings[feed_id] = FeedSettings(
            allow_list=frozenset(allow_list) if allow_list is not None else None,
            bypass_confidence=float(
                raw.get("bypass_confidence", PipelineConfig.ALLOW_LIST_BYPASS_CONFIDENCE)
            ),
        )

    logger.info(f"Loaded settings for {len(settings)} feeds from {config_path}")
    return settings
