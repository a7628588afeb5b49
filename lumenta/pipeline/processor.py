"""Pipeline processor: per-frame event pipeline for one feed.

Each tick (one call to process_frame):

    motion diff + gated object detection      (run to completion)
    -> identity correlation                   (only for person detections)
    -> event assembly                         (this tick's events)
    -> launch analyze / narrative requests    (fire-and-forget)
    -> drain events finished since last tick
    -> merge by id, cache by second, sort by timestamp

Background results never appear on the tick that launched them.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Union

from lumenta.camera.frame import Frame, FrameSource, encode_snapshot
from lumenta.config.pipeline_config import (
    FeedSettings,
    PipelineConfig,
    load_feed_settings,
)
from lumenta.detector.base_detector import BaseDetector, DetectionResult
from lumenta.detector.detector_factory import (
    create_detector,
    create_gated_detector,
    get_detector_info,
)
from lumenta.detector.gated_detector import GatedDetector
from lumenta.detector.motion_detector import MotionDiffDetector
from lumenta.events.assembler import EventAssembler
from lumenta.events.event_cache import EventCache, merge_events
from lumenta.events.schema import VideoEvent
from lumenta.identity.base_identity import IdentityObservation
from lumenta.identity.correlator import IdentityCorrelator
from lumenta.identity.histogram_identity import HistogramIdentityBackend
from lumenta.identity.identity_registry import IdentityRegistry
from lumenta.logging.event_journal import EventJournal
from lumenta.profiler import StageProfiler, profiler as default_profiler
from lumenta.scheduling.analyze_scheduler import (
    AnalyzeBackend,
    AnalyzeNode,
    AnalyzeScheduler,
)
from lumenta.scheduling.event_channel import EventChannel
from lumenta.scheduling.narrative_scheduler import NarrativeBackend, NarrativeScheduler

logger = logging.getLogger(__name__)


@dataclass
class ProcessingOptions:
    enable_object_detection: bool = True
    enable_motion_overlay: bool = True
    enable_face_recognition: bool = False
    privacy_mode: bool = False
    analyze_nodes: List[AnalyzeNode] = field(default_factory=list)
    video_id: Optional[str] = None
    # None = use the feed's configured allow-list
    allow_list: Optional[FrozenSet[str]] = None
    enable_narrative: bool = True


@dataclass
class ProcessingResult:
    detections: DetectionResult
    events: List[VideoEvent]
    processing_time: float  # milliseconds
    identities: Optional[List[IdentityObservation]] = None

    def to_dict(self) -> dict:
        return {
            "detections": self.detections.to_dict(),
            "identities": [i.to_dict() for i in self.identities]
            if self.identities
            else None,
            "events": [e.to_dict() for e in self.events],
            "processing_time": self.processing_time,
        }


class FrameProcessor:
    """Per-feed frame pipeline.

    All state (previous frame, detector cache, rate limiters, pending events,
    event cache) lives on the instance for the lifetime of the feed. Must be
    driven from a single event loop.
    """

    def __init__(
        self,
        video_id: str,
        detector: Optional[Union[BaseDetector, GatedDetector]] = None,
        motion_detector: Optional[MotionDiffDetector] = None,
        identity_correlator: Optional[IdentityCorrelator] = None,
        analyze_backend: Optional[AnalyzeBackend] = None,
        narrative_backend: Optional[NarrativeBackend] = None,
        feed_settings: Optional[Dict[str, FeedSettings]] = None,
        journal: Optional[EventJournal] = None,
        clock: Callable[[], float] = time.monotonic,
        request_timeout: Optional[float] = None,
        narrative_interval: Optional[float] = None,
        channel_capacity: Optional[int] = None,
        profiler: Optional[StageProfiler] = None,
    ):
        """
        Args:
            video_id: feed identifier (event id prefix, request feed id)
            detector: neural backend, or an already-gated detector
            motion_detector: frame-differencing detector (default constants)
            identity_correlator: identity stage (None = no identity matching)
            analyze_backend: backend for prompt analysis (None = disabled)
            narrative_backend: backend for periodic narrative (None = disabled)
            feed_settings: per-feed allow-lists
            journal: optional JSONL journal for analyze/periodic events
            clock: monotonic time source for all rate limits
            request_timeout: seconds before a background request is abandoned
            narrative_interval: seconds between narrative requests
            channel_capacity: max events pending between ticks
            profiler: stage timing collector
        """
        self.video_id = video_id
        self.clock = clock

        if isinstance(detector, GatedDetector):
            self.object_detector = detector
        else:
            self.object_detector = create_gated_detector(detector, clock=clock)
        self.motion_detector = motion_detector or MotionDiffDetector()
        self.identity_correlator = identity_correlator
        self.assembler = EventAssembler(
            identity_tolerance=PipelineConfig.IDENTITY_MATCH_TOLERANCE,
            bypass_confidence=PipelineConfig.ALLOW_LIST_BYPASS_CONFIDENCE,
        )
        self.feed_settings = feed_settings or {}
        self.journal = journal
        self.profiler = profiler or default_profiler

        timeout = PipelineConfig.REQUEST_TIMEOUT if request_timeout is None else request_timeout
        self.channel = EventChannel(
            capacity=channel_capacity or PipelineConfig.EVENT_CHANNEL_CAPACITY
        )
        self.analyze_scheduler = AnalyzeScheduler(
            analyze_backend, self.channel, clock=clock, timeout=timeout
        )
        self.narrative_scheduler = NarrativeScheduler(
            narrative_backend,
            self.channel,
            interval=narrative_interval or PipelineConfig.NARRATIVE_INTERVAL,
            clock=clock,
            timeout=timeout,
        )

        self.event_cache = EventCache()
        self._previous_frame: Optional[Frame] = None

    @classmethod
    def from_config(cls, video_id: str, **overrides) -> "FrameProcessor":
        """Build a processor with the configured default backends."""
        # google-generativeai loads only when the default backends are wanted
        from lumenta.gemini.analyzer import get_gemini_analyzer

        gemini = get_gemini_analyzer()
        kwargs = {
            "detector": create_detector(),
            "identity_correlator": IdentityCorrelator(
                HistogramIdentityBackend(),
                IdentityRegistry(threshold=PipelineConfig.IDENTITY_SIMILARITY_THRESHOLD),
            ),
            "analyze_backend": gemini,
            "narrative_backend": gemini,
            "feed_settings": load_feed_settings(),
            "journal": EventJournal(PipelineConfig.EVENT_JOURNAL_DIR)
            if PipelineConfig.EVENT_JOURNAL
            else None,
        }
        kwargs.update(overrides)
        logger.info(
            f"Pipeline for {video_id}: detector={get_detector_info(kwargs['detector'])}"
        )
        return cls(video_id, **kwargs)

    async def process_frame(
        self,
        frame: Frame,
        timestamp: Optional[float] = None,
        options: Optional[ProcessingOptions] = None,
    ) -> ProcessingResult:
        """Run one tick.

        Backend failures degrade to "no contribution" and never raise. A frame
        that cannot be JPEG-encoded for the background stages raises
        ValueError.

        Args:
            frame: current frame
            timestamp: frame time in seconds (defaults to frame.timestamp)
            options: per-tick switches and analyze nodes

        Returns:
            ProcessingResult with events sorted by timestamp
        """
        start = time.perf_counter()
        options = options or ProcessingOptions()
        timestamp = frame.timestamp if timestamp is None else timestamp
        feed_id = options.video_id or self.video_id

        motion = DetectionResult.empty()
        if options.enable_motion_overlay:
            with self.profiler.profile("motion_diff", feed_id):
                motion = self.motion_detector.detect_with_previous(
                    frame, self._previous_frame
                )
        self._previous_frame = frame

        with self.profiler.profile("object_detection", feed_id):
            detections = self.object_detector.detect(
                frame,
                enabled=options.enable_object_detection,
                motion_count=len(motion),
            )

        identities: List[IdentityObservation] = []
        if self.identity_correlator is not None:
            with self.profiler.profile("identity", feed_id):
                identities = self.identity_correlator.correlate(
                    frame,
                    detections,
                    enabled=options.enable_face_recognition,
                    privacy_mode=options.privacy_mode,
                )

        settings = self.feed_settings.get(feed_id)
        allow_list = options.allow_list
        if allow_list is None and settings is not None:
            allow_list = settings.allow_list
        events = self.assembler.assemble(
            feed_id,
            timestamp,
            detections,
            motion=motion,
            identities=identities,
            allow_list=allow_list,
            bypass_confidence=settings.bypass_confidence if settings else None,
        )

        with self.profiler.profile("schedule", feed_id):
            self._schedule(frame, feed_id, timestamp, options)

        background = self.channel.drain()
        if background and self.journal is not None:
            self.journal.record(feed_id, background)

        merged = merge_events(events, background)
        self.event_cache.store(timestamp, merged)

        elapsed = time.perf_counter() - start
        self.profiler.record("total", elapsed, feed_id)

        return ProcessingResult(
            detections=detections.concat(motion),
            events=merged,
            processing_time=elapsed * 1000.0,
            identities=identities or None,
        )

    def _schedule(
        self, frame: Frame, feed_id: str, timestamp: float, options: ProcessingOptions
    ):
        # One JPEG per tick, encoded only if some request is actually launched
        encoded: Dict[str, bytes] = {}

        def snapshot() -> bytes:
            if "jpeg" not in encoded:
                encoded["jpeg"] = encode_snapshot(
                    frame, quality=PipelineConfig.SNAPSHOT_JPEG_QUALITY
                )
            return encoded["jpeg"]

        self.analyze_scheduler.schedule(
            options.analyze_nodes,
            feed_id,
            timestamp,
            snapshot,
            context_summary=self.narrative_scheduler.latest_summary,
        )
        if options.enable_narrative:
            self.narrative_scheduler.schedule(feed_id, timestamp, snapshot)

    async def process_source(
        self, source: FrameSource, options: Optional[ProcessingOptions] = None
    ) -> Optional[ProcessingResult]:
        """Run one tick from a frame source. None while paused or without a frame."""
        if source.paused:
            return None
        frame = source.read()
        if frame is None:
            return None
        return await self.process_frame(frame, frame.timestamp, options)

    def get_events_for_timestamp(self, timestamp: float) -> List[VideoEvent]:
        return self.event_cache.get(timestamp)

    def clear_cache(self):
        self.event_cache.clear()
        self._previous_frame = None

    async def aclose(self):
        """Cancel outstanding background requests and discard late results."""
        self.channel.close()
        await self.analyze_scheduler.aclose()
        await self.narrative_scheduler.aclose()
        logger.debug(f"FrameProcessor for {self.video_id} closed")


def analyze_nodes_from_dicts(raw: Iterable[dict]) -> List[AnalyzeNode]:
    """Build analyze nodes from graph-node configs, dropping blank prompts."""
    nodes = []
    for item in raw or []:
        prompt = (item or {}).get("prompt")
        if isinstance(prompt, str) and prompt.strip():
            nodes.append(
                AnalyzeNode(prompt=prompt, sensitivity=item.get("sensitivity") or "medium")
            )
    return nodes
