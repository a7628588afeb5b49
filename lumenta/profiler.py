"""Timing statistics for pipeline stages.

Tracks per-stage timings (motion, detection, identity, scheduling, total),
globally and per feed.
"""

import statistics
import time
from collections import defaultdict, deque
from contextlib import contextmanager
from typing import Deque, Dict, Optional

# Recent samples kept per stage for median / p95
WINDOW = 100


class StageStats:
    """Running totals plus a window of recent durations for one stage."""

    def __init__(self, name: str):
        self.name = name
        self.count = 0
        self.total = 0.0
        self.fastest: Optional[float] = None
        self.slowest = 0.0
        self.recent: Deque[float] = deque(maxlen=WINDOW)

    def add(self, seconds: float):
        self.count += 1
        self.total += seconds
        self.fastest = seconds if self.fastest is None else min(self.fastest, seconds)
        self.slowest = max(self.slowest, seconds)
        self.recent.append(seconds)

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0

    def percentile(self, q: float) -> float:
        if not self.recent:
            return 0.0
        ordered = sorted(self.recent)
        return ordered[min(int(len(ordered) * q), len(ordered) - 1)]

    def to_dict(self) -> dict:
        ms = 1000.0
        return {
            "count": self.count,
            "avg_ms": self.mean * ms,
            "median_ms": (statistics.median(self.recent) if self.recent else 0.0) * ms,
            "min_ms": (self.fastest or 0.0) * ms,
            "max_ms": self.slowest * ms,
            "p95_ms": self.percentile(0.95) * ms,
        }


class StageProfiler:
    """Per-stage profiler, optionally broken down by feed."""

    def __init__(self):
        self.stats: Dict[str, StageStats] = {}
        self.feed_stats: Dict[str, Dict[str, StageStats]] = defaultdict(dict)

    @contextmanager
    def profile(self, stage: str, feed_id: Optional[str] = None):
        """Time the enclosed block as `stage`.

        Usage:
            with profiler.profile("object_detection", feed_id):
                result = detector.detect(frame)
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(stage, time.perf_counter() - start, feed_id)

    def record(self, stage: str, seconds: float, feed_id: Optional[str] = None):
        self.stats.setdefault(stage, StageStats(stage)).add(seconds)
        if feed_id:
            self.feed_stats[feed_id].setdefault(stage, StageStats(stage)).add(seconds)

    def get_summary(self, feed_id: Optional[str] = None) -> Dict[str, dict]:
        source = self.feed_stats.get(feed_id, {}) if feed_id else self.stats
        return {name: stage.to_dict() for name, stage in source.items()}

    def reset(self, feed_id: Optional[str] = None):
        if feed_id:
            self.feed_stats.pop(feed_id, None)
        else:
            self.stats.clear()
            self.feed_stats.clear()


# Shared by every pipeline in the process
profiler = StageProfiler()
