"""Rate-limited background analysis stages."""

from lumenta.scheduling.rate_limiter import RateLimiter
from lumenta.scheduling.event_channel import EventChannel
from lumenta.scheduling.analyze_scheduler import (
    AnalyzeNode,
    AnalyzeScheduler,
    Sensitivity,
    SensitivityTier,
    SENSITIVITY_TIERS,
    build_analyze_event,
)
from lumenta.scheduling.narrative_scheduler import (
    KeywordRule,
    NARRATIVE_RULES,
    FALLBACK_RULE,
    NarrativeScheduler,
    classify_text,
    narrative_events,
)

__all__ = [
    "RateLimiter",
    "EventChannel",
    "AnalyzeNode",
    "AnalyzeScheduler",
    "Sensitivity",
    "SensitivityTier",
    "SENSITIVITY_TIERS",
    "build_analyze_event",
    "KeywordRule",
    "NARRATIVE_RULES",
    "FALLBACK_RULE",
    "NarrativeScheduler",
    "classify_text",
    "narrative_events",
]
