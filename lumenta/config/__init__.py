"""Pipeline configuration."""

from lumenta.config.pipeline_config import (
    PipelineConfig,
    FeedSettings,
    load_feed_settings,
)

__all__ = ["PipelineConfig", "FeedSettings", "load_feed_settings"]
