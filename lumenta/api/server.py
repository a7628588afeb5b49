import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from lumenta.api.routes import router as api_router
from lumenta.api.routes import feeds as feeds_route_module
from lumenta.api.routes import perf as perf_route_module
from lumenta.config.pipeline_config import PipelineConfig

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Logs the configuration on startup; closes every feed pipeline on shutdown."""
    PipelineConfig.log_summary()

    yield

    try:
        await feeds_route_module.close_processors()
        logger.info("[Shutdown] Closed all feed pipelines")
    except Exception as e:
        logger.warning(f"Failed to close feed pipelines on shutdown: {e}")


def create_app(
    processor_factory: Optional[feeds_route_module.ProcessorFactory] = None,
) -> FastAPI:
    """Build the API app.

    Args:
        processor_factory: builds the pipeline for a new feed id
            (defaults to FrameProcessor.from_config)
    """
    if processor_factory is not None:
        feeds_route_module.set_processor_factory(processor_factory)

    application = FastAPI(title="Lumenta", lifespan=lifespan)
    application.include_router(api_router)
    application.include_router(feeds_route_module.router)
    application.include_router(perf_route_module.router)
    return application


app = create_app()
