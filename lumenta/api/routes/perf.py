from typing import Optional

from fastapi import APIRouter

from lumenta.profiler import profiler

router = APIRouter(prefix="/api", tags=["perf"])


@router.get("/perf")
def perf_status(feed_id: Optional[str] = None):
    """Per-stage timing statistics, globally or for one feed."""
    stages = profiler.get_summary(feed_id)
    if not stages:
        return {"ok": True, "feed_id": feed_id, "stages": {}, "note": "no profiling data yet"}
    return {"ok": True, "feed_id": feed_id, "stages": stages}


@router.post("/perf/reset")
def reset_profiler(feed_id: Optional[str] = None):
    profiler.reset(feed_id)
    return {"ok": True, "message": "Profiler statistics reset"}
