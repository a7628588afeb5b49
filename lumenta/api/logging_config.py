"""Logging configuration for the FastAPI server.

Frame uploads arrive several times per second per feed; the access log would
otherwise be one line per frame.
"""

import logging
import time
from typing import Callable, Dict, Optional

INGEST_PATH_PREFIX = "/api/feeds/"
INGEST_PATH_SUFFIX = "/frames"

summary_logger = logging.getLogger("lumenta.api.access")


def _ingest_endpoint(msg: str) -> Optional[tuple]:
    """(endpoint, status) for a frame-ingest access log line, else None.

    Expected format: '127.0.0.1:5000 - "POST /api/feeds/cam1/frames HTTP/1.1" 200'
    """
    parts = msg.split()
    for i, part in enumerate(parts):
        path = part.split("?", 1)[0]
        if path.startswith(INGEST_PATH_PREFIX) and path.endswith(INGEST_PATH_SUFFIX):
            status = None
            if i + 2 < len(parts) and parts[i + 2].isdigit():
                status = parts[i + 2]
            return path, status
    return None


class FrameIngestFilter(logging.Filter):
    """Compresses repetitive frame-ingest access logs.

    - The first request per (endpoint, status) is logged immediately
    - Later ones are counted and summarised every `interval` seconds
    - A new status code for an endpoint counts as a new key, so errors show up
    """

    def __init__(
        self,
        name: str = "",
        interval: float = 10,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(name)
        self.interval = interval
        self.clock = clock
        self.counters: Dict[str, Dict] = {}
        self.last_log_time: Dict[str, float] = {}

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno != logging.INFO:
            return True

        try:
            parsed = _ingest_endpoint(record.getMessage())
        except Exception:
            return True
        if parsed is None:
            return True

        endpoint, status = parsed
        key = f"{endpoint}:{status}"
        now = self.clock()

        if key not in self.counters:
            self.counters[key] = {"count": 0, "first_time": now}
            self.last_log_time[key] = now
            return True

        counter = self.counters[key]
        counter["count"] += 1

        if now - self.last_log_time[key] >= self.interval:
            count = counter["count"]
            duration = now - counter["first_time"]
            rate = count / duration if duration > 0 else 0
            summary_logger.info(
                f"[Ingest Summary] {endpoint} - {count} requests in {duration:.1f}s "
                f"({rate:.1f} req/s, status {status})"
            )
            counter["count"] = 0
            counter["first_time"] = now
            self.last_log_time[key] = now

        return False


def configure_uvicorn_logging(log_level: str = "info") -> dict:
    """Logging dict config for uvicorn with the frame-ingest filter.

    Args:
        log_level: Logging level (info, debug, warning, error)

    Returns:
        Logging configuration dict for uvicorn
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "frame_ingest_filter": {
                "()": "lumenta.api.logging_config.FrameIngestFilter",
                "interval": 10,
            }
        },
        "formatters": {
            "default": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": "%(levelprefix)s %(message)s",
                "use_colors": None,
            },
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": '%(levelprefix)s %(client_addr)s - "%(request_line)s" %(status_code)s',
            },
        },
        "handlers": {
            "default": {
                "formatter": "default",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
            },
            "access": {
                "formatter": "access",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "filters": ["frame_ingest_filter"],
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": log_level.upper()},
            "uvicorn.error": {"level": "INFO"},
            "uvicorn.access": {
                "handlers": ["access"],
                "level": "INFO",
                "propagate": False,
            },
            "lumenta": {"handlers": ["default"], "level": log_level.upper()},
        },
    }


def get_simple_filter() -> FrameIngestFilter:
    """Filter for manual application when uvicorn runs without this config:

        logging.getLogger("uvicorn.access").addFilter(get_simple_filter())
    """
    return FrameIngestFilter(interval=10)
