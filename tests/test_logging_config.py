import logging

from lumenta.api.logging_config import FrameIngestFilter, configure_uvicorn_logging


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _access_record(path, status=200, level=logging.INFO):
    return logging.LogRecord(
        name="uvicorn.access",
        level=level,
        pathname=__file__,
        lineno=1,
        msg='%s - "%s %s HTTP/%s" %d',
        args=("127.0.0.1:5000", "POST", path, "1.1", status),
        exc_info=None,
    )


def test_first_ingest_log_passes_then_suppressed():
    f = FrameIngestFilter(interval=10, clock=FakeClock())
    assert f.filter(_access_record("/api/feeds/cam1/frames")) is True
    assert f.filter(_access_record("/api/feeds/cam1/frames")) is False


def test_new_status_passes_immediately():
    f = FrameIngestFilter(clock=FakeClock())
    f.filter(_access_record("/api/feeds/cam1/frames"))
    assert f.filter(_access_record("/api/feeds/cam1/frames", status=500)) is True


def test_other_requests_untouched():
    f = FrameIngestFilter(clock=FakeClock())
    for _ in range(3):
        assert f.filter(_access_record("/api/feeds/cam1/events")) is True
    assert f.filter(_access_record("/api/feeds/cam1/frames", level=logging.WARNING)) is True


def test_summary_emitted_after_interval(caplog):
    clock = FakeClock()
    f = FrameIngestFilter(interval=10, clock=clock)
    f.filter(_access_record("/api/feeds/cam1/frames"))
    for _ in range(4):
        f.filter(_access_record("/api/feeds/cam1/frames"))

    clock.now = 10.0
    with caplog.at_level(logging.INFO, logger="lumenta.api.access"):
        assert f.filter(_access_record("/api/feeds/cam1/frames")) is False

    assert "5 requests" in caplog.text


def test_uvicorn_config_wires_filter():
    config = configure_uvicorn_logging("debug")
    assert config["handlers"]["access"]["filters"] == ["frame_ingest_filter"]
    assert config["loggers"]["uvicorn"]["level"] == "DEBUG"
