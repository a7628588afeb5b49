import numpy as np
import pytest

from lumenta.camera.frame import Frame, FrameSource, decode_image, encode_snapshot
from lumenta.camera.video_source import VideoFileSource


def test_snapshot_round_trip_keeps_dimensions():
    frame = Frame(pixels=np.full((30, 40, 3), 100, dtype=np.uint8), timestamp=2.0)
    decoded = decode_image(encode_snapshot(frame), timestamp=2.0)
    assert (decoded.height, decoded.width) == (30, 40)
    assert decoded.timestamp == 2.0


def test_snapshot_accepts_alpha():
    frame = Frame(pixels=np.zeros((10, 10, 4), dtype=np.uint8))
    assert encode_snapshot(frame)[:2] == b"\xff\xd8"


def test_empty_frame_cannot_be_encoded():
    with pytest.raises(ValueError):
        encode_snapshot(Frame(pixels=np.zeros((0, 0, 3), dtype=np.uint8)))


def test_decode_rejects_garbage():
    with pytest.raises(ValueError):
        decode_image(b"definitely not a jpeg")
    with pytest.raises(ValueError):
        decode_image(b"")


def test_missing_video_file_raises(tmp_path):
    with pytest.raises(RuntimeError):
        VideoFileSource(str(tmp_path / "missing.mp4"))


def test_protocol_is_structural():
    class Source:
        paused = False

        def read(self):
            return None

    assert isinstance(Source(), FrameSource)
