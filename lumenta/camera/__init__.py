"""Frame sources."""

from lumenta.camera.frame import Frame, FrameSource, encode_snapshot, decode_image
from lumenta.camera.video_source import VideoFileSource

__all__ = [
    "Frame",
    "FrameSource",
    "encode_snapshot",
    "decode_image",
    "VideoFileSource",
]
