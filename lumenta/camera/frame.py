"""Frame container, frame-source interface and snapshot encoding."""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

import cv2
import numpy as np


@dataclass
class Frame:
    """A single decoded video frame.

    Attributes:
        pixels: (H, W) or (H, W, C) uint8 array. Colour frames are BGR as
            produced by OpenCV; a fourth (alpha) channel is tolerated.
        timestamp: presentation time in seconds
    """

    pixels: np.ndarray
    timestamp: float = 0.0

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def shape(self):
        return self.pixels.shape


@runtime_checkable
class FrameSource(Protocol):
    """Anything that can hand the pipeline one frame per tick."""

    @property
    def paused(self) -> bool:
        """True while the source should not be processed."""
        ...

    def read(self) -> Optional[Frame]:
        """Return the current frame, or None if none is ready."""
        ...


def encode_snapshot(frame: Frame, quality: int = 80) -> bytes:
    """Encode a frame as JPEG bytes for the vision-language backend.

    Raises:
        ValueError: if the frame cannot be encoded at all
    """
    pixels = frame.pixels
    if pixels.ndim == 3 and pixels.shape[2] == 4:
        pixels = cv2.cvtColor(pixels, cv2.COLOR_BGRA2BGR)

    if pixels.size == 0:
        raise ValueError("Cannot encode an empty frame")
    try:
        success, buffer = cv2.imencode(
            ".jpg", pixels, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)]
        )
    except cv2.error as e:
        raise ValueError(f"Failed to encode frame snapshot as JPEG: {e}")
    if not success:
        raise ValueError("Failed to encode frame snapshot as JPEG")
    return buffer.tobytes()


def decode_image(data: bytes, timestamp: float = 0.0) -> Frame:
    """Decode JPEG/PNG bytes into a Frame.

    Raises:
        ValueError: if the bytes are not a decodable image
    """
    arr = np.frombuffer(data, dtype=np.uint8)
    pixels = cv2.imdecode(arr, cv2.IMREAD_COLOR) if arr.size else None
    if pixels is None:
        raise ValueError("Failed to decode image bytes")
    return Frame(pixels=pixels, timestamp=timestamp)
