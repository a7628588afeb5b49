import logging
from typing import Optional

import cv2

from lumenta.camera.frame import Frame

logger = logging.getLogger(__name__)


class VideoFileSource:
    """Frame source reading sequentially from a local video file.

    Timestamps come from the container position (CAP_PROP_POS_MSEC), falling
    back to frame index / fps when the backend reports none.
    """

    def __init__(self, file_path: str, loop: bool = False):
        self.file_path = file_path
        self.loop = loop
        self.cap = cv2.VideoCapture(file_path)
        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open video file: {file_path}")
        self.fps = self.cap.get(cv2.CAP_PROP_FPS) or 25.0
        self._paused = False
        self._index = 0

    @property
    def paused(self) -> bool:
        return self._paused

    def pause(self):
        self._paused = True

    def resume(self):
        self._paused = False

    def read(self) -> Optional[Frame]:
        ok, pixels = self.cap.read()
        if not ok and self.loop:
            # Restart from beginning
            self.cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
            self._index = 0
            ok, pixels = self.cap.read()

        if not ok or pixels is None:
            return None

        pos_ms = self.cap.get(cv2.CAP_PROP_POS_MSEC)
        timestamp = pos_ms / 1000.0 if pos_ms > 0 else self._index / self.fps
        self._index += 1
        return Frame(pixels=pixels, timestamp=timestamp)

    def release(self):
        self.cap.release()
        logger.debug(f"Released video source {self.file_path}")
