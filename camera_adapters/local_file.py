"""Local file camera adapter.

Reads frames from a recorded video. With ``sample_interval`` set, every read
advances the playback position by that many seconds of video time, so a
file is sampled at the same cadence a live camera would be and a long
recording is processed in a fraction of its length. Without it, frames are
returned one after another.
"""

from __future__ import annotations

import logging
from typing import Optional

import cv2

from challan.errors import CameraUnavailableError

logger = logging.getLogger(__name__)


class LocalFileCamera:
    """Adapter for local video files."""

    def __init__(self, filepath: str, sample_interval: Optional[float] = None) -> None:
        if sample_interval is not None and sample_interval <= 0:
            raise ValueError("sample_interval must be positive")
        self.filepath = filepath
        self.sample_interval = sample_interval
        self.capture: Optional[cv2.VideoCapture] = None
        self.position_s = 0.0
        self.exhausted = False

    def open(self) -> None:
        """Open the video file for reading."""
        if self.capture is None:
            self.capture = cv2.VideoCapture(self.filepath)
        if not self.capture.isOpened():
            self.capture.release()
            self.capture = None
            raise CameraUnavailableError(f"Failed to open video file: {self.filepath}")
        self.position_s = 0.0
        self.exhausted = False
        logger.info("Opened video file %s", self.filepath)

    def read(self):  # -> Tuple[bool, Any]
        """Read the next sampled frame.

        Returns ``(False, None)`` once the end of the file is reached and
        sets :attr:`exhausted`.
        """
        if self.capture is None or self.exhausted:
            return False, None
        if self.sample_interval is not None:
            self.capture.set(cv2.CAP_PROP_POS_MSEC, self.position_s * 1000.0)
        ok, frame = self.capture.read()
        if not ok:
            self.exhausted = True
            logger.info("Reached end of video file %s", self.filepath)
            return False, None
        if self.sample_interval is not None:
            self.position_s += self.sample_interval
        return ok, frame

    def release(self) -> None:
        """Release the video file."""
        if self.capture is not None:
            self.capture.release()
            self.capture = None
