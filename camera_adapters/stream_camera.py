"""Live camera adapter.

Wraps OpenCV's ``VideoCapture`` for a device index (USB or built-in webcam)
or a network stream URL (RTSP/HTTP). The capture buffer is kept at one
frame so each periodic read returns the most recent image instead of a
backlog of stale ones.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

import cv2

from challan.errors import CameraUnavailableError

logger = logging.getLogger(__name__)


class StreamCamera:
    """Adapter for live camera devices and streams.

    Attributes
    ----------
    source : int or str
        Device index or stream URL.
    capture : Optional[cv2.VideoCapture]
        The underlying OpenCV video capture object.
    """

    def __init__(self, source: Union[int, str] = 0) -> None:
        self.source = source
        self.capture: Optional[cv2.VideoCapture] = None

    def open(self) -> None:
        """Open the device or stream.

        Raises
        ------
        CameraUnavailableError
            If OpenCV cannot open the source (missing device, permission
            denied, unreachable stream).
        """
        if self.capture is None:
            self.capture = cv2.VideoCapture(self.source)
        if not self.capture.isOpened():
            self.capture.release()
            self.capture = None
            raise CameraUnavailableError(f"Failed to open camera source: {self.source}")
        self.capture.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        logger.info("Opened camera source %s", self.source)

    def read(self):  # -> Tuple[bool, Any]
        """Read the latest frame.

        Returns
        -------
        ret : bool
            Whether a frame was successfully read.
        frame : ndarray
            The image frame in BGR format.
        """
        if self.capture is None:
            return False, None
        return self.capture.read()

    def release(self) -> None:
        if self.capture is not None:
            self.capture.release()
            self.capture = None
