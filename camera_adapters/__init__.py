"""Camera adapters package.

This package provides a uniform interface for capturing frames from
different camera sources (USB webcams, network streams, local video files).
Each adapter exposes ``open()``, ``read() -> (ok, frame)`` and ``release()``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from .local_file import LocalFileCamera
from .stream_camera import StreamCamera

_STREAM_SCHEMES = ("rtsp://", "rtmp://", "http://", "https://")


def create_camera(source: Union[int, str], sample_interval: Optional[float] = None):
    """Build the adapter for ``source``.

    An integer (or a string of digits) selects a local device, a URL selects
    a network stream and anything else is treated as a video file path.
    ``sample_interval`` applies to video files only.
    """
    if isinstance(source, int):
        return StreamCamera(source)
    text = str(source).strip()
    if text.isdigit():
        return StreamCamera(int(text))
    if text.lower().startswith(_STREAM_SCHEMES):
        return StreamCamera(text)
    return LocalFileCamera(str(Path(text)), sample_interval=sample_interval)


__all__ = [
    "LocalFileCamera",
    "StreamCamera",
    "create_camera",
]
