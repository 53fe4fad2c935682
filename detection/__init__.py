"""Detection package.

Finds vehicle candidate regions in a frame. Pixel-level work (edges,
contours, background models) is done by vision backends registered in
:mod:`detection.registry`; :class:`RegionDetector` applies the geometric
gate on top of whichever backend is configured.
"""

from .region_detector import RegionDetector, passes_gate
from .registry import build_backend, register_backend, available_backends

__all__ = [
    "RegionDetector",
    "passes_gate",
    "build_backend",
    "register_backend",
    "available_backends",
]
