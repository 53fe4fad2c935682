"""Vehicle candidate regions.

The region detector delegates pixel work to a vision backend (see
:mod:`detection.contour_vision`) and then applies a coarse geometric gate:
a region is kept when its contour area exceeds ``min_area`` square pixels
and its width/height ratio lies within ``[min_aspect, max_aspect]``.

This is a heuristic filter, not object detection. Text, shadows and road
markings can pass the gate and real vehicles can fail it; nothing further
down the pipeline tries to re-verify that a region is a vehicle.
"""

from __future__ import annotations

import logging
from typing import List, Protocol

import numpy as np

from challan.models import Region

logger = logging.getLogger(__name__)

MIN_AREA = 1000.0
MIN_ASPECT = 0.5
MAX_ASPECT = 2.5


class VisionBackend(Protocol):
    def extract_regions(self, frame: np.ndarray) -> List[Region]:
        ...


def passes_gate(
    region: Region,
    min_area: float = MIN_AREA,
    min_aspect: float = MIN_ASPECT,
    max_aspect: float = MAX_ASPECT,
) -> bool:
    """Return True if ``region`` looks like a vehicle candidate."""
    if region.width <= 0 or region.height <= 0:
        return False
    if not region.area > min_area:
        return False
    return min_aspect <= region.aspect_ratio <= max_aspect


class RegionDetector:
    """Turn a frame into gated vehicle candidate regions.

    Parameters
    ----------
    vision : VisionBackend
        Backend that extracts raw contour regions from a frame.
    min_area : float, default 1000
        Regions must have a contour area strictly greater than this.
    min_aspect, max_aspect : float, default 0.5 and 2.5
        Inclusive bounds on width/height.
    """

    def __init__(
        self,
        vision: VisionBackend,
        min_area: float = MIN_AREA,
        min_aspect: float = MIN_ASPECT,
        max_aspect: float = MAX_ASPECT,
    ) -> None:
        self.vision = vision
        self.min_area = min_area
        self.min_aspect = min_aspect
        self.max_aspect = max_aspect

    def detect(self, frame: np.ndarray) -> List[Region]:
        raw = self.vision.extract_regions(frame)
        kept = [r for r in raw if passes_gate(r, self.min_area, self.min_aspect, self.max_aspect)]
        logger.debug("Vision backend returned %d regions, %d passed the gate", len(raw), len(kept))
        return kept
