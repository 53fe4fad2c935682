"""OpenCV vision backends that turn a frame into raw candidate regions.

Both backends return *unfiltered* regions: one bounding box per external
contour together with the contour's area. The geometric gate that decides
which of them look like vehicles lives in :mod:`detection.region_detector`.

``CannyContourVision`` follows the classic still-image recipe (grayscale,
Gaussian blur, Canny edges, external contours) and works on single frames,
which is what a sampled capture loop provides. ``BackgroundSubtractionVision``
keeps a MOG2 background model and reports moving blobs instead; it needs a
steady stream of frames from the same camera before it becomes useful.
"""

from __future__ import annotations

from typing import List, Tuple

import cv2
import numpy as np

from challan.models import Region
from .registry import register_backend


def _to_gray(frame: np.ndarray) -> np.ndarray:
    if frame.ndim == 2:
        return frame
    if frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)


def _regions_from_contours(contours) -> List[Region]:
    regions: List[Region] = []
    for cnt in contours:
        x, y, w, h = cv2.boundingRect(cnt)
        if w <= 0 or h <= 0:
            continue
        regions.append(Region(x=int(x), y=int(y), width=int(w), height=int(h), area=float(cv2.contourArea(cnt))))
    return regions


@register_backend("vision", "canny")
class CannyContourVision:
    """Edge-map contour extraction.

    Parameters
    ----------
    blur_kernel : tuple of int, default (5, 5)
        Gaussian blur kernel applied before edge detection.
    canny_thresholds : tuple of int, default (50, 150)
        Low and high hysteresis thresholds for ``cv2.Canny``.
    """

    def __init__(
        self,
        blur_kernel: Tuple[int, int] = (5, 5),
        canny_thresholds: Tuple[int, int] = (50, 150),
        **_: object,
    ) -> None:
        self.blur_kernel = tuple(blur_kernel)
        self.canny_thresholds = tuple(canny_thresholds)

    def extract_regions(self, frame: np.ndarray) -> List[Region]:
        gray = _to_gray(frame)
        blurred = cv2.GaussianBlur(gray, self.blur_kernel, 0)
        edges = cv2.Canny(blurred, *self.canny_thresholds)
        contours, _ = cv2.findContours(edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        return _regions_from_contours(contours)


@register_backend("vision", "mog2")
class BackgroundSubtractionVision:
    """Moving-blob extraction with a MOG2 background model."""

    def __init__(self, history: int = 500, var_threshold: float = 50, **_: object) -> None:
        self.bg_subtractor = cv2.createBackgroundSubtractorMOG2(
            history=history, varThreshold=var_threshold, detectShadows=True
        )
        self.kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (3, 3))

    def extract_regions(self, frame: np.ndarray) -> List[Region]:
        fg_mask = self.bg_subtractor.apply(frame)
        # shadows are marked 127 by MOG2; keep only confident foreground
        _, thresh = cv2.threshold(fg_mask, 244, 255, cv2.THRESH_BINARY)
        cleaned = cv2.morphologyEx(thresh, cv2.MORPH_OPEN, self.kernel, iterations=2)
        cleaned = cv2.morphologyEx(cleaned, cv2.MORPH_DILATE, self.kernel, iterations=2)
        contours, _ = cv2.findContours(cleaned, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        return _regions_from_contours(contours)
