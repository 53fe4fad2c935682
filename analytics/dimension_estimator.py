"""Real-world dimension estimation from a bounding box.

Uses the similar-triangles relation of a pinhole camera: an object of
``pixel_width`` pixels seen at ``distance`` through a lens of
``focal_length`` is ``pixel_width * distance / focal_length`` wide, in the
unit of ``distance``. A single fixed camera cannot see depth, so the length
is not measured at all; it is taken as 2.5 times the width, which is the
usual footprint ratio of road vehicles.

The estimator does no clamping or plausibility checks. A huge bounding box
simply produces a huge vehicle, and the classifier's catch-all rule deals
with it.

Example::

    params = CameraParameters(focal_length=35, sensor_width=23.5, distance=10)
    dims = estimate_dimensions(70, 35, params)
    # Dimensions(width=20.0, height=10.0, length=50.0)
"""

from __future__ import annotations

from challan.models import CameraParameters, Dimensions, Region

LENGTH_TO_WIDTH_RATIO = 2.5


def estimate_dimensions(pixel_width: float, pixel_height: float, params: CameraParameters) -> Dimensions:
    """Convert a pixel extent into :class:`Dimensions`.

    Parameters
    ----------
    pixel_width, pixel_height : float
        Bounding-box size in pixels; both positive.
    params : CameraParameters
        Calibration of the camera that produced the frame.
    """
    real_width = pixel_width * params.distance / params.focal_length
    real_height = pixel_height * params.distance / params.focal_length
    return Dimensions(
        width=real_width,
        height=real_height,
        length=real_width * LENGTH_TO_WIDTH_RATIO,
    )


def estimate_region_dimensions(region: Region, params: CameraParameters) -> Dimensions:
    return estimate_dimensions(region.width, region.height, params)
