from __future__ import annotations

import pytest

from analytics.dimension_estimator import estimate_dimensions, estimate_region_dimensions
from challan.models import CameraParameters, Region


def test_pinhole_scaling() -> None:
    params = CameraParameters(focal_length=35, sensor_width=23.5, distance=10)
    dims = estimate_dimensions(70, 35, params)
    assert dims.width == pytest.approx(20.0)
    assert dims.height == pytest.approx(10.0)
    assert dims.length == pytest.approx(50.0)


def test_length_is_two_and_a_half_widths(camera_params) -> None:
    dims = estimate_dimensions(180, 150, camera_params)
    assert dims.width == pytest.approx(1.8)
    assert dims.height == pytest.approx(1.5)
    assert dims.length == pytest.approx(dims.width * 2.5)


def test_scales_linearly_with_distance() -> None:
    near = CameraParameters(focal_length=35, sensor_width=23.5, distance=5)
    far = CameraParameters(focal_length=35, sensor_width=23.5, distance=10)
    assert estimate_dimensions(100, 50, far).width == pytest.approx(2 * estimate_dimensions(100, 50, near).width)


def test_no_clamping_for_huge_boxes(camera_params) -> None:
    dims = estimate_dimensions(10_000, 10_000, camera_params)
    assert dims.width == pytest.approx(100.0)


def test_region_uses_bounding_box(camera_params) -> None:
    region = Region(x=5, y=5, width=120, height=90, area=9000.0)
    dims = estimate_region_dimensions(region, camera_params)
    assert (dims.width, dims.height) == (pytest.approx(1.2), pytest.approx(0.9))


@pytest.mark.parametrize("field", ["focal_length", "sensor_width", "distance"])
@pytest.mark.parametrize("value", [0, -1.0, float("nan")])
def test_camera_parameters_must_be_positive(field: str, value: float) -> None:
    kwargs = {"focal_length": 35.0, "sensor_width": 23.5, "distance": 10.0}
    kwargs[field] = value
    with pytest.raises(ValueError):
        CameraParameters(**kwargs)
