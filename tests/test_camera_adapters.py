from __future__ import annotations

import pytest

from camera_adapters import LocalFileCamera, StreamCamera, create_camera
from challan.errors import CameraUnavailableError


@pytest.mark.parametrize("source", [0, "1", "rtsp://10.0.0.5/stream", "http://cam.local/mjpeg"])
def test_live_sources(source) -> None:
    assert isinstance(create_camera(source), StreamCamera)


def test_device_index_is_parsed() -> None:
    assert create_camera("2").source == 2


def test_file_source_gets_sample_interval(tmp_path) -> None:
    camera = create_camera(str(tmp_path / "clip.mp4"), sample_interval=2.0)
    assert isinstance(camera, LocalFileCamera)
    assert camera.sample_interval == 2.0


def test_missing_file_cannot_open(tmp_path) -> None:
    camera = LocalFileCamera(str(tmp_path / "missing.mp4"))
    with pytest.raises(CameraUnavailableError):
        camera.open()
    assert camera.read() == (False, None)


def test_sample_interval_must_be_positive() -> None:
    with pytest.raises(ValueError):
        LocalFileCamera("clip.mp4", sample_interval=0)


def _write_clip(tmp_path, frames: int):
    from scripts.generate_sample_video import generate_sample_video

    try:
        return generate_sample_video(tmp_path / "clip.avi", frame_count=frames, fps=10, fourcc="MJPG")
    except RuntimeError:
        pytest.skip("no MJPG video writer available")


def test_file_is_sampled_by_video_time(tmp_path) -> None:
    # 30 frames at 10 fps = 3 s of video; sampling every second gives 3 frames
    camera = LocalFileCamera(str(_write_clip(tmp_path, 30)), sample_interval=1.0)
    camera.open()
    try:
        reads = 0
        while True:
            ok, frame = camera.read()
            if not ok:
                break
            assert frame.shape == (480, 640, 3)
            reads += 1
            assert reads < 30
        assert 2 <= reads <= 4
        assert camera.exhausted
    finally:
        camera.release()


def test_file_without_interval_reads_every_frame(tmp_path) -> None:
    camera = LocalFileCamera(str(_write_clip(tmp_path, 12)))
    camera.open()
    try:
        reads = 0
        while camera.read()[0]:
            reads += 1
        assert abs(reads - 12) <= 1
    finally:
        camera.release()
