from __future__ import annotations

import pytest

from capture.settings import DEFAULT_LOCATIONS, PipelineSettings, load_settings


def test_empty_config_uses_defaults(tmp_path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    settings = load_settings(str(path))
    assert settings.sample_interval == 2.0
    assert settings.locations == DEFAULT_LOCATIONS
    assert settings.default_location == "Main Street No-Entry Zone"
    assert settings.vision_backend == "canny"
    assert settings.ocr_engine == "easyocr"
    assert settings.storage_backend == "memory"
    assert settings.camera_params.focal_length == 35.0


def test_full_config(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        """
camera:
  source: traffic.mp4
  sample_interval: 1.5
  focal_length: 50
  sensor_width: 36
  distance: 0.5
locations: [Gate A, Gate B]
detection: {backend: MOG2}
recognition: {ocr_engine: tesseract, languages: [en, hi]}
storage: {backend: sqlite, db_path: data/challans.db, log_dir: audit}
logging: {level: debug}
monitoring: {enable_metrics: true, metrics_port: 9200}
""",
        encoding="utf-8",
    )
    settings = load_settings(str(path))
    assert settings.source == "traffic.mp4"
    assert settings.sample_interval == 1.5
    assert settings.camera_params.distance == 0.5
    assert settings.locations == ["Gate A", "Gate B"]
    assert settings.vision_backend == "mog2"
    assert settings.ocr_engine == "tesseract"
    assert settings.ocr_languages == ["en", "hi"]
    assert settings.storage_backend == "sqlite"
    assert settings.db_path == "data/challans.db"
    assert settings.log_level == "DEBUG"
    assert settings.enable_metrics is True
    assert settings.metrics_port == 9200


@pytest.mark.parametrize(
    "config",
    [
        {"camera": {"distance": 0}},
        {"camera": {"focal_length": -35}},
        {"camera": {"sample_interval": 0}},
        {"detection": {"backend": "yolo"}},
        {"recognition": {"ocr_engine": "paddle"}},
        {"storage": {"backend": "postgres"}},
    ],
)
def test_invalid_values_rejected(config) -> None:
    with pytest.raises(ValueError):
        PipelineSettings.from_dict(config)
