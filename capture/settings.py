"""Pipeline configuration.

The YAML layout mirrors the sections of :class:`PipelineSettings`::

    camera:
      source: 0
      sample_interval: 2.0
      focal_length: 35.0
      sensor_width: 23.5
      distance: 0.35
    locations: [...]
    detection: {backend: canny}
    recognition: {ocr_engine: easyocr, languages: [en]}
    storage: {backend: sqlite, db_path: challans.db, log_dir: logs}
    logging: {level: INFO, file: null}
    monitoring: {enable_metrics: false, metrics_port: 9095}

Missing sections fall back to the defaults below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import yaml

from challan.models import CameraParameters

DEFAULT_LOCATIONS = [
    "Main Street No-Entry Zone",
    "Downtown Restricted Area",
    "School Zone",
    "Hospital Area",
    "One-Way Street",
]

VISION_BACKENDS = ("canny", "mog2")
OCR_ENGINES = ("easyocr", "tesseract")
STORAGE_BACKENDS = ("memory", "sqlite")


def load_config(config_path: str) -> dict:
    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


@dataclass
class PipelineSettings:
    source: Union[int, str] = 0
    sample_interval: float = 2.0
    camera_params: CameraParameters = field(
        default_factory=lambda: CameraParameters(focal_length=35.0, sensor_width=23.5, distance=0.35)
    )
    locations: List[str] = field(default_factory=lambda: list(DEFAULT_LOCATIONS))
    vision_backend: str = "canny"
    ocr_engine: str = "easyocr"
    ocr_languages: List[str] = field(default_factory=lambda: ["en"])
    storage_backend: str = "memory"
    db_path: str = "challans.db"
    log_dir: Optional[str] = "logs"
    log_level: str = "INFO"
    log_file: Optional[str] = None
    enable_metrics: bool = False
    metrics_port: int = 9095

    def __post_init__(self) -> None:
        if self.sample_interval <= 0:
            raise ValueError("camera.sample_interval must be positive")
        if not self.locations:
            raise ValueError("at least one monitored location is required")
        if self.vision_backend not in VISION_BACKENDS:
            raise ValueError(f"detection.backend must be one of {VISION_BACKENDS}, got {self.vision_backend!r}")
        if self.ocr_engine not in OCR_ENGINES:
            raise ValueError(f"recognition.ocr_engine must be one of {OCR_ENGINES}, got {self.ocr_engine!r}")
        if self.storage_backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"storage.backend must be one of {STORAGE_BACKENDS}, got {self.storage_backend!r}"
            )

    @property
    def default_location(self) -> str:
        return self.locations[0]

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "PipelineSettings":
        """Build settings from a parsed config mapping.

        Raises
        ------
        ValueError
            For non-positive camera parameters or unknown backend names.
        """
        camera_cfg = config.get("camera", {}) or {}
        detection_cfg = config.get("detection", {}) or {}
        recognition_cfg = config.get("recognition", {}) or {}
        storage_cfg = config.get("storage", {}) or {}
        logging_cfg = config.get("logging", {}) or {}
        monitoring_cfg = config.get("monitoring", {}) or {}

        params = CameraParameters(
            focal_length=float(camera_cfg.get("focal_length", 35.0)),
            sensor_width=float(camera_cfg.get("sensor_width", 23.5)),
            distance=float(camera_cfg.get("distance", 0.35)),
        )
        return cls(
            source=camera_cfg.get("source", 0),
            sample_interval=float(camera_cfg.get("sample_interval", 2.0)),
            camera_params=params,
            locations=list(config.get("locations") or DEFAULT_LOCATIONS),
            vision_backend=str(detection_cfg.get("backend", "canny")).lower(),
            ocr_engine=str(recognition_cfg.get("ocr_engine", "easyocr")).lower(),
            ocr_languages=list(recognition_cfg.get("languages") or ["en"]),
            storage_backend=str(storage_cfg.get("backend", "memory")).lower(),
            db_path=storage_cfg.get("db_path", "challans.db"),
            log_dir=storage_cfg.get("log_dir", "logs"),
            log_level=str(logging_cfg.get("level", "INFO")).upper(),
            log_file=logging_cfg.get("file"),
            enable_metrics=bool(monitoring_cfg.get("enable_metrics", False)),
            metrics_port=int(monitoring_cfg.get("metrics_port", 9095)),
        )


def load_settings(config_path: str) -> PipelineSettings:
    return PipelineSettings.from_dict(load_config(config_path))
