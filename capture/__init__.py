"""Capture loop: pipeline, sessions, settings and the enforcement controller."""

from .controller import EnforcementController
from .pipeline import CycleOutcome, CycleStatus, DetectionPipeline
from .session import CaptureSession
from .settings import PipelineSettings, load_config, load_settings

__all__ = [
    "CaptureSession",
    "CycleOutcome",
    "CycleStatus",
    "DetectionPipeline",
    "EnforcementController",
    "PipelineSettings",
    "load_config",
    "load_settings",
]
