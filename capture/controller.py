"""Enforcement controller: the surface the surrounding application drives.

The controller owns the record store, the challan service, the statistics
aggregator and at most one running capture session. All capture paths
(timer ticks and manual captures, with or without a running session) share
one single-flight guard, so two detection cycles never overlap.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import numpy as np

from analytics.challan_stats import StatisticsAggregator
from camera_adapters import create_camera
from challan.lifecycle import ChallanService, CreationOutcome, ImportOutcome, PaymentOutcome
from challan.models import CameraParameters, Challan, PaymentMethod, Statistics
from detection import RegionDetector, build_backend
from monitoring import MetricsExporter
from recognition import PlateExtractor
from rules.vehicle_classifier import VehicleClassifier
from storage import AuditLogger, InMemoryChallanStore, SQLiteChallanStore
from .pipeline import CycleOutcome, CycleStatus, DetectionPipeline
from .session import DEFAULT_INTERVAL, CaptureSession
from .settings import DEFAULT_LOCATIONS, PipelineSettings

logger = logging.getLogger(__name__)


class EnforcementController:
    """Start and stop capture sessions, take payments and report statistics.

    Parameters
    ----------
    service : ChallanService
        Issues challans and applies payments.
    region_detector : RegionDetector
        Vision stage shared by every session.
    plate_extractor : PlateExtractor
        OCR stage shared by every session.
    camera_params : CameraParameters
        Calibration used when ``start_session`` is not given one.
    camera_factory : callable, optional
        Returns a fresh camera adapter for each session.
    locations : sequence of str, optional
        Selectable monitored locations; the first is the default.
    interval : float, default 2.0
        Sampling period of capture sessions, in seconds.
    metrics : MetricsExporter, optional
    on_cycle : callable, optional
        Forwarded to every session.
    """

    def __init__(
        self,
        service: ChallanService,
        region_detector: RegionDetector,
        plate_extractor: PlateExtractor,
        camera_params: CameraParameters,
        camera_factory: Optional[Callable[[], object]] = None,
        locations: Optional[Sequence[str]] = None,
        interval: float = DEFAULT_INTERVAL,
        metrics: Optional[MetricsExporter] = None,
        classifier: Optional[VehicleClassifier] = None,
        on_cycle: Optional[Callable[[CycleOutcome], None]] = None,
    ) -> None:
        self.service = service
        self.region_detector = region_detector
        self.plate_extractor = plate_extractor
        self.camera_params = camera_params
        self.camera_factory = camera_factory
        self.locations = list(locations or DEFAULT_LOCATIONS)
        self.interval = interval
        self.metrics = metrics
        self.classifier = classifier or VehicleClassifier()
        self.on_cycle = on_cycle
        self.aggregator = StatisticsAggregator(service.store)
        self._guard = threading.Lock()
        self._session: Optional[CaptureSession] = None

    @classmethod
    def from_settings(
        cls,
        settings: PipelineSettings,
        camera_factory: Optional[Callable[[], object]] = None,
        on_cycle: Optional[Callable[[CycleOutcome], None]] = None,
    ) -> "EnforcementController":
        """Assemble a controller and its collaborators from settings."""
        if settings.storage_backend == "sqlite":
            store = SQLiteChallanStore(settings.db_path)
        else:
            store = InMemoryChallanStore()
        audit = AuditLogger(settings.log_dir) if settings.log_dir else None
        metrics = MetricsExporter(port=settings.metrics_port) if settings.enable_metrics else None
        service = ChallanService(store, audit=audit, metrics=metrics)

        vision = build_backend("vision", settings.vision_backend)
        ocr = build_backend("ocr", settings.ocr_engine, languages=settings.ocr_languages)
        if camera_factory is None:

            def camera_factory():
                return create_camera(settings.source, sample_interval=settings.sample_interval)

        return cls(
            service,
            RegionDetector(vision),
            PlateExtractor(ocr),
            settings.camera_params,
            camera_factory=camera_factory,
            locations=settings.locations,
            interval=settings.sample_interval,
            metrics=metrics,
            on_cycle=on_cycle,
        )

    # capture ------------------------------------------------------------

    @property
    def session(self) -> Optional[CaptureSession]:
        return self._session

    @property
    def active(self) -> bool:
        return self._session is not None and self._session.active

    def _build_session(self, location: str, camera_params: CameraParameters, camera) -> CaptureSession:
        pipeline = DetectionPipeline(
            self.region_detector,
            self.plate_extractor,
            self.service,
            camera_params,
            location,
            classifier=self.classifier,
        )
        return CaptureSession(
            pipeline,
            camera=camera,
            interval=self.interval,
            metrics=self.metrics,
            on_cycle=self.on_cycle,
            guard=self._guard,
        )

    def start_session(
        self, location: Optional[str] = None, camera_params: Optional[CameraParameters] = None
    ) -> CaptureSession:
        """Open the camera and start periodic capture at ``location``.

        Raises
        ------
        ValueError
            If ``location`` is not one of the monitored locations.
        RuntimeError
            If a session is already running.
        CameraUnavailableError
            If the camera cannot be opened. No retry is attempted.
        """
        location = location or self.locations[0]
        if location not in self.locations:
            raise ValueError(f"Unknown location {location!r}; expected one of {self.locations}")
        if self.active:
            raise RuntimeError("A capture session is already running; stop it first")
        camera = self.camera_factory() if self.camera_factory is not None else None
        session = self._build_session(location, camera_params or self.camera_params, camera)
        session.start()
        self._session = session
        return session

    def stop_session(self) -> None:
        """Stop the running session; a no-op when nothing is running."""
        session, self._session = self._session, None
        if session is not None:
            session.stop()

    def capture_once(self, frame: Optional[np.ndarray] = None) -> CycleOutcome:
        """Run one detection cycle immediately.

        With a running session the cycle uses that session's camera (or
        ``frame``). Without one, a supplied ``frame`` is processed for the
        default location; with neither, a ``NO_FRAME`` outcome is returned.
        """
        if self._session is not None:
            return self._session.capture_once(frame)
        if frame is None:
            return CycleOutcome(CycleStatus.NO_FRAME, "Capture session is not running")
        session = self._build_session(self.locations[0], self.camera_params, None)
        return session.capture_once(frame)

    # records ------------------------------------------------------------

    def pay_challan(self, challan_id: str, method: PaymentMethod | str) -> PaymentOutcome:
        return self.service.pay(challan_id, method)

    def current_statistics(self) -> Statistics:
        return self.aggregator.current()

    def issue_manual_challan(
        self, vehicle_number: str, vehicle_type, violation_type, location: str, user_id: str
    ) -> CreationOutcome:
        return self.service.issue_manual(vehicle_number, vehicle_type, violation_type, location, user_id)

    def challan_history(self, user_id=None, status=None, vehicle_type=None, search=None) -> List[Challan]:
        return self.service.history(user_id=user_id, status=status, vehicle_type=vehicle_type, search=search)

    def pending_challans(self, user_id: str) -> List[Challan]:
        return self.service.pending_challans(user_id)

    def import_legacy(self, path: str | Path, user_id: str) -> ImportOutcome:
        return self.service.import_legacy(path, user_id)

    def close(self) -> None:
        self.stop_session()
        self.aggregator.close()
        close_store = getattr(self.service.store, "close", None)
        if close_store is not None:
            close_store()
