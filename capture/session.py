"""Capture session: periodic sampling with a single-flight guard.

A session owns one camera, one worker thread and one guard. The worker
samples a frame every ``interval`` seconds and runs a detection cycle on it.
The guard is a non-blocking lock: a timer tick that finds a cycle already
running is dropped (never queued), and a manual capture that finds the
session busy is rejected with a ``BUSY`` outcome. A failed cycle, whatever
the reason, is reported through its outcome and the next tick runs as
usual.

``stop()`` sets the stop event, so no tick starts after it returns. A cycle
that is already running is allowed to finish. Camera reads and the final
release are serialised by a separate camera lock that is never held while
``on_cycle`` runs, so a callback may stop the session.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

import numpy as np

from challan.errors import CameraUnavailableError
from .pipeline import CycleOutcome, CycleStatus, DetectionPipeline

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 2.0


class CaptureSession:
    """Drive a :class:`DetectionPipeline` from a camera.

    Parameters
    ----------
    pipeline : DetectionPipeline
        Processes one frame per cycle.
    camera : object, optional
        Frame source with ``open()``, ``read() -> (ok, frame)`` and
        ``release()``. Without a camera the session can only process frames
        handed to :meth:`capture_once`.
    interval : float, default 2.0
        Seconds between timer ticks.
    metrics : MetricsExporter, optional
        Receives per-cycle latency and outcome counts.
    on_cycle : callable, optional
        Called with every :class:`CycleOutcome`, timer-driven or manual.
    guard : threading.Lock, optional
        Single-flight lock. Sessions that must not overlap (for instance
        successive sessions of one controller) can share one.
    """

    def __init__(
        self,
        pipeline: DetectionPipeline,
        camera=None,
        interval: float = DEFAULT_INTERVAL,
        metrics=None,
        on_cycle: Optional[Callable[[CycleOutcome], None]] = None,
        guard: Optional[threading.Lock] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.pipeline = pipeline
        self.camera = camera
        self.interval = interval
        self.metrics = metrics
        self.on_cycle = on_cycle
        self._guard = guard if guard is not None else threading.Lock()
        self._camera_lock = threading.Lock()
        self._camera_open = False
        self._stop_event = threading.Event()
        self._worker: Optional[threading.Thread] = None
        self.skipped_ticks = 0
        self.cycle_count = 0
        self.last_outcome: Optional[CycleOutcome] = None

    @property
    def location(self) -> str:
        return self.pipeline.location

    @property
    def active(self) -> bool:
        return self._worker is not None and not self._stop_event.is_set()

    def start(self) -> None:
        """Open the camera and begin periodic sampling.

        Raises
        ------
        CameraUnavailableError
            If there is no camera or it cannot be opened.
        """
        if self.active:
            raise RuntimeError("Capture session already running")
        if self.camera is None:
            raise CameraUnavailableError("No camera configured for this session")
        try:
            self.camera.open()
        except CameraUnavailableError:
            raise
        except Exception as exc:
            raise CameraUnavailableError(f"Camera could not be opened: {exc}") from exc
        self._camera_open = True
        self._stop_event = threading.Event()
        self._worker = threading.Thread(
            target=self._run, args=(self._stop_event,), name=f"capture-{self.location}", daemon=True
        )
        self._worker.start()
        logger.info("Capture session started at %s (every %.1fs)", self.location, self.interval)

    def stop(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """Cancel the sampling timer.

        With ``wait=True`` the call also waits for an in-flight cycle to
        finish and the camera to be released.
        """
        worker = self._worker
        self._stop_event.set()
        if worker is None:
            return
        if wait and worker is not threading.current_thread():
            worker.join(timeout)
        self._worker = None
        logger.info("Capture session at %s stopped after %d cycles", self.location, self.cycle_count)

    def _run(self, stop_event: threading.Event) -> None:
        next_tick = time.monotonic() + self.interval
        try:
            while not stop_event.wait(max(0.0, next_tick - time.monotonic())):
                self._tick(stop_event)
                next_tick += self.interval
                now = time.monotonic()
                if next_tick <= now:
                    # the cycle overran; drop the ticks that fell inside it
                    missed = int((now - next_tick) // self.interval) + 1
                    self.skipped_ticks += missed
                    next_tick += missed * self.interval
        finally:
            with self._camera_lock:
                self._camera_open = False
                self.camera.release()

    def _tick(self, stop_event: threading.Event) -> None:
        if not self._guard.acquire(blocking=False):
            self.skipped_ticks += 1
            logger.debug("Tick skipped at %s: a cycle is still running", self.location)
            return
        try:
            if stop_event.is_set():
                return
            self._cycle(None)
        finally:
            self._guard.release()

    def capture_once(self, frame: Optional[np.ndarray] = None) -> CycleOutcome:
        """Run one cycle now, outside the timer.

        Uses ``frame`` when given (e.g. a frame from an uploaded video),
        otherwise reads the next frame from the session camera. Returns a
        ``BUSY`` outcome without waiting if a cycle is already running.
        """
        if not self._guard.acquire(blocking=False):
            outcome = CycleOutcome(CycleStatus.BUSY, "A detection cycle is already running")
            self._report(outcome, 0.0)
            return outcome
        try:
            if frame is None and not self.active:
                outcome = CycleOutcome(CycleStatus.NO_FRAME, "Capture session is not running")
                self._report(outcome, 0.0)
                return outcome
            return self._cycle(frame)
        finally:
            self._guard.release()

    def _cycle(self, frame: Optional[np.ndarray]) -> CycleOutcome:
        # caller holds the guard
        started = time.perf_counter()
        try:
            if frame is None:
                frame = self._read_frame()
                if frame is None:
                    outcome = CycleOutcome(CycleStatus.NO_FRAME, "No frame available from camera")
                    self._report(outcome, time.perf_counter() - started)
                    return outcome
            outcome = self.pipeline.process_frame(frame)
        except Exception as exc:
            logger.exception("Detection cycle failed at %s", self.location)
            if self.metrics is not None:
                self.metrics.record_error(self.location, type(exc).__name__)
            outcome = CycleOutcome(CycleStatus.ERROR, f"Error processing frame: {exc}")
        self.cycle_count += 1
        self._report(outcome, time.perf_counter() - started)
        return outcome

    def _read_frame(self) -> Optional[np.ndarray]:
        with self._camera_lock:
            if not self._camera_open:
                return None
            ok, frame = self.camera.read()
        return frame if ok else None

    def _report(self, outcome: CycleOutcome, latency: float) -> None:
        self.last_outcome = outcome
        logger.debug("Cycle at %s: %s (%s)", self.location, outcome.status.value, outcome.message)
        if self.metrics is not None:
            self.metrics.record_cycle(self.location, outcome.status.value, latency, outcome.region_count)
        if self.on_cycle is not None:
            try:
                self.on_cycle(outcome)
            except Exception:
                logger.exception("on_cycle callback failed")
