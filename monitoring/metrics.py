"""Prometheus metrics for the capture pipeline and challan lifecycle."""

from __future__ import annotations

import threading
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, start_http_server

_server_lock = threading.Lock()
_server_started_ports: set[int] = set()


class MetricsExporter:
    """Expose pipeline metrics via Prometheus.

    Each exporter owns its own ``CollectorRegistry`` so several sessions (or
    tests) in one process do not collide on metric names. Pass ``port=None``
    to collect without serving.
    """

    def __init__(self, port: Optional[int] = 9095, registry: Optional[CollectorRegistry] = None) -> None:
        self.port = port
        self.registry = registry or CollectorRegistry()
        if port is not None:
            with _server_lock:
                if port not in _server_started_ports:
                    start_http_server(port, registry=self.registry)
                    _server_started_ports.add(port)

        self.cycle_latency = Histogram(
            "challan_cycle_latency_seconds",
            "Per-cycle processing latency",
            ["location"],
            registry=self.registry,
        )
        self.cycles = Counter(
            "challan_cycles_total",
            "Capture cycles by outcome status",
            ["location", "status"],
            registry=self.registry,
        )
        self.regions = Counter(
            "challan_regions_detected_total",
            "Vehicle candidate regions that passed the geometric gate",
            ["location"],
            registry=self.registry,
        )
        self.challans_created = Counter(
            "challan_created_total",
            "Challans created by origin",
            ["origin"],
            registry=self.registry,
        )
        self.payments = Counter(
            "challan_payments_total",
            "Payment attempts by result",
            ["result"],
            registry=self.registry,
        )
        self.errors = Counter(
            "challan_pipeline_errors_total",
            "Count of runtime errors by category",
            ["location", "category"],
            registry=self.registry,
        )

    def record_cycle(self, location: str, status: str, latency_s: float, region_count: int) -> None:
        self.cycle_latency.labels(location).observe(max(latency_s, 0.0))
        self.cycles.labels(location, status).inc()
        if region_count:
            self.regions.labels(location).inc(region_count)

    def record_challan(self, origin: str) -> None:
        self.challans_created.labels(origin).inc()

    def record_payment(self, result: str) -> None:
        self.payments.labels(result).inc()

    def record_error(self, location: str, category: str) -> None:
        self.errors.labels(location, category).inc()
