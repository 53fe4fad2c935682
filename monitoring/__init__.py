"""Observability helpers: Prometheus metrics and logging setup."""

from .log_setup import setup_logging
from .metrics import MetricsExporter

__all__ = ["MetricsExporter", "setup_logging"]
