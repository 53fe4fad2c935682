"""Analytics over detections and records: dimension estimation and statistics."""

from .challan_stats import StatisticsAggregator, compute_statistics
from .dimension_estimator import estimate_dimensions, estimate_region_dimensions

__all__ = [
    "StatisticsAggregator",
    "compute_statistics",
    "estimate_dimensions",
    "estimate_region_dimensions",
]
