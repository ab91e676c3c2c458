"""Windowing and statistics over stored readings."""

from sensor_dashboard.analytics.stats import EMPTY_STATS, Stats, compute_all, compute_stats
from sensor_dashboard.analytics.window import TimeWindow, filter_readings

__all__ = [
    "EMPTY_STATS",
    "Stats",
    "TimeWindow",
    "compute_all",
    "compute_stats",
    "filter_readings",
]
