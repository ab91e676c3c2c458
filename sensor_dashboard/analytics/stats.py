"""Per-metric summary statistics over a set of readings.

Uses numpy for the reductions.  The engine assumes clean input: readings
are validated (finite, present) before they ever reach the store.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from sensor_dashboard.models.reading import Metric, Reading


@dataclass(frozen=True)
class Stats:
    """Average, minimum and maximum of one metric, at full precision."""

    avg: float = 0.0
    min: float = 0.0
    max: float = 0.0

    def rounded(self, digits: int = 1) -> Stats:
        """Copy rounded for display."""
        return Stats(
            avg=round(self.avg, digits),
            min=round(self.min, digits),
            max=round(self.max, digits),
        )

    def formatted(self, digits: int = 1) -> dict[str, str]:
        """Fixed-point strings, e.g. ``{"avg": "23.5", ...}``."""
        return {
            "avg": f"{self.avg:.{digits}f}",
            "min": f"{self.min:.{digits}f}",
            "max": f"{self.max:.{digits}f}",
        }


EMPTY_STATS = Stats()


def compute_stats(readings: Sequence[Reading], metric: Metric | str) -> Stats:
    """Summarize *metric* over *readings*.

    Empty input yields ``Stats(0, 0, 0)``.  Raises ``ValueError`` for an
    unknown metric name.
    """
    attribute = Metric(metric).attribute
    if not readings:
        return EMPTY_STATS

    values = np.fromiter(
        (getattr(reading, attribute) for reading in readings),
        dtype=np.float64,
        count=len(readings),
    )
    return Stats(
        avg=float(values.mean()),
        min=float(values.min()),
        max=float(values.max()),
    )


def compute_all(readings: Sequence[Reading]) -> dict[Metric, Stats]:
    """Stats for every metric."""
    return {metric: compute_stats(readings, metric) for metric in Metric}
