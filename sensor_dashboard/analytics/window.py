"""Inclusive time windows and the range filter over readings."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from sensor_dashboard.models.reading import Reading, parse_timestamp


@dataclass(frozen=True)
class TimeWindow:
    """Closed interval ``[start, end]`` over reading timestamps.

    A window with ``start > end`` is legal and simply matches nothing.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        # Readings are aware UTC; naive bounds are taken as UTC to match.
        object.__setattr__(self, "start", parse_timestamp(self.start))
        object.__setattr__(self, "end", parse_timestamp(self.end))

    @classmethod
    def now(cls) -> TimeWindow:
        """Default window: both bounds at the current instant."""
        moment = datetime.now(UTC)
        return cls(start=moment, end=moment)

    @classmethod
    def from_bounds(cls, start: Any, end: Any) -> TimeWindow:
        """Build a window from any supported timestamp representation."""
        return cls(start=parse_timestamp(start), end=parse_timestamp(end))

    @classmethod
    def last(cls, duration: timedelta, until: datetime | None = None) -> TimeWindow:
        """Window covering *duration* up to *until* (default: now)."""
        end = parse_timestamp(until) if until is not None else datetime.now(UTC)
        return cls(start=end - duration, end=end)

    @property
    def is_empty(self) -> bool:
        return self.start > self.end

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def filter_readings(readings: Iterable[Reading], window: TimeWindow) -> list[Reading]:
    """Return readings with ``window.start <= timestamp <= window.end``.

    Input order is preserved and the input is never mutated.
    """
    if window.is_empty:
        return []
    return [reading for reading in readings if window.contains(reading.timestamp)]
