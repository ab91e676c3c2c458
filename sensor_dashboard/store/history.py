"""Canonical in-memory collection of past readings.

The store is the single source of truth for history.  It is mutated only
by the dashboard facade, on the event loop, so handlers never interleave.
Replacement builds the new sequence first and swaps it in one assignment:
a failure part-way through validation cannot leave a half-updated store.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from sensor_dashboard.errors import ValidationError
from sensor_dashboard.models.reading import Reading

logger = logging.getLogger(__name__)


class HistoryStore:
    """Ordered sequence of validated readings.

    Duplicate timestamps are tolerated.  ``revision`` increases on every
    mutation so that derived views can tell when they are stale.
    """

    def __init__(self, sort_on_replace: bool = False) -> None:
        self._readings: tuple[Reading, ...] = ()
        self._revision = 0
        self._sort_on_replace = sort_on_replace
        self.dropped_total = 0

    @property
    def revision(self) -> int:
        return self._revision

    def __len__(self) -> int:
        return len(self._readings)

    def replace_all(self, readings: Iterable[Reading | Mapping[str, Any]]) -> int:
        """Discard current contents and install *readings*.

        Invalid elements are dropped with a warning.  Order is kept as
        received unless the store was built with ``sort_on_replace``.
        Returns the number of readings installed.
        """
        validated: list[Reading] = []
        dropped = 0
        for index, item in enumerate(readings):
            try:
                validated.append(Reading.validate(item))
            except ValidationError as exc:
                dropped += 1
                logger.warning("Dropping history reading #%d: %s", index, exc)

        if self._sort_on_replace:
            validated.sort(key=lambda r: r.timestamp)

        self._readings = tuple(validated)
        self._revision += 1
        self.dropped_total += dropped

        logger.info(
            "History replaced | readings=%d | dropped=%d | revision=%d",
            len(validated),
            dropped,
            self._revision,
        )
        return len(validated)

    def append(self, reading: Reading | Mapping[str, Any]) -> bool:
        """Add one reading at the end.  Returns False if it was rejected."""
        try:
            clean = Reading.validate(reading)
        except ValidationError as exc:
            self.dropped_total += 1
            logger.warning("Dropping appended reading: %s", exc)
            return False

        self._readings = (*self._readings, clean)
        self._revision += 1
        return True

    def snapshot(self) -> tuple[Reading, ...]:
        """Read-only view of the current contents."""
        return self._readings
