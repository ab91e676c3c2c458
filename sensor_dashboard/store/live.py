"""Latest live values pushed by the channel: metric snapshot and sensor status."""

from __future__ import annotations

from dataclasses import dataclass, field

from sensor_dashboard.models.reading import LiveSnapshot
from sensor_dashboard.models.status import SensorStatus, default_sensor_status


@dataclass
class LiveState:
    """Last-write-wins holder for the live snapshot and the status map.

    Both start at neutral defaults (zero metrics, every sensor inactive)
    and are replaced wholesale by channel events.
    """

    snapshot: LiveSnapshot = field(default_factory=LiveSnapshot)
    status: SensorStatus = field(default_factory=default_sensor_status)

    def update_snapshot(self, snapshot: LiveSnapshot) -> None:
        self.snapshot = snapshot

    def update_status(self, status: SensorStatus) -> None:
        self.status = dict(status)
