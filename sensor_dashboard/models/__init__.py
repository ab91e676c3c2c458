"""Domain models for the sensor dashboard core."""

from sensor_dashboard.models.reading import (
    LiveSnapshot,
    Metric,
    Reading,
    coerce_metric,
    parse_timestamp,
    to_epoch_ms,
)
from sensor_dashboard.models.status import (
    KNOWN_SENSORS,
    SensorState,
    SensorStatus,
    default_sensor_status,
    parse_sensor_status,
)

__all__ = [
    "KNOWN_SENSORS",
    "LiveSnapshot",
    "Metric",
    "Reading",
    "SensorState",
    "SensorStatus",
    "coerce_metric",
    "default_sensor_status",
    "parse_sensor_status",
    "parse_timestamp",
    "to_epoch_ms",
]
