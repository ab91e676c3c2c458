"""Immutable reading value objects and their wire-format validation."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Any

from sensor_dashboard.errors import ValidationError

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class Metric(StrEnum):
    """Measured quantities. Values are the JSON keys used on the wire."""

    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    LIGHT_LEVEL = "lightLevel"

    @property
    def attribute(self) -> str:
        """Name of the matching attribute on ``Reading`` / ``LiveSnapshot``."""
        return _ATTRIBUTES[self]


_ATTRIBUTES: dict[Metric, str] = {
    Metric.TEMPERATURE: "temperature",
    Metric.HUMIDITY: "humidity",
    Metric.LIGHT_LEVEL: "light_level",
}


def parse_timestamp(value: Any) -> datetime:
    """Normalize a wire timestamp to an aware UTC ``datetime``.

    Accepts ISO-8601 strings, numbers (epoch milliseconds, as produced by
    JavaScript ``Date.now()``), and ``datetime`` objects.  Naive values are
    taken to be UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    if isinstance(value, bool):
        raise ValidationError(f"timestamp must not be a boolean: {value!r}")

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValidationError(f"timestamp is not finite: {value!r}")
        try:
            return _EPOCH + timedelta(milliseconds=value)
        except OverflowError as exc:
            raise ValidationError(f"timestamp out of range: {value!r}") from exc

    if isinstance(value, str):
        try:
            return parse_timestamp(datetime.fromisoformat(value.strip()))
        except ValueError as exc:
            raise ValidationError(f"unparseable timestamp: {value!r}") from exc

    raise ValidationError(f"unsupported timestamp type: {type(value).__name__}")


def to_epoch_ms(moment: datetime) -> int:
    """Convert an aware ``datetime`` back to epoch milliseconds."""
    return (moment - _EPOCH) // timedelta(milliseconds=1)


def coerce_metric(value: Any, name: str) -> float:
    """Return *value* as a finite float, or raise ``ValidationError``."""
    if value is None:
        raise ValidationError(f"missing metric {name!r}")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"metric {name!r} is not a number: {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise ValidationError(f"metric {name!r} is not finite: {value!r}")
    return number


@dataclass(frozen=True, slots=True)
class Reading:
    """A single timestamped measurement of all three metrics."""

    timestamp: datetime
    temperature: float
    humidity: float
    light_level: float

    def value(self, metric: Metric | str) -> float:
        """Return the value of *metric* for this reading."""
        return getattr(self, Metric(metric).attribute)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Reading:
        """Build a validated reading from a wire-format mapping.

        Raises ``ValidationError`` when the timestamp or any metric is
        missing, non-numeric, or non-finite.  A legitimate ``0`` is kept.
        """
        if not isinstance(data, Mapping):
            raise ValidationError(f"reading must be an object, got {type(data).__name__}")
        if "timestamp" not in data:
            raise ValidationError("missing timestamp")
        return cls(
            timestamp=parse_timestamp(data["timestamp"]),
            temperature=coerce_metric(data.get("temperature"), "temperature"),
            humidity=coerce_metric(data.get("humidity"), "humidity"),
            light_level=coerce_metric(data.get("lightLevel"), "lightLevel"),
        )

    @classmethod
    def validate(cls, item: Reading | Mapping[str, Any]) -> Reading:
        """Accept a ``Reading`` or a raw mapping and return a clean ``Reading``."""
        if isinstance(item, Reading):
            return cls(
                timestamp=parse_timestamp(item.timestamp),
                temperature=coerce_metric(item.temperature, "temperature"),
                humidity=coerce_metric(item.humidity, "humidity"),
                light_level=coerce_metric(item.light_level, "lightLevel"),
            )
        return cls.from_dict(item)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire format (timestamp as ISO-8601)."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "temperature": self.temperature,
            "humidity": self.humidity,
            "lightLevel": self.light_level,
        }


@dataclass(frozen=True, slots=True)
class LiveSnapshot:
    """Metric values of the most recent live reading.  No timestamp."""

    temperature: float = 0.0
    humidity: float = 0.0
    light_level: float = 0.0

    def value(self, metric: Metric | str) -> float:
        return getattr(self, Metric(metric).attribute)

    @classmethod
    def from_frame(cls, data: Mapping[str, Any], presence_check: bool = False) -> LiveSnapshot:
        """Build a snapshot from a live push frame.

        By default every metric must be truthy: a ``0`` is treated the same
        as an absent value and the whole reading is rejected.  With
        *presence_check* only ``None``/missing values are rejected.
        """
        for metric in Metric:
            raw = data.get(metric.value)
            if presence_check:
                if raw is None:
                    raise ValidationError(f"missing metric {metric.value!r}")
            elif not raw:
                raise ValidationError(f"falsy metric {metric.value!r}: {raw!r}")
        return cls(
            temperature=coerce_metric(data["temperature"], "temperature"),
            humidity=coerce_metric(data["humidity"], "humidity"),
            light_level=coerce_metric(data["lightLevel"], "lightLevel"),
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "lightLevel": self.light_level,
        }
