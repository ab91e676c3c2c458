"""Sensor status map carried by ``status`` push frames."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from sensor_dashboard.errors import ValidationError


class SensorState(StrEnum):
    """Reported state of a physical sensor."""

    ACTIVE = "active"
    INACTIVE = "inactive"


# Sensor identifier -> state.  Replaced wholesale on every status message.
SensorStatus = dict[str, SensorState]

KNOWN_SENSORS: tuple[str, ...] = ("dht22", "ldr")


def default_sensor_status() -> SensorStatus:
    """Status before any message arrives: every known sensor inactive."""
    return {sensor: SensorState.INACTIVE for sensor in KNOWN_SENSORS}


def parse_sensor_status(payload: Any) -> SensorStatus:
    """Validate a ``status`` payload into a ``SensorStatus`` map.

    The payload must be an object whose values are ``"active"`` or
    ``"inactive"``.  Any other shape rejects the whole payload.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError(f"status must be an object, got {type(payload).__name__}")

    status: SensorStatus = {}
    for sensor, state in payload.items():
        try:
            status[str(sensor)] = SensorState(state)
        except ValueError as exc:
            raise ValidationError(f"unknown state for sensor {sensor!r}: {state!r}") from exc
    return status
