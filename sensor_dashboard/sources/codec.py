"""Decoding and classification of push-channel frames.

A frame is one UTF-8 JSON object.  Its keys are checked independently, so
a single frame can yield several events:

* ``history`` (a list)            -> ``FullHistorySnapshot``
* else all three metrics truthy   -> ``LiveReading``
* ``status`` (always checked)     -> ``StatusUpdate``
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from sensor_dashboard.errors import DecodeError, ValidationError
from sensor_dashboard.models.reading import LiveSnapshot, Metric
from sensor_dashboard.models.status import SensorStatus, parse_sensor_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FullHistorySnapshot:
    """Bulk history payload.  Records are raw; the store validates them."""

    records: list[Any]


@dataclass(frozen=True)
class LiveReading:
    snapshot: LiveSnapshot


@dataclass(frozen=True)
class StatusUpdate:
    status: SensorStatus


ChannelEvent = FullHistorySnapshot | LiveReading | StatusUpdate


@dataclass
class DecodeResult:
    """Events decoded from one frame plus what was rejected along the way."""

    events: list[ChannelEvent] = field(default_factory=list)
    rejected: list[ValidationError] = field(default_factory=list)

    @property
    def ignored(self) -> bool:
        return not self.events and not self.rejected


def load_frame(raw: str | bytes) -> Any:
    """Parse one frame as UTF-8 JSON.  Raises ``DecodeError``."""
    try:
        text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
        return json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecodeError(f"malformed frame: {exc}") from exc


def classify(data: Any, presence_check: bool = False) -> DecodeResult:
    """Turn a decoded frame into typed events."""
    result = DecodeResult()
    if not isinstance(data, dict):
        logger.debug("Ignoring non-object frame (%s)", type(data).__name__)
        return result

    history = data.get("history")
    if isinstance(history, list):
        result.events.append(FullHistorySnapshot(records=history))
    elif any(metric.value in data for metric in Metric):
        try:
            snapshot = LiveSnapshot.from_frame(data, presence_check=presence_check)
        except ValidationError as exc:
            result.rejected.append(exc)
        else:
            result.events.append(LiveReading(snapshot=snapshot))

    if "status" in data:
        try:
            result.events.append(StatusUpdate(status=parse_sensor_status(data["status"])))
        except ValidationError as exc:
            result.rejected.append(exc)

    return result


def decode_frame(raw: str | bytes, presence_check: bool = False) -> DecodeResult:
    """Parse and classify one raw frame.  Raises ``DecodeError``."""
    return classify(load_frame(raw), presence_check=presence_check)


def parse_history_body(body: Any) -> list[Any]:
    """Extract the ``history`` list from a pull-endpoint response body."""
    if not isinstance(body, dict):
        raise DecodeError(f"history response must be an object, got {type(body).__name__}")
    history = body.get("history")
    if not isinstance(history, list):
        raise DecodeError("history response has no 'history' list")
    return history
