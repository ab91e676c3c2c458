"""Render-ready views of core state for the display layer.

Nothing here mutates state.  The adapter reads the live snapshot and status
directly, and turns filtered readings into chart points and stat cards
whose timestamps are always aware UTC ``datetime`` objects.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

from sensor_dashboard.analytics.stats import Stats, compute_stats
from sensor_dashboard.models.reading import LiveSnapshot, Metric, Reading, parse_timestamp
from sensor_dashboard.models.status import SensorState, SensorStatus
from sensor_dashboard.store.live import LiveState

NO_HISTORY_MESSAGE = "No historical data available"


class Direction(StrEnum):
    UP = "up"
    DOWN = "down"


def comparison_direction(current: float, avg: float) -> Direction:
    """``UP`` when *current* is strictly above *avg*; ties go ``DOWN``."""
    return Direction.UP if current > avg else Direction.DOWN


def chart_series(readings: Sequence[Reading]) -> list[dict[str, Any]]:
    """One chart point per reading, in input order, values unchanged."""
    return [
        {
            "timestamp": parse_timestamp(reading.timestamp),
            "temperature": reading.temperature,
            "humidity": reading.humidity,
            "lightLevel": reading.light_level,
        }
        for reading in readings
    ]


def format_point(point: dict[str, Any]) -> list[str]:
    """Tooltip lines for one chart point (local time)."""
    moment: datetime = point["timestamp"]
    return [
        moment.astimezone().strftime("%Y-%m-%d %H:%M:%S"),
        f"Temperature: {point['temperature']}°C",
        f"Humidity: {point['humidity']}%",
        f"Light Level: {point['lightLevel']}",
    ]


# ── Stat cards ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CardSpec:
    title: str
    unit: str
    sensor: str


CARD_SPECS: dict[Metric, CardSpec] = {
    Metric.TEMPERATURE: CardSpec(title="Temperature", unit="°C", sensor="dht22"),
    Metric.HUMIDITY: CardSpec(title="Humidity", unit="%", sensor="dht22"),
    Metric.LIGHT_LEVEL: CardSpec(title="Light Level", unit="", sensor="ldr"),
}


@dataclass(frozen=True)
class StatCard:
    """Everything one metric card displays."""

    metric: Metric
    title: str
    unit: str
    value: float
    stats: Stats
    direction: Direction
    sensor: str
    sensor_state: SensorState

    def render(self) -> str:
        shown = self.stats.formatted()
        unit = self.unit
        arrow = "↑" if self.direction is Direction.UP else "↓"
        return (
            f"{self.title}: {self.value}{unit} {arrow} | "
            f"Avg: {shown['avg']}{unit} • Min: {shown['min']}{unit} • Max: {shown['max']}{unit} | "
            f"{self.sensor} Status: {self.sensor_state}"
        )


def build_stat_cards(
    snapshot: LiveSnapshot,
    status: SensorStatus,
    filtered: Sequence[Reading],
) -> list[StatCard]:
    """Build one card per metric from the live values and the filtered view.

    The arrow compares the live value with the average as displayed
    (one decimal), so the card never contradicts itself.
    """
    cards: list[StatCard] = []
    for metric, spec in CARD_SPECS.items():
        stats = compute_stats(filtered, metric).rounded(1)
        value = snapshot.value(metric)
        cards.append(
            StatCard(
                metric=metric,
                title=spec.title,
                unit=spec.unit,
                value=value,
                stats=stats,
                direction=comparison_direction(value, stats.avg),
                sensor=spec.sensor,
                sensor_state=status.get(spec.sensor, SensorState.INACTIVE),
            )
        )
    return cards


class PresentationAdapter:
    """Direct reads of live state plus chart shaping for the view."""

    def __init__(self, live: LiveState) -> None:
        self._live = live

    def current_metrics(self) -> LiveSnapshot:
        return self._live.snapshot

    def sensor_status(self) -> SensorStatus:
        return dict(self._live.status)

    def chart_series(self, filtered: Sequence[Reading]) -> list[dict[str, Any]]:
        return chart_series(filtered)

    def comparison_direction(self, current: float, avg: float) -> Direction:
        return comparison_direction(current, avg)

    def stat_cards(self, filtered: Sequence[Reading]) -> list[StatCard]:
        return build_stat_cards(self._live.snapshot, self._live.status, filtered)
