"""Unit tests for the range filter and the statistics engine.

Covers the windowing properties (inclusive bounds, order preservation,
idempotence, inverted windows) and the stats contract (empty input,
order invariance, display rounding).
"""

from __future__ import annotations

import random
from datetime import UTC, datetime, timedelta

import pytest

from sensor_dashboard.analytics.stats import EMPTY_STATS, Stats, compute_all, compute_stats
from sensor_dashboard.analytics.window import TimeWindow, filter_readings
from sensor_dashboard.models.reading import Metric, Reading

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def _window(start_ms: int, end_ms: int) -> TimeWindow:
    return TimeWindow.from_bounds(start_ms, end_ms)


# =========================================================================
# TimeWindow
# =========================================================================


class TestTimeWindow:
    """Tests for TimeWindow construction."""

    def test_now_has_equal_bounds(self) -> None:
        """Verify the default window is a single aware instant."""
        window = TimeWindow.now()
        assert window.start == window.end
        assert window.start.tzinfo is not None

    def test_from_bounds_accepts_mixed_representations(self) -> None:
        """Verify ISO and epoch-ms bounds can be mixed."""
        window = TimeWindow.from_bounds("1970-01-01T00:00:00.150Z", 300)
        assert window.start == EPOCH + timedelta(milliseconds=150)
        assert window.end == EPOCH + timedelta(milliseconds=300)

    def test_last(self) -> None:
        """Verify a trailing window ends at the given instant."""
        until = datetime(2024, 1, 1, 12, tzinfo=UTC)
        window = TimeWindow.last(timedelta(minutes=30), until=until)
        assert window.start == datetime(2024, 1, 1, 11, 30, tzinfo=UTC)
        assert window.end == until

    def test_is_empty(self) -> None:
        """Verify only start > end counts as empty."""
        assert _window(300, 150).is_empty
        assert not _window(150, 150).is_empty

    def test_naive_bounds_are_taken_as_utc(self, three_readings: list[Reading]) -> None:
        """Verify naive datetimes are normalized so filtering works."""
        window = TimeWindow(datetime(1970, 1, 1), datetime(1970, 1, 1, 0, 0, 0, 250_000))
        assert window.start == EPOCH
        assert window.end.tzinfo is not None
        assert [r.temperature for r in filter_readings(three_readings, window)] == [20.0, 22.0]


# =========================================================================
# Range filter
# =========================================================================


class TestFilterReadings:
    """Tests for ``filter_readings``."""

    def test_scenario_window(self, three_readings: list[Reading]) -> None:
        """Window 150..300 keeps the last two readings."""
        assert filter_readings(three_readings, _window(150, 300)) == three_readings[1:]

    def test_bounds_are_inclusive(self, three_readings: list[Reading]) -> None:
        """Verify readings exactly on either bound are kept."""
        assert filter_readings(three_readings, _window(100, 300)) == three_readings
        assert filter_readings(three_readings, _window(200, 200)) == [three_readings[1]]

    def test_preserves_input_order(self, three_readings: list[Reading]) -> None:
        """Verify output follows input order, sorted or not."""
        reversed_input = list(reversed(three_readings))
        assert filter_readings(reversed_input, _window(0, 1000)) == reversed_input

    def test_is_idempotent(self, three_readings: list[Reading]) -> None:
        """Verify filtering twice gives the same result."""
        window = _window(150, 300)
        once = filter_readings(three_readings, window)
        assert filter_readings(once, window) == once

    @pytest.mark.parametrize(("start", "end"), [(300, 100), (201, 200), (1000, 0)])
    def test_inverted_window_is_empty(self, three_readings: list[Reading], start: int, end: int) -> None:
        """Verify inverted windows select nothing."""
        assert filter_readings(three_readings, _window(start, end)) == []

    def test_empty_input_and_empty_intersection(self, three_readings: list[Reading]) -> None:
        """Verify empty input and a disjoint window both give []."""
        assert filter_readings([], _window(0, 1000)) == []
        assert filter_readings(three_readings, _window(400, 500)) == []

    def test_does_not_mutate_input(self, three_readings: list[Reading]) -> None:
        """Verify the input sequence is left untouched."""
        original = list(three_readings)
        filter_readings(three_readings, _window(150, 250))
        assert three_readings == original

    def test_accepts_any_iterable(self, three_readings: list[Reading]) -> None:
        """Verify non-list iterables are accepted as input."""
        assert filter_readings(tuple(three_readings), _window(150, 300)) == three_readings[1:]


# =========================================================================
# Statistics engine
# =========================================================================


class TestComputeStats:
    """Tests for ``compute_stats`` and ``Stats``."""

    def test_scenario_temperature(self, three_readings: list[Reading]) -> None:
        """Verify temperature stats over the canonical readings."""
        stats = compute_stats(three_readings[1:], Metric.TEMPERATURE)
        assert stats == Stats(avg=23.5, min=22.0, max=25.0)

    def test_empty_input_is_zero_for_every_metric(self) -> None:
        """Verify empty input gives zero stats."""
        for metric in Metric:
            assert compute_stats([], metric) == Stats(0, 0, 0)
        assert EMPTY_STATS == Stats(avg=0.0, min=0.0, max=0.0)

    def test_accepts_wire_key_strings(self, three_readings: list[Reading]) -> None:
        """Verify metrics can be named by their wire keys."""
        stats = compute_stats(three_readings, "lightLevel")
        assert stats == Stats(avg=6.0, min=5.0, max=7.0)

    def test_unknown_metric_raises(self, three_readings: list[Reading]) -> None:
        """Verify an unknown metric name raises ValueError."""
        with pytest.raises(ValueError):
            compute_stats(three_readings, "pressure")

    def test_full_precision_average(self) -> None:
        """Verify the average is not rounded."""
        readings = [
            Reading(timestamp=EPOCH, temperature=t, humidity=0.0, light_level=0.0)
            for t in (20.0, 20.0, 21.0)
        ]
        stats = compute_stats(readings, Metric.TEMPERATURE)
        assert stats.avg == pytest.approx(20.333333333)
        assert stats.rounded().avg == 20.3

    def test_average_is_order_invariant(self) -> None:
        """Verify shuffling readings keeps the same stats."""
        rng = random.Random(7)
        readings = [
            Reading(
                timestamp=EPOCH + timedelta(seconds=i),
                temperature=rng.uniform(-10, 40),
                humidity=rng.uniform(0, 100),
                light_level=rng.uniform(0, 1000),
            )
            for i in range(50)
        ]
        shuffled = list(readings)
        rng.shuffle(shuffled)
        for metric in Metric:
            assert compute_stats(shuffled, metric).avg == pytest.approx(compute_stats(readings, metric).avg)

    def test_no_outlier_trimming(self) -> None:
        """Verify extreme values count toward every stat."""
        readings = [
            Reading(timestamp=EPOCH, temperature=t, humidity=0.0, light_level=0.0)
            for t in (20.0, 21.0, 500.0)
        ]
        stats = compute_stats(readings, Metric.TEMPERATURE)
        assert stats.max == 500.0
        assert stats.min == 20.0

    def test_compute_all(self, three_readings: list[Reading]) -> None:
        """Verify stats are produced for all three metrics."""
        result = compute_all(three_readings)
        assert set(result) == set(Metric)
        assert result[Metric.HUMIDITY].avg == pytest.approx(42.333333333)

    def test_formatted(self) -> None:
        """Verify display strings use one decimal place."""
        assert Stats(avg=23.456, min=22.0, max=25.04).formatted() == {
            "avg": "23.5",
            "min": "22.0",
            "max": "25.0",
        }
