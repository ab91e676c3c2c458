"""CLI entrypoint: a terminal front-end for the sensor dashboard core.

Connects to the telemetry server's push channel, optionally pulls history,
and prints the stat cards and a series summary at a fixed cadence.

Usage::

    sensor-dashboard --push-url ws://localhost:4000 --last-minutes 30
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import signal
import time
from datetime import timedelta

import click

from sensor_dashboard.analytics.window import TimeWindow
from sensor_dashboard.config import DashboardConfig
from sensor_dashboard.dashboard import SensorDashboard
from sensor_dashboard.errors import ValidationError
from sensor_dashboard.presentation import NO_HISTORY_MESSAGE, format_point
from sensor_dashboard.sources.push_channel import ChannelStats, PushChannel

logger = logging.getLogger(__name__)

_STATS_REPORT_SECONDS = 30.0


# ── Rendering ───────────────────────────────────────────────────────────


def render_dashboard(dashboard: SensorDashboard) -> list[str]:
    """Text rendering of the current view, one line per element."""
    window = dashboard.get_window()
    header = f"Sensor Dashboard | channel={dashboard.connection_state}"
    if dashboard.loading:
        header += " | refreshing..."

    lines = [
        header,
        f"Window: {window.start.isoformat()} .. {window.end.isoformat()}",
    ]
    lines.extend(card.render() for card in dashboard.get_stat_cards())

    series = dashboard.get_filtered_series()
    if series:
        lines.append(f"Historical Data: {len(series)} points")
        lines.append("Latest: " + " | ".join(format_point(series[-1])))
    else:
        lines.append(NO_HISTORY_MESSAGE)
    return lines


class _StatsReporter:
    """Logs channel counters periodically."""

    def __init__(self, stats: ChannelStats, report_interval: float = _STATS_REPORT_SECONDS) -> None:
        self._stats = stats
        self._report_interval = report_interval
        self._last_report = time.monotonic()

    def maybe_report(self) -> None:
        now = time.monotonic()
        if now - self._last_report >= self._report_interval:
            s = self._stats
            logger.info(
                "STATS | frames=%d | events=%d | decode_errors=%d | rejected=%d | "
                "ignored=%d | connects=%d disconnects=%d",
                s.frames,
                s.events,
                s.decode_errors,
                s.rejected,
                s.ignored,
                s.connects,
                s.disconnects,
            )
            self._last_report = now


# ── Main loop ───────────────────────────────────────────────────────────


async def _run(
    config: DashboardConfig,
    fetch: bool,
    fixed_window: TimeWindow | None,
    last_minutes: int,
    render_interval: float,
) -> None:
    dashboard = SensorDashboard.from_config(config)
    channel = PushChannel(
        config.push_url,
        presence_check=config.presence_check,
        reconnect_base=config.reconnect_base,
        reconnect_max=config.reconnect_max,
    )
    dashboard.attach(channel)

    if fixed_window is not None:
        dashboard.set_window(fixed_window.start, fixed_window.end)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, stop.set)
    except NotImplementedError:
        # Windows event loops: fall back to KeyboardInterrupt.
        pass

    channel_task = asyncio.create_task(channel.run_forever())
    reporter = _StatsReporter(channel.stats)

    try:
        if fetch:
            result = await dashboard.refresh_history()
            if not result.ok:
                logger.warning("Initial history pull failed: %s", result.error)

        while not stop.is_set():
            if fixed_window is None:
                rolling = TimeWindow.last(timedelta(minutes=last_minutes))
                dashboard.set_window(rolling.start, rolling.end)

            click.echo("\n".join(render_dashboard(dashboard)))
            click.echo("")
            reporter.maybe_report()

            try:
                await asyncio.wait_for(stop.wait(), timeout=render_interval)
            except asyncio.TimeoutError:
                pass
    finally:
        logger.info("Shutting down ...")
        await channel.close()
        await channel_task
        dashboard.close()
        logger.info("Dashboard stopped")


# ── CLI definition ──────────────────────────────────────────────────────


@click.command("sensor-dashboard")
@click.option(
    "--push-url",
    default=None,
    help="WebSocket URL of the push channel (overrides PUSH_URL env var).",
)
@click.option(
    "--history-url",
    default=None,
    help="HTTP URL of the history endpoint (overrides HISTORY_URL env var).",
)
@click.option(
    "--fetch/--no-fetch",
    default=True,
    show_default=True,
    help="Pull history once at startup.",
)
@click.option(
    "--start",
    default=None,
    help="Window start, ISO-8601 or epoch milliseconds. Requires --end.",
)
@click.option(
    "--end",
    default=None,
    help="Window end, ISO-8601 or epoch milliseconds. Requires --start.",
)
@click.option(
    "--last-minutes",
    default=60,
    type=click.IntRange(min=1),
    show_default=True,
    help="Rolling window length used when --start/--end are not given.",
)
@click.option(
    "--render-interval",
    default=5.0,
    type=click.FloatRange(min=0.1),
    show_default=True,
    help="Seconds between screen refreshes.",
)
@click.option(
    "--log-level",
    default=None,
    help="Logging level (overrides LOG_LEVEL env var).",
)
def main(
    push_url: str | None,
    history_url: str | None,
    fetch: bool,
    start: str | None,
    end: str | None,
    last_minutes: int,
    render_interval: float,
    log_level: str | None,
) -> None:
    """Live and historical temperature, humidity and light dashboard."""
    # ── Configuration ───────────────────────────────────────────────────
    config = DashboardConfig.from_env()

    # CLI overrides take precedence over env vars
    overrides = {
        "push_url": push_url,
        "history_url": history_url,
        "log_level": log_level,
    }
    config = dataclasses.replace(
        config, **{key: value for key, value in overrides.items() if value is not None}
    )
    config.configure_logging()

    fixed_window: TimeWindow | None = None
    if (start is None) != (end is None):
        raise click.UsageError("--start and --end must be given together")
    if start is not None and end is not None:
        try:
            fixed_window = TimeWindow.from_bounds(_cli_timestamp(start), _cli_timestamp(end))
        except ValidationError as exc:
            raise click.BadParameter(str(exc)) from exc

    logger.info(
        "Starting dashboard | push=%s | history=%s | fetch=%s",
        config.push_url,
        config.history_url,
        fetch,
    )

    try:
        asyncio.run(_run(config, fetch, fixed_window, last_minutes, render_interval))
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt received")


def _cli_timestamp(raw: str) -> str | int:
    """Digits are epoch milliseconds; anything else is parsed as ISO-8601."""
    return int(raw) if raw.strip().isdigit() else raw


if __name__ == "__main__":
    main()
