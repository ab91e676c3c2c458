"""Dashboard core: reconciles the push channel and history pulls into one view.

``SensorDashboard`` owns the history store, the live state and the selected
time window.  Every mutation (a channel event, a finished pull, a window
change) runs to completion on the event loop and is followed by one
notification to subscribers.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sensor_dashboard.analytics.stats import Stats, compute_stats
from sensor_dashboard.analytics.window import TimeWindow, filter_readings
from sensor_dashboard.errors import FetchError
from sensor_dashboard.presentation import PresentationAdapter, StatCard
from sensor_dashboard.sources.codec import (
    ChannelEvent,
    FullHistorySnapshot,
    LiveReading,
    StatusUpdate,
)
from sensor_dashboard.sources.history_client import HistoryClient
from sensor_dashboard.sources.push_channel import ChannelState, PushChannel
from sensor_dashboard.store.history import HistoryStore
from sensor_dashboard.store.live import LiveState

if TYPE_CHECKING:
    from sensor_dashboard.config import DashboardConfig
    from sensor_dashboard.models.reading import LiveSnapshot, Metric, Reading
    from sensor_dashboard.models.status import SensorStatus

logger = logging.getLogger(__name__)

Subscriber = Callable[[], None]


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of ``refresh_history``."""

    ok: bool
    loaded: int = 0
    error: FetchError | None = None


class SensorDashboard:
    """Queryable, reactive view over live and historical readings."""

    def __init__(
        self,
        history_client: HistoryClient | None = None,
        store: HistoryStore | None = None,
        window: TimeWindow | None = None,
    ) -> None:
        self.store = store if store is not None else HistoryStore()
        self.live = LiveState()
        self.presentation = PresentationAdapter(self.live)
        self._history_client = history_client
        self._window = window or TimeWindow.now()
        self._subscribers: list[Subscriber] = []
        self._filtered_key: tuple[int, TimeWindow] | None = None
        self._filtered: list[Reading] = []
        self._connection_state = ChannelState.IDLE
        self._loading = False
        self._inflight: asyncio.Task[RefreshResult] | None = None

    @classmethod
    def from_config(cls, config: DashboardConfig) -> SensorDashboard:
        client = HistoryClient(
            config.history_url,
            timeout=config.history_timeout,
            verify_ssl=config.verify_ssl,
        )
        return cls(
            history_client=client,
            store=HistoryStore(sort_on_replace=config.sort_on_replace),
        )

    # ── Subscriptions ──────────────────────────────────────────────────

    def subscribe(self, on_change: Subscriber) -> Callable[[], None]:
        """Call *on_change* after every completed state change.

        Returns a function that removes the subscription.
        """
        self._subscribers.append(on_change)

        def unsubscribe() -> None:
            if on_change in self._subscribers:
                self._subscribers.remove(on_change)

        return unsubscribe

    def _notify(self) -> None:
        for subscriber in list(self._subscribers):
            try:
                subscriber()
            except Exception:
                logger.exception("Subscriber error")

    # ── Channel wiring ─────────────────────────────────────────────────

    def attach(self, channel: PushChannel) -> None:
        """Route a push channel's events and connection state into this view."""
        channel.register_callback(self.apply_event)
        channel.on_state_change(self._on_connection_state)
        self._connection_state = channel.state

    def apply_event(self, event: ChannelEvent) -> None:
        """Apply one decoded channel event, then notify subscribers."""
        match event:
            case FullHistorySnapshot(records=records):
                self.store.replace_all(records)
            case LiveReading(snapshot=snapshot):
                self.live.update_snapshot(snapshot)
            case StatusUpdate(status=status):
                self.live.update_status(status)
            case _:
                logger.warning("Ignoring unknown event type %s", type(event).__name__)
                return
        self._notify()

    def _on_connection_state(self, state: ChannelState) -> None:
        self._connection_state = state
        self._notify()

    @property
    def connection_state(self) -> ChannelState:
        return self._connection_state

    # ── History pull ───────────────────────────────────────────────────

    @property
    def loading(self) -> bool:
        return self._loading

    async def refresh_history(self) -> RefreshResult:
        """Pull a full history batch and install it in the store.

        On failure the store is unchanged and the result carries the
        ``FetchError``.  A call made while a pull is in flight shares that
        pull's result instead of issuing a second request.  Cancelling a
        caller never cancels the shared pull; only ``close()`` does.
        """
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._refresh())
        return await asyncio.shield(self._inflight)

    async def _refresh(self) -> RefreshResult:
        if self._history_client is None:
            return RefreshResult(ok=False, error=FetchError("no history endpoint configured"))

        self._loading = True
        self._notify()
        try:
            records = await self._history_client.fetch_async()
            loaded = self.store.replace_all(records)
        except FetchError as exc:
            logger.warning("History refresh failed: %s", exc)
            return RefreshResult(ok=False, error=exc)
        finally:
            self._loading = False
            self._notify()

        logger.info("History refresh loaded %d readings", loaded)
        return RefreshResult(ok=True, loaded=loaded)

    # ── Window ─────────────────────────────────────────────────────────

    def set_window(self, start: Any, end: Any) -> TimeWindow:
        """Select the inclusive ``[start, end]`` window and notify."""
        self._window = TimeWindow.from_bounds(start, end)
        logger.debug("Window set to %s .. %s", self._window.start, self._window.end)
        self._notify()
        return self._window

    def get_window(self) -> TimeWindow:
        return self._window

    # ── Queries ────────────────────────────────────────────────────────

    def get_current_metrics(self) -> LiveSnapshot:
        return self.presentation.current_metrics()

    def get_sensor_status(self) -> SensorStatus:
        return self.presentation.sensor_status()

    def get_filtered_readings(self) -> list[Reading]:
        """Readings inside the current window, cached per store revision."""
        key = (self.store.revision, self._window)
        if key != self._filtered_key:
            self._filtered = filter_readings(self.store.snapshot(), self._window)
            self._filtered_key = key
        return list(self._filtered)

    def get_filtered_series(self) -> list[dict[str, Any]]:
        return self.presentation.chart_series(self.get_filtered_readings())

    def get_stats(self, metric: Metric | str) -> Stats:
        return compute_stats(self.get_filtered_readings(), metric)

    def get_stat_cards(self) -> list[StatCard]:
        return self.presentation.stat_cards(self.get_filtered_readings())

    def has_history_in_window(self) -> bool:
        return bool(self.get_filtered_readings())

    def close(self) -> None:
        """Abandon any pending pull and release the HTTP session."""
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        if self._history_client is not None:
            self._history_client.close()
