"""WebSocket push channel for live readings, status and bulk history.

Owns one long-lived connection, decodes each inbound frame, and dispatches
typed events to registered callbacks.  Everything runs on the asyncio event
loop; a callback runs to completion before the next frame is read.

State machine::

    IDLE -> CONNECTING -> CONNECTED -> DISCONNECTED -> CONNECTING ... -> CLOSED

``CLOSED`` is terminal and only reachable through ``close()``.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from sensor_dashboard.errors import DecodeError, TransportError
from sensor_dashboard.sources.codec import ChannelEvent, decode_frame

logger = logging.getLogger(__name__)

EventCallback = Callable[[ChannelEvent], None]
StateCallback = Callable[["ChannelState"], None]
Connector = Callable[[str], Awaitable[Any]]


class ChannelState(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    CLOSED = "closed"


@dataclass
class ChannelStats:
    """Running counters for frames seen on the channel."""

    frames: int = 0
    events: int = 0
    decode_errors: int = 0
    ignored: int = 0
    rejected: int = 0
    connects: int = 0
    disconnects: int = 0

    def as_dict(self) -> dict[str, int]:
        return dict(self.__dict__)


def backoff_delay(
    attempt: int,
    base: float = 1.0,
    cap: float = 30.0,
    jitter: float = 0.1,
) -> float:
    """Capped exponential delay for reconnect *attempt* (1-based), jittered."""
    delay = min(base * (2 ** max(attempt - 1, 0)), cap)
    return delay + random.uniform(0, delay * jitter)


async def _default_connector(url: str) -> Any:
    return await connect(url)


class PushChannel:
    """Client side of the telemetry server's WebSocket push stream."""

    def __init__(
        self,
        url: str,
        presence_check: bool = False,
        reconnect_base: float = 1.0,
        reconnect_max: float = 30.0,
        connector: Connector | None = None,
    ) -> None:
        self._url = url
        self._presence_check = presence_check
        self._reconnect_base = reconnect_base
        self._reconnect_max = reconnect_max
        self._connector = connector or _default_connector
        self._ws: Any = None
        self._state = ChannelState.IDLE
        self._callbacks: list[EventCallback] = []
        self._state_callbacks: list[StateCallback] = []
        self._disconnected = asyncio.Event()
        self._closing = asyncio.Event()
        self.stats = ChannelStats()

    @property
    def url(self) -> str:
        return self._url

    @property
    def state(self) -> ChannelState:
        return self._state

    def register_callback(self, callback: EventCallback) -> None:
        """Register a callback for decoded channel events."""
        self._callbacks.append(callback)

    def on_state_change(self, callback: StateCallback) -> None:
        """Register a callback for connection state transitions."""
        self._state_callbacks.append(callback)

    def _set_state(self, state: ChannelState) -> None:
        # CLOSED is terminal.
        if state == self._state or self._state == ChannelState.CLOSED:
            return
        logger.debug("Channel %s: %s -> %s", self._url, self._state, state)
        self._state = state
        if state in (ChannelState.DISCONNECTED, ChannelState.CLOSED):
            self._disconnected.set()
        else:
            self._disconnected.clear()
        for callback in list(self._state_callbacks):
            try:
                callback(state)
            except Exception:
                logger.exception("State callback error")

    # ── Connection lifecycle ───────────────────────────────────────────

    async def open(self) -> None:
        """Connect to the push server.  Raises ``TransportError`` on failure."""
        if self._state == ChannelState.CLOSED:
            raise TransportError("channel is closed")
        if self._state == ChannelState.CONNECTED:
            return

        self._set_state(ChannelState.CONNECTING)
        logger.info("Connecting to push channel at %s ...", self._url)
        try:
            ws = await self._connector(self._url)
        except (OSError, InvalidURI, InvalidHandshake, asyncio.TimeoutError) as exc:
            logger.warning("Push channel connection to %s failed: %s", self._url, exc)
            self._set_state(ChannelState.DISCONNECTED)
            raise TransportError(f"cannot connect to {self._url}: {exc}") from exc

        if self._closing.is_set():
            await ws.close()
            self._set_state(ChannelState.CLOSED)
            raise TransportError("channel closed while connecting")

        self._ws = ws
        self.stats.connects += 1
        self._set_state(ChannelState.CONNECTED)
        logger.info("Push channel connected to %s", self._url)

    async def listen(self) -> None:
        """Receive frames until the connection ends.

        Returns normally on a clean close; the state is then
        ``DISCONNECTED`` (or ``CLOSED`` if ``close()`` was called).
        """
        if self._ws is None:
            raise TransportError("channel is not connected")

        ws = self._ws
        try:
            async for message in ws:
                self.handle_frame(message)
        except ConnectionClosed as exc:
            logger.warning("Push channel connection lost: %s", exc)
        except OSError as exc:
            logger.warning("Push channel transport error: %s", exc)
        finally:
            self._ws = None
            self.stats.disconnects += 1
            if self._closing.is_set():
                self._set_state(ChannelState.CLOSED)
            else:
                logger.info("Push channel disconnected from %s", self._url)
                self._set_state(ChannelState.DISCONNECTED)

    async def wait_closed(self) -> None:
        """Resolve once the current connection has ended."""
        await self._disconnected.wait()

    async def run_forever(self) -> None:
        """Keep the channel connected, reconnecting with backoff until closed."""
        attempt = 0
        while not self._closing.is_set():
            try:
                await self.open()
            except TransportError:
                if self._closing.is_set():
                    break
                attempt += 1
                delay = backoff_delay(attempt, self._reconnect_base, self._reconnect_max)
                logger.info("Reconnecting in %.1fs (attempt %d)", delay, attempt)
                await self._sleep_unless_closing(delay)
                continue

            attempt = 0
            await self.listen()

            if not self._closing.is_set():
                attempt += 1
                delay = backoff_delay(attempt, self._reconnect_base, self._reconnect_max)
                logger.info("Reconnecting in %.1fs", delay)
                await self._sleep_unless_closing(delay)

        self._set_state(ChannelState.CLOSED)

    async def _sleep_unless_closing(self, delay: float) -> None:
        try:
            await asyncio.wait_for(self._closing.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def close(self) -> None:
        """Terminate the connection.  Safe to call more than once."""
        if self._state == ChannelState.CLOSED:
            return
        self._closing.set()
        ws, self._ws = self._ws, None
        if ws is not None:
            try:
                await ws.close()
            except (ConnectionClosed, OSError) as exc:
                logger.warning("Error closing push channel: %s", exc)
        self._set_state(ChannelState.CLOSED)
        logger.info("Push channel closed")

    # ── Frame handling ─────────────────────────────────────────────────

    def handle_frame(self, message: str | bytes) -> list[ChannelEvent]:
        """Decode one frame and dispatch its events.  Never raises."""
        self.stats.frames += 1
        try:
            result = decode_frame(message, presence_check=self._presence_check)
        except DecodeError as exc:
            self.stats.decode_errors += 1
            logger.warning("Dropping frame: %s", exc)
            return []

        for error in result.rejected:
            self.stats.rejected += 1
            logger.debug("Rejected frame content: %s", error)
        if result.ignored:
            self.stats.ignored += 1
            logger.debug("Ignoring unrecognized frame")

        for event in result.events:
            self.stats.events += 1
            self._dispatch(event)
        return result.events

    def _dispatch(self, event: ChannelEvent) -> None:
        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception:
                logger.exception("Callback error for %s", type(event).__name__)
