"""Data sources feeding the dashboard: push channel and history pull."""

from sensor_dashboard.sources.codec import (
    ChannelEvent,
    FullHistorySnapshot,
    LiveReading,
    StatusUpdate,
    decode_frame,
)
from sensor_dashboard.sources.history_client import HistoryClient
from sensor_dashboard.sources.push_channel import (
    ChannelState,
    ChannelStats,
    PushChannel,
    backoff_delay,
)

__all__ = [
    "ChannelEvent",
    "ChannelState",
    "ChannelStats",
    "FullHistorySnapshot",
    "HistoryClient",
    "LiveReading",
    "PushChannel",
    "StatusUpdate",
    "backoff_delay",
    "decode_frame",
]
