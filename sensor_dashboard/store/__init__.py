"""In-memory state owned by the dashboard core."""

from sensor_dashboard.store.history import HistoryStore
from sensor_dashboard.store.live import LiveState

__all__ = ["HistoryStore", "LiveState"]
