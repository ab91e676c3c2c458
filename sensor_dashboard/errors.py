"""Error taxonomy for the dashboard core.

Every failure mode is local and recoverable: callers log and continue.
"""

from __future__ import annotations


class SensorDashboardError(Exception):
    """Base class for all dashboard core errors."""


class TransportError(SensorDashboardError):
    """The push channel failed to connect, or the connection dropped."""


class DecodeError(SensorDashboardError):
    """A frame or response body could not be decoded as UTF-8 JSON."""


class ValidationError(SensorDashboardError):
    """A reading or status payload failed validation and was dropped."""


class FetchError(SensorDashboardError):
    """The history pull failed; the store was left unchanged."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
