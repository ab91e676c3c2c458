"""Centralized configuration loaded from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def _env_timeout(name: str, default: str) -> float | None:
    raw = os.environ.get(name, default).strip()
    if not raw:
        return None
    value = float(raw)
    return value if value > 0 else None


@dataclass(frozen=True)
class DashboardConfig:
    """Configuration for the sensor dashboard core.

    All values are loaded from environment variables with defaults that
    match a local telemetry server (push on :4000, history on :3000).
    """

    push_url: str = "ws://localhost:4000"
    history_url: str = "http://localhost:3000/history"
    history_timeout: float | None = 10.0
    verify_ssl: bool = True
    reconnect_base: float = 1.0
    reconnect_max: float = 30.0
    sort_on_replace: bool = False
    presence_check: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> DashboardConfig:
        """Build configuration from environment variables."""
        return cls(
            push_url=os.environ.get("PUSH_URL", "ws://localhost:4000"),
            history_url=os.environ.get("HISTORY_URL", "http://localhost:3000/history"),
            history_timeout=_env_timeout("HISTORY_TIMEOUT_SECONDS", "10"),
            verify_ssl=_env_bool("VERIFY_SSL", True),
            reconnect_base=float(os.environ.get("RECONNECT_BASE_SECONDS", "1.0")),
            reconnect_max=float(os.environ.get("RECONNECT_MAX_SECONDS", "30.0")),
            sort_on_replace=_env_bool("SORT_ON_REPLACE", False),
            presence_check=_env_bool("LIVE_PRESENCE_CHECK", False),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
        )

    def configure_logging(self) -> None:
        """Set up structured logging based on configured level."""
        logging.basicConfig(
            level=getattr(logging, self.log_level.upper(), logging.INFO),
            format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
