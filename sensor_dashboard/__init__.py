"""Client-side aggregation core for a live and historical sensor dashboard."""

from sensor_dashboard.dashboard import RefreshResult, SensorDashboard

__version__ = "0.1.0"

__all__ = ["RefreshResult", "SensorDashboard", "__version__"]
