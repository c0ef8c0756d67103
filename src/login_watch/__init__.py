"""Login Watch: authentication anomaly detection engine.

Inspects every login attempt and raises alerts for new devices, new
locations, impossible travel, automated attacks and off-hours access.
"""

__version__ = "0.1.0"

from login_watch.config import EngineConfig
from login_watch.engine import AnomalyEngine
from login_watch.schema import (
    AnomalyAlert,
    AnomalyStats,
    EnvironmentFingerprint,
    GeoLocation,
    LoginAttempt,
)

__all__ = [
    "AnomalyAlert",
    "AnomalyEngine",
    "AnomalyStats",
    "EngineConfig",
    "EnvironmentFingerprint",
    "GeoLocation",
    "LoginAttempt",
    "__version__",
]
