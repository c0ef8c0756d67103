"""Engine thresholds.

Every numeric threshold the detectors use lives here as a named field so
deployments can tune it. Values can be overridden via environment
variables prefixed with ``LOGIN_WATCH_``.

Example:
    LOGIN_WATCH_TRAVEL_SPEED_CEILING_KMH=900
    LOGIN_WATCH_ATTACK_VOLUME_THRESHOLD=30
"""

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Optional

from login_watch.exceptions import ConfigurationError

ENV_PREFIX = "LOGIN_WATCH_"


@dataclass(frozen=True)
class EngineConfig:
    """Thresholds for the anomaly detectors and the stores."""

    # Stores
    max_attempts_per_user: int = 100
    retention_days: int = 30

    # Impossible travel
    travel_speed_ceiling_kmh: float = 1000.0
    travel_max_gap_hours: float = 24.0
    travel_lookback: int = 10
    earth_radius_km: float = 6371.0

    # Automated attack
    attack_window_minutes: int = 60
    attack_volume_threshold: int = 20
    ua_churn_min_attempts: int = 5
    ua_churn_ratio: float = 0.8

    # Suspicious timing
    timing_min_successes: int = 5
    usual_hour_ratio: float = 0.1
    night_start_hour: int = 2
    night_end_hour: int = 5

    # Location zones (decimal places kept from lat/lon)
    location_precision: int = 1

    def __post_init__(self):
        """Validate thresholds after initialization."""
        for name in (
            "max_attempts_per_user",
            "retention_days",
            "travel_lookback",
            "attack_window_minutes",
        ):
            if getattr(self, name) < 1:
                raise ConfigurationError(
                    f"{name} must be at least 1",
                    details={name: getattr(self, name)},
                )

        for name in ("travel_speed_ceiling_kmh", "travel_max_gap_hours", "earth_radius_km"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(
                    f"{name} must be positive",
                    details={name: getattr(self, name)},
                )

        for name in ("ua_churn_ratio", "usual_hour_ratio"):
            value = getattr(self, name)
            if not 0 < value <= 1:
                raise ConfigurationError(
                    f"{name} must be in (0, 1]",
                    details={name: value},
                )

        if not 0 <= self.night_start_hour <= self.night_end_hour <= 23:
            raise ConfigurationError(
                "Night window must satisfy 0 <= night_start_hour <= night_end_hour <= 23",
                details={
                    "night_start_hour": self.night_start_hour,
                    "night_end_hour": self.night_end_hour,
                },
            )

        if self.location_precision < 0:
            raise ConfigurationError(
                "location_precision cannot be negative",
                details={"location_precision": self.location_precision},
            )

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "EngineConfig":
        """Build a config from ``LOGIN_WATCH_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Returns:
            EngineConfig with any overrides applied.

        Raises:
            ConfigurationError: If a variable cannot be parsed.
        """
        environ = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}

        for f in fields(cls):
            raw = environ.get(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is None:
                continue
            try:
                overrides[f.name] = int(raw) if f.type in (int, "int") else float(raw)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for {ENV_PREFIX}{f.name.upper()}: {raw!r}",
                    details={"field": f.name},
                ) from e

        return cls(**overrides)

    def with_overrides(self, **overrides: Any) -> "EngineConfig":
        """Return a copy with the given non-None fields replaced."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
