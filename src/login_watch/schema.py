"""Data models for login attempts and anomaly alerts.

Pydantic models shared by the stores, detectors and reports. Attempts and
alerts are frozen once created.
"""

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

AlertType = Literal[
    "new_device",
    "new_location",
    "impossible_travel",
    "automated_attack",
    "suspicious_timing",
]

Severity = Literal["low", "medium", "high", "critical"]

SEVERITIES: tuple[str, ...] = ("low", "medium", "high", "critical")


class EnvironmentFingerprint(BaseModel):
    """Environment probe captured once per client session.

    The values are opaque to the engine: they are only hashed, never
    validated, so a malformed probe degrades the device key instead of
    rejecting the attempt. Probes not listed here are accepted as extra
    fields.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    user_agent: Any = None
    language: Any = None
    timezone: Any = None
    screen_resolution: Any = None
    color_depth: Any = None
    platform: Any = None
    hardware_concurrency: Any = None
    device_memory: Any = None
    cookies_enabled: Any = None
    do_not_track: Any = None
    # Render-substrate probes
    canvas: Any = None
    webgl: Any = None


class GeoLocation(BaseModel):
    """Resolved location of a source IP."""

    model_config = ConfigDict(frozen=True)

    country: str = ""
    city: str = ""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    timezone: Optional[str] = None
    accuracy: Optional[float] = None

    def label(self) -> str:
        """Human-readable 'City, Country' label."""
        parts = [p for p in (self.city, self.country) if p]
        if parts:
            return ", ".join(parts)
        return f"({self.latitude}, {self.longitude})"


class LoginAttempt(BaseModel):
    """A single login try, successful or not.

    ``id`` is None until the attempt store accepts it.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    user_id: str
    email: str
    timestamp: datetime
    source_ip: str
    user_agent: str = ""
    success: bool
    geo_location: Optional[GeoLocation] = None
    fingerprint: EnvironmentFingerprint = Field(default_factory=EnvironmentFingerprint)

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class AnomalyAlert(BaseModel):
    """An anomaly raised by one detector for one login attempt."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    email: str
    type: AlertType
    severity: Severity
    timestamp: datetime
    details: dict[str, Any] = Field(default_factory=dict)
    source_ip: Optional[str] = None
    user_agent: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class UserAlertCount(BaseModel):
    """Alert volume for one user."""

    user_id: str
    email: str
    alert_count: int


class AnomalyStats(BaseModel):
    """Aggregate view over the alert store."""

    total_alerts: int = 0
    alerts_by_type: dict[str, int] = Field(default_factory=dict)
    alerts_by_severity: dict[str, int] = Field(default_factory=dict)
    top_risk_users: list[UserAlertCount] = Field(default_factory=list)


class CleanupSummary(BaseModel):
    """What a retention cleanup removed."""

    cutoff: datetime
    alerts_removed: int = 0
    attempts_removed: int = 0
    users_dropped: int = 0
