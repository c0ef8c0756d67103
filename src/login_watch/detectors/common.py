"""Helpers shared by the detectors."""

import uuid
from typing import Any

from login_watch.schema import AlertType, AnomalyAlert, LoginAttempt, Severity

ALERT_ID_PREFIXES: dict[str, str] = {
    "new_device": "ND",
    "new_location": "NL",
    "impossible_travel": "IT",
    "automated_attack": "AA",
    "suspicious_timing": "ST",
}


def new_alert(
    attempt: LoginAttempt,
    alert_type: AlertType,
    severity: Severity,
    details: dict[str, Any],
) -> AnomalyAlert:
    """Create an alert stamped with the attempt's user, IP and time.

    Args:
        attempt: The attempt that triggered the alert.
        alert_type: Anomaly type.
        severity: Alert severity.
        details: Detector-specific evidence.

    Returns:
        AnomalyAlert with a fresh id.
    """
    return AnomalyAlert(
        id=f"{ALERT_ID_PREFIXES[alert_type]}-{uuid.uuid4().hex[:8].upper()}",
        user_id=attempt.user_id,
        email=attempt.email,
        type=alert_type,
        severity=severity,
        timestamp=attempt.timestamp,
        details=details,
        source_ip=attempt.source_ip,
        user_agent=attempt.user_agent or None,
    )
