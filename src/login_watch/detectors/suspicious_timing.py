"""Suspicious Timing Detector.

Learns which hours of the day a user usually logs in and flags night-time
attempts outside those hours.
"""

import logging
from collections import Counter
from datetime import datetime, timezone

from login_watch.config import EngineConfig
from login_watch.detectors.common import new_alert
from login_watch.schema import AnomalyAlert, LoginAttempt
from login_watch.store import HistorySnapshot

logger = logging.getLogger(__name__)


def _utc_hour(timestamp: datetime) -> int:
    return timestamp.astimezone(timezone.utc).hour


def usual_hours(hours: list[int], ratio: float = 0.1) -> list[int]:
    """Hours of day accounting for more than ``ratio`` of all logins.

    Args:
        hours: Hour of day (0-23) of each historical login.
        ratio: Share of logins an hour must exceed to count as usual.

    Returns:
        Sorted list of usual hours.
    """
    counts = Counter(hours)
    threshold = len(hours) * ratio
    # Strict: one login in ten at 10% is a one-off, not a habit
    return sorted(hour for hour, count in counts.items() if count > threshold)


def detect_suspicious_timing(
    snapshot: HistorySnapshot,
    attempt: LoginAttempt,
    config: EngineConfig,
) -> list[AnomalyAlert]:
    """Detect a night-time login outside the user's usual hours.

    Requires at least ``timing_min_successes`` successful logins in the
    history to establish a baseline.

    Args:
        snapshot: User history before this attempt.
        attempt: Incoming attempt.
        config: Engine thresholds.

    Returns:
        One low ``suspicious_timing`` alert, or an empty list.
    """
    successful = snapshot.successful()
    if len(successful) < config.timing_min_successes:
        return []

    hour = _utc_hour(attempt.timestamp)
    if not config.night_start_hour <= hour <= config.night_end_hour:
        return []

    usual = usual_hours([_utc_hour(a.timestamp) for a in successful], config.usual_hour_ratio)
    if hour in usual:
        return []

    logger.info(f"Suspicious timing for {attempt.user_id}: login at {hour:02d}h")

    return [
        new_alert(
            attempt,
            "suspicious_timing",
            "low",
            {
                "unusual_hour": hour,
                "usual_hours": usual,
                "time_category": "night",
            },
        )
    ]
