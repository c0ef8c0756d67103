"""Impossible Travel Detector.

Detects when a user authenticates from a location that could not be
reached from their previous successful login in the time elapsed.
"""

import logging

from haversine import Unit, haversine

from login_watch.config import EngineConfig
from login_watch.detectors.common import new_alert
from login_watch.schema import AnomalyAlert, GeoLocation, LoginAttempt
from login_watch.store import HistorySnapshot

logger = logging.getLogger(__name__)


def great_circle_km(origin: GeoLocation, destination: GeoLocation, radius_km: float = 6371.0) -> float:
    """Haversine distance between two locations.

    Args:
        origin: Start location.
        destination: End location.
        radius_km: Earth radius used to scale the central angle.

    Returns:
        Distance in kilometers.
    """
    central_angle = haversine(
        (origin.latitude, origin.longitude),
        (destination.latitude, destination.longitude),
        unit=Unit.RADIANS,
    )
    return radius_km * central_angle


def detect_impossible_travel(
    snapshot: HistorySnapshot,
    attempt: LoginAttempt,
    config: EngineConfig,
) -> list[AnomalyAlert]:
    """Detect impossible travel since the last located successful login.

    Compares the incoming attempt with the most recent successful attempt
    that carries a location and flags it when the implied speed exceeds
    the ceiling. Gaps longer than ``travel_max_gap_hours`` are ignored.

    Args:
        snapshot: User history before this attempt.
        attempt: Incoming attempt.
        config: Engine thresholds.

    Returns:
        One high ``impossible_travel`` alert, or an empty list.
    """
    if attempt.geo_location is None:
        return []

    previous_logins = snapshot.successful_with_location(config.travel_lookback)
    if not previous_logins:
        return []

    previous = previous_logins[0]

    # Calculate time difference in hours
    time_delta = (attempt.timestamp - previous.timestamp).total_seconds() / 3600

    # Skip if time is too long
    if time_delta > config.travel_max_gap_hours:
        return []

    distance_km = great_circle_km(
        previous.geo_location, attempt.geo_location, config.earth_radius_km
    )

    # Sub-hour gaps are treated as one hour
    speed_kmh = distance_km / max(time_delta, 1)

    if speed_kmh <= config.travel_speed_ceiling_kmh:
        return []

    logger.info(
        f"Impossible travel detected for {attempt.user_id}: "
        f"{distance_km:.0f}km in {time_delta:.1f}h = {speed_kmh:.0f}km/h"
    )

    return [
        new_alert(
            attempt,
            "impossible_travel",
            "high",
            {
                "distance_km": round(distance_km, 2),
                "time_diff_hours": round(time_delta, 2),
                "speed_kmh": round(speed_kmh, 2),
                "from_location": previous.geo_location.model_dump(),
                "to_location": attempt.geo_location.model_dump(),
            },
        )
    ]
