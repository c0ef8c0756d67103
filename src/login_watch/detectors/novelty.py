"""New Device / New Location Detectors.

Flags the first time a user logs in from a device or a location zone that
is not part of their established baseline. The very first device and the
very first location of a user form the baseline and never alert.
"""

import logging

from login_watch.config import EngineConfig
from login_watch.detectors.common import new_alert
from login_watch.fingerprint import device_label, hash_fingerprint, location_key
from login_watch.schema import AnomalyAlert, LoginAttempt
from login_watch.store import HistorySnapshot

logger = logging.getLogger(__name__)


def _probe_user_agent(attempt: LoginAttempt) -> str:
    probed = attempt.fingerprint.user_agent
    if isinstance(probed, str) and probed:
        return probed
    return attempt.user_agent


def detect_new_device(
    snapshot: HistorySnapshot,
    attempt: LoginAttempt,
    config: EngineConfig,
) -> list[AnomalyAlert]:
    """Detect a login from a device not yet known for the user.

    Args:
        snapshot: User history before this attempt.
        attempt: Incoming attempt.
        config: Engine thresholds.

    Returns:
        One medium ``new_device`` alert, or an empty list.
    """
    device_key = hash_fingerprint(attempt.fingerprint)

    # Cold start: the first device becomes the baseline
    if not snapshot.known_devices or device_key in snapshot.known_devices:
        return []

    logger.info(f"New device detected for {attempt.user_id}: {device_key}")

    return [
        new_alert(
            attempt,
            "new_device",
            "medium",
            {
                "fingerprint": attempt.fingerprint.model_dump(exclude_none=True),
                "device_key": device_key,
                "device_label": device_label(_probe_user_agent(attempt)),
                "known_devices_count": len(snapshot.known_devices) + 1,
            },
        )
    ]


def detect_new_location(
    snapshot: HistorySnapshot,
    attempt: LoginAttempt,
    config: EngineConfig,
) -> list[AnomalyAlert]:
    """Detect a login from a location zone not yet known for the user.

    Skipped when the attempt carries no geolocation.

    Args:
        snapshot: User history before this attempt.
        attempt: Incoming attempt.
        config: Engine thresholds.

    Returns:
        One medium ``new_location`` alert, or an empty list.
    """
    if attempt.geo_location is None:
        return []

    zone = location_key(attempt.geo_location, config.location_precision)

    if not snapshot.known_locations or zone in snapshot.known_locations:
        return []

    logger.info(
        f"New location detected for {attempt.user_id}: {attempt.geo_location.label()}"
    )

    return [
        new_alert(
            attempt,
            "new_location",
            "medium",
            {
                "location": attempt.geo_location.model_dump(),
                "location_key": zone,
                "known_locations_count": len(snapshot.known_locations) + 1,
            },
        )
    ]
