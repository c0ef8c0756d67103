"""Anomaly engine.

Owns the attempt store, the alert store and the thresholds. Construct one
engine per deployment and inject it wherever login attempts are handled.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from login_watch.alerts import AlertStore
from login_watch.config import EngineConfig
from login_watch.detectors import DETECTORS, Detector, run_all_detectors
from login_watch.exceptions import StorageError
from login_watch.fingerprint import hash_fingerprint, location_key
from login_watch.schema import AnomalyAlert, AnomalyStats, CleanupSummary, LoginAttempt
from login_watch.store import AttemptStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnomalyEngine:
    """Classifies login attempts and keeps the alerts they raise.

    Args:
        config: Detector thresholds. Defaults to EngineConfig().
        attempt_store: Per-user history. Defaults to an in-memory store
            capped at ``config.max_attempts_per_user``.
        alert_store: Alert store. Defaults to an in-memory store.
        detectors: Ordered detectors to run on each attempt.
        clock: Returns the current time; used by cleanup.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        attempt_store: Optional[AttemptStore] = None,
        alert_store: Optional[AlertStore] = None,
        detectors: tuple[Detector, ...] = DETECTORS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.config = config or EngineConfig()
        if attempt_store is None:
            attempt_store = AttemptStore(self.config.max_attempts_per_user)
        self.attempts = attempt_store
        self.alerts = AlertStore() if alert_store is None else alert_store
        self.detectors = detectors
        self.clock = clock

    def analyze_login_attempt(self, attempt: LoginAttempt) -> list[AnomalyAlert]:
        """Run every detector on an attempt, then store it.

        Detection reads the user's history as it was before this attempt;
        the attempt and its device/location keys are added afterwards. The
        whole sequence runs under the user's lock.

        Args:
            attempt: Attempt to analyze. Any id it carries is replaced.

        Returns:
            Alerts raised for this attempt; empty if nothing looked odd.

        Raises:
            StorageError: If the attempt or its alerts could not be stored.
        """
        logger.debug(f"Analyzing login attempt for {attempt.email} from {attempt.source_ip}")

        attempt = attempt.model_copy(update={"id": None})
        device_key = hash_fingerprint(attempt.fingerprint)
        zone = (
            location_key(attempt.geo_location, self.config.location_precision)
            if attempt.geo_location is not None
            else None
        )

        with self.attempts.locked(attempt.user_id):
            snapshot = self.attempts.snapshot(attempt.user_id)
            alerts = run_all_detectors(snapshot, attempt, self.config, self.detectors)

            try:
                self.attempts.append(attempt, device_key=device_key, location_key=zone)
                for alert in alerts:
                    self.alerts.record(alert)
            except StorageError:
                logger.error(f"Failed to store login attempt for {attempt.user_id}")
                raise

        for alert in alerts:
            logger.warning(
                f"Anomaly detected: {alert.type} ({alert.severity}) for {attempt.email}"
            )

        return alerts

    def recent_alerts(self, user_id: str, limit: int = 50) -> list[AnomalyAlert]:
        """Most recent alerts for one user, newest first."""
        return self.alerts.by_user(user_id, limit)

    def high_severity_alerts(self, limit: int = 100) -> list[AnomalyAlert]:
        """Most recent high and critical alerts across users, newest first."""
        return self.alerts.high_severity(limit)

    def anomaly_stats(self) -> AnomalyStats:
        """Totals by type and severity plus the ten noisiest users."""
        return self.alerts.stats(top_n=10)

    def cleanup(self, older_than_days: Optional[int] = None) -> CleanupSummary:
        """Purge alerts and attempts older than the retention horizon.

        Users whose history empties entirely are forgotten, including
        their known devices and locations.

        Args:
            older_than_days: Retention horizon. Defaults to
                ``config.retention_days``.

        Returns:
            CleanupSummary with removal counts.
        """
        days = self.config.retention_days if older_than_days is None else older_than_days
        cutoff = self.clock() - timedelta(days=days)

        alerts_removed = self.alerts.purge_older_than(cutoff)
        attempts_removed, users_dropped = self.attempts.purge_older_than(cutoff)

        summary = CleanupSummary(
            cutoff=cutoff,
            alerts_removed=alerts_removed,
            attempts_removed=attempts_removed,
            users_dropped=users_dropped,
        )
        logger.info(
            f"Cleanup before {cutoff.isoformat()}: removed {alerts_removed} alerts, "
            f"{attempts_removed} attempts, dropped {users_dropped} users"
        )
        return summary
