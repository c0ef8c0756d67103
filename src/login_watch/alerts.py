"""Alert accumulation, queries and aggregate statistics.

The store is append-only: alerts are never rewritten, only purged by age
during retention cleanup.
"""

import logging
import threading
from collections import Counter
from datetime import datetime

from login_watch.schema import AnomalyAlert, AnomalyStats, UserAlertCount

logger = logging.getLogger(__name__)

HIGH_SEVERITIES = frozenset({"high", "critical"})


class AlertStore:
    """In-memory, thread-safe store of emitted alerts."""

    def __init__(self):
        self._alerts: list[AnomalyAlert] = []
        self._lock = threading.Lock()

    def record(self, alert: AnomalyAlert) -> None:
        with self._lock:
            self._alerts.append(alert)

    def all(self) -> list[AnomalyAlert]:
        with self._lock:
            return list(self._alerts)

    def by_user(self, user_id: str, limit: int = 50) -> list[AnomalyAlert]:
        """Alerts for one user, newest first.

        Args:
            user_id: User identifier.
            limit: Maximum number of alerts returned.

        Returns:
            List of AnomalyAlert objects.
        """
        alerts = [a for a in self.all() if a.user_id == user_id]
        return _newest_first(alerts)[:limit]

    def high_severity(self, limit: int = 100) -> list[AnomalyAlert]:
        """High and critical alerts across all users, newest first."""
        alerts = [a for a in self.all() if a.severity in HIGH_SEVERITIES]
        return _newest_first(alerts)[:limit]

    def purge_older_than(self, cutoff: datetime) -> int:
        """Drop alerts with a timestamp at or before ``cutoff``.

        Returns:
            Number of alerts removed.
        """
        with self._lock:
            before = len(self._alerts)
            self._alerts = [a for a in self._alerts if a.timestamp > cutoff]
            removed = before - len(self._alerts)
        logger.debug(f"Purged {removed} alerts at or before {cutoff.isoformat()}")
        return removed

    def stats(self, top_n: int = 10) -> AnomalyStats:
        """Aggregate counts by type, severity and user.

        Args:
            top_n: Number of users kept in the risk ranking.

        Returns:
            AnomalyStats with users ranked by alert volume, descending.
        """
        alerts = self.all()

        by_type = Counter(a.type for a in alerts)
        by_severity = Counter(a.severity for a in alerts)

        # user_id -> [email, count], in first-seen order for stable ties
        per_user: dict[str, list] = {}
        for alert in alerts:
            entry = per_user.setdefault(alert.user_id, [alert.email, 0])
            entry[1] += 1

        ranked = sorted(per_user.items(), key=lambda item: -item[1][1])

        return AnomalyStats(
            total_alerts=len(alerts),
            alerts_by_type=dict(by_type),
            alerts_by_severity=dict(by_severity),
            top_risk_users=[
                UserAlertCount(user_id=user_id, email=email, alert_count=count)
                for user_id, (email, count) in ranked[:top_n]
            ],
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._alerts)


def _newest_first(alerts: list[AnomalyAlert]) -> list[AnomalyAlert]:
    return sorted(alerts, key=lambda a: a.timestamp, reverse=True)
