"""Automated Attack Detector.

Detects scripted login activity against one account: either a burst of
attempts within the window, or attempts whose user agents change almost
every time (a common bot trait).
"""

import logging
from datetime import timedelta

from login_watch.config import EngineConfig
from login_watch.detectors.common import new_alert
from login_watch.schema import AnomalyAlert, LoginAttempt
from login_watch.store import HistorySnapshot

logger = logging.getLogger(__name__)


def detect_automated_attack(
    snapshot: HistorySnapshot,
    attempt: LoginAttempt,
    config: EngineConfig,
) -> list[AnomalyAlert]:
    """Detect high-volume or user-agent-churning login activity.

    The window holds the history attempts less than
    ``attack_window_minutes`` before the incoming attempt, plus the
    incoming attempt itself. Both triggers may fire on the same attempt.

    Args:
        snapshot: User history before this attempt.
        attempt: Incoming attempt.
        config: Engine thresholds.

    Returns:
        Up to two ``automated_attack`` alerts.
    """
    alerts: list[AnomalyAlert] = []

    window = timedelta(minutes=config.attack_window_minutes)
    in_window = snapshot.recent(window, attempt.timestamp) + [attempt]
    total = len(in_window)

    # Trigger 1: volume
    if total > config.attack_volume_threshold:
        logger.info(
            f"Automated attack (volume) for {attempt.user_id}: "
            f"{total} attempts in {config.attack_window_minutes} minutes"
        )
        alerts.append(
            new_alert(
                attempt,
                "automated_attack",
                "high",
                {
                    "attempts_in_hour": total,
                    "time_window": _describe_window(config.attack_window_minutes),
                },
            )
        )

    # Trigger 2: user-agent churn
    unique_user_agents = len({a.user_agent for a in in_window})
    if (
        total > config.ua_churn_min_attempts
        and unique_user_agents >= total * config.ua_churn_ratio
    ):
        logger.info(
            f"Automated attack (user-agent churn) for {attempt.user_id}: "
            f"{unique_user_agents} user agents over {total} attempts"
        )
        alerts.append(
            new_alert(
                attempt,
                "automated_attack",
                "medium",
                {
                    "reason": "multiple_user_agents",
                    "unique_user_agents": unique_user_agents,
                    "total_attempts": total,
                },
            )
        )

    return alerts


def _describe_window(minutes: int) -> str:
    if minutes % 60 == 0:
        hours = minutes // 60
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    return f"{minutes} minutes"
