"""Detector registry and utilities.

Every detector is a pure function of a history snapshot and the incoming
attempt. DETECTORS fixes the order in which they run; new detectors are
added here without touching call sites.
"""

from typing import Callable

from login_watch.config import EngineConfig
from login_watch.detectors.automated_attack import detect_automated_attack
from login_watch.detectors.impossible_travel import detect_impossible_travel
from login_watch.detectors.novelty import detect_new_device, detect_new_location
from login_watch.detectors.suspicious_timing import detect_suspicious_timing
from login_watch.schema import AnomalyAlert, LoginAttempt
from login_watch.store import HistorySnapshot

Detector = Callable[[HistorySnapshot, LoginAttempt, EngineConfig], list[AnomalyAlert]]

DETECTORS: tuple[Detector, ...] = (
    detect_new_device,
    detect_new_location,
    detect_impossible_travel,
    detect_automated_attack,
    detect_suspicious_timing,
)

__all__ = [
    "DETECTORS",
    "Detector",
    "detect_automated_attack",
    "detect_impossible_travel",
    "detect_new_device",
    "detect_new_location",
    "detect_suspicious_timing",
    "run_all_detectors",
]


def run_all_detectors(
    snapshot: HistorySnapshot,
    attempt: LoginAttempt,
    config: EngineConfig,
    detectors: tuple[Detector, ...] = DETECTORS,
) -> list[AnomalyAlert]:
    """Run all detectors on one attempt.

    Args:
        snapshot: User history before this attempt.
        attempt: Incoming attempt.
        config: Engine thresholds.
        detectors: Detectors to run, in order.

    Returns:
        Combined list of alerts from all detectors.
    """
    alerts: list[AnomalyAlert] = []
    for detector in detectors:
        alerts.extend(detector(snapshot, attempt, config))
    return alerts
