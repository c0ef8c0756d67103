"""Tests for detection algorithms."""

import pytest
from datetime import datetime, timedelta, timezone

from login_watch.config import EngineConfig
from login_watch.detectors import DETECTORS, run_all_detectors
from login_watch.detectors.automated_attack import detect_automated_attack
from login_watch.detectors.impossible_travel import detect_impossible_travel, great_circle_km
from login_watch.detectors.novelty import detect_new_device, detect_new_location
from login_watch.detectors.suspicious_timing import detect_suspicious_timing, usual_hours
from login_watch.fingerprint import hash_fingerprint, location_key
from login_watch.store import HistorySnapshot

from conftest import ABIDJAN, PARIS, SAFARI_UA, make_attempt, make_fingerprint

BASE = datetime(2025, 1, 1, 10, 0, 0)


def _snapshot(attempts=(), devices=(), locations=()) -> HistorySnapshot:
    return HistorySnapshot(
        user_id="user-001",
        attempts=tuple(attempts),
        known_devices=frozenset(devices),
        known_locations=frozenset(locations),
    )


class TestNewDevice:
    """Tests for new device detector."""

    def test_no_alert_without_baseline(self, config):
        """Test that the first device is never flagged."""
        alerts = detect_new_device(_snapshot(), make_attempt(), config)
        assert alerts == []

    def test_detects_new_device(self, config):
        """Test detection of an unknown fingerprint."""
        known = hash_fingerprint(make_fingerprint())
        attempt = make_attempt(fingerprint=make_fingerprint(user_agent=SAFARI_UA, platform="iPhone"))

        alerts = detect_new_device(_snapshot(devices=[known]), attempt, config)

        assert len(alerts) == 1
        assert alerts[0].type == "new_device"
        assert alerts[0].severity == "medium"
        assert alerts[0].id.startswith("ND-")
        assert alerts[0].details["known_devices_count"] == 2
        assert alerts[0].details["fingerprint"]["platform"] == "iPhone"

    def test_known_device_not_flagged(self, config):
        """Test that a known fingerprint raises nothing."""
        known = hash_fingerprint(make_fingerprint())
        alerts = detect_new_device(_snapshot(devices=[known]), make_attempt(), config)
        assert alerts == []


class TestNewLocation:
    """Tests for new location detector."""

    def test_skips_without_geolocation(self, config):
        """Test that attempts without location are skipped."""
        snapshot = _snapshot(locations=[location_key(PARIS)])
        assert detect_new_location(snapshot, make_attempt(), config) == []

    def test_no_alert_without_baseline(self, config):
        """Test that the first location is never flagged."""
        attempt = make_attempt(geo_location=ABIDJAN)
        assert detect_new_location(_snapshot(), attempt, config) == []

    def test_detects_new_location(self, config):
        """Test detection of an unknown zone."""
        snapshot = _snapshot(locations=[location_key(ABIDJAN)])
        alerts = detect_new_location(snapshot, make_attempt(geo_location=PARIS), config)

        assert len(alerts) == 1
        assert alerts[0].type == "new_location"
        assert alerts[0].severity == "medium"
        assert alerts[0].details["location"]["city"] == "Paris"

    def test_nearby_point_is_same_zone(self, config):
        """Test that points in the same rounded cell are known."""
        snapshot = _snapshot(locations=[location_key(ABIDJAN)])
        nearby = ABIDJAN.model_copy(update={"latitude": 5.338, "longitude": -4.031})
        assert detect_new_location(snapshot, make_attempt(geo_location=nearby), config) == []


class TestImpossibleTravel:
    """Tests for impossible travel detector."""

    def test_distance_abidjan_paris(self):
        """Test haversine distance with the 6371 km radius."""
        distance = great_circle_km(ABIDJAN, PARIS)
        assert 4800 < distance < 4950

    def test_detects_impossible_travel(self, config):
        """Test detection when speed exceeds the ceiling."""
        previous = make_attempt(timestamp=BASE, geo_location=ABIDJAN)
        attempt = make_attempt(timestamp=BASE + timedelta(hours=1), geo_location=PARIS)

        alerts = detect_impossible_travel(_snapshot([previous]), attempt, config)

        assert len(alerts) == 1
        assert alerts[0].type == "impossible_travel"
        assert alerts[0].severity == "high"
        details = alerts[0].details
        assert details["speed_kmh"] > 1000
        assert details["time_diff_hours"] == 1
        assert details["from_location"]["city"] == "Abidjan"
        assert details["to_location"]["city"] == "Paris"

    def test_no_alert_for_plausible_travel(self, config):
        """Test no alert when six hours separate the logins."""
        previous = make_attempt(timestamp=BASE, geo_location=ABIDJAN)
        attempt = make_attempt(timestamp=BASE + timedelta(hours=6), geo_location=PARIS)

        assert detect_impossible_travel(_snapshot([previous]), attempt, config) == []

    def test_skips_long_gaps(self):
        """Test that gaps above the maximum are ignored."""
        config = EngineConfig(travel_speed_ceiling_kmh=10)
        previous = make_attempt(timestamp=BASE, geo_location=ABIDJAN)
        attempt = make_attempt(timestamp=BASE + timedelta(hours=25), geo_location=PARIS)

        assert detect_impossible_travel(_snapshot([previous]), attempt, config) == []

    def test_sub_hour_gap_counts_as_one_hour(self, config):
        """Test that short gaps use a one hour floor."""
        previous = make_attempt(timestamp=BASE, geo_location=ABIDJAN)
        attempt = make_attempt(timestamp=BASE + timedelta(minutes=10), geo_location=PARIS)

        alerts = detect_impossible_travel(_snapshot([previous]), attempt, config)
        assert alerts[0].details["speed_kmh"] == alerts[0].details["distance_km"]

    def test_ignores_failed_previous_attempts(self, config):
        """Test that only successful attempts serve as origin."""
        previous = make_attempt(timestamp=BASE, geo_location=ABIDJAN, success=False)
        attempt = make_attempt(timestamp=BASE + timedelta(hours=1), geo_location=PARIS)

        assert detect_impossible_travel(_snapshot([previous]), attempt, config) == []

    def test_uses_most_recent_origin(self, config):
        """Test comparison against the latest located success."""
        history = [
            make_attempt(timestamp=BASE, geo_location=ABIDJAN),
            make_attempt(timestamp=BASE + timedelta(hours=2), geo_location=PARIS),
        ]
        attempt = make_attempt(timestamp=BASE + timedelta(hours=3), geo_location=PARIS)

        assert detect_impossible_travel(_snapshot(history), attempt, config) == []

    def test_skips_without_geolocation(self, config):
        """Test that attempts without location are skipped."""
        previous = make_attempt(timestamp=BASE, geo_location=ABIDJAN)
        attempt = make_attempt(timestamp=BASE + timedelta(hours=1))

        assert detect_impossible_travel(_snapshot([previous]), attempt, config) == []


class TestAutomatedAttack:
    """Tests for automated attack detector."""

    def _history(self, count, distinct_agents=False):
        return [
            make_attempt(
                timestamp=BASE + timedelta(minutes=i),
                success=False,
                user_agent=f"bot/{i}" if distinct_agents else "bot/1.0",
            )
            for i in range(count)
        ]

    def test_volume_triggers_above_threshold(self, config):
        """Test that 21 attempts in the hour trigger the volume alert."""
        attempt = make_attempt(timestamp=BASE + timedelta(minutes=30), success=False, user_agent="bot/1.0")
        alerts = detect_automated_attack(_snapshot(self._history(20)), attempt, config)

        assert len(alerts) == 1
        assert alerts[0].severity == "high"
        assert alerts[0].details == {"attempts_in_hour": 21, "time_window": "1 hour"}

    def test_volume_not_triggered_at_threshold(self, config):
        """Test that 20 attempts in the hour do not trigger."""
        attempt = make_attempt(timestamp=BASE + timedelta(minutes=30), success=False, user_agent="bot/1.0")
        assert detect_automated_attack(_snapshot(self._history(19)), attempt, config) == []

    def test_ignores_attempts_outside_window(self, config):
        """Test that attempts older than the window are not counted."""
        attempt = make_attempt(timestamp=BASE + timedelta(minutes=80), success=False, user_agent="bot/1.0")
        assert detect_automated_attack(_snapshot(self._history(20)), attempt, config) == []

    def test_user_agent_churn(self, config):
        """Test that constantly changing user agents trigger."""
        attempt = make_attempt(timestamp=BASE + timedelta(minutes=10), success=False, user_agent="bot/x")
        alerts = detect_automated_attack(_snapshot(self._history(5, distinct_agents=True)), attempt, config)

        assert len(alerts) == 1
        assert alerts[0].severity == "medium"
        assert alerts[0].details == {
            "reason": "multiple_user_agents",
            "unique_user_agents": 6,
            "total_attempts": 6,
        }

    def test_user_agent_churn_needs_enough_attempts(self, config):
        """Test that five attempts are not enough for churn."""
        attempt = make_attempt(timestamp=BASE + timedelta(minutes=10), success=False, user_agent="bot/x")
        assert detect_automated_attack(_snapshot(self._history(4, distinct_agents=True)), attempt, config) == []

    def test_both_triggers_fire(self, config):
        """Test that volume and churn can fire together."""
        attempt = make_attempt(timestamp=BASE + timedelta(minutes=30), success=False, user_agent="bot/x")
        alerts = detect_automated_attack(_snapshot(self._history(20, distinct_agents=True)), attempt, config)

        assert [a.severity for a in alerts] == ["high", "medium"]


class TestSuspiciousTiming:
    """Tests for suspicious timing detector."""

    def _history(self):
        history = [
            make_attempt(timestamp=datetime(2025, 1, day, 14, 0, 0)) for day in range(1, 10)
        ]
        history.append(make_attempt(timestamp=datetime(2025, 1, 10, 3, 0, 0)))
        return history

    def test_usual_hours(self):
        """Test that only hours above the share are usual."""
        assert usual_hours([14] * 9 + [3]) == [14]
        assert usual_hours([9, 9, 10, 10, 11]) == [9, 10, 11]

    def test_flags_night_hour_outside_habits(self, config):
        """Test detection of an unusual night login."""
        attempt = make_attempt(timestamp=datetime(2025, 1, 11, 3, 0, 0))
        alerts = detect_suspicious_timing(_snapshot(self._history()), attempt, config)

        assert len(alerts) == 1
        assert alerts[0].type == "suspicious_timing"
        assert alerts[0].severity == "low"
        assert alerts[0].details == {
            "unusual_hour": 3,
            "usual_hours": [14],
            "time_category": "night",
        }

    def test_usual_hour_not_flagged(self, config):
        """Test that a daytime usual hour is never flagged."""
        attempt = make_attempt(timestamp=datetime(2025, 1, 11, 14, 0, 0))
        assert detect_suspicious_timing(_snapshot(self._history()), attempt, config) == []

    def test_usual_night_hour_not_flagged(self, config):
        """Test that night owls are not flagged at their usual hour."""
        history = [make_attempt(timestamp=datetime(2025, 1, day, 4, 0, 0)) for day in range(1, 7)]
        attempt = make_attempt(timestamp=datetime(2025, 1, 8, 4, 0, 0))
        assert detect_suspicious_timing(_snapshot(history), attempt, config) == []

    def test_hours_compared_in_utc(self, config):
        """Test that history and attempt hours are read in UTC whatever their offset."""
        plus_two = timezone(timedelta(hours=2))
        history = [
            make_attempt(timestamp=datetime(2025, 1, day, 6, 0, 0, tzinfo=plus_two)) for day in range(1, 7)
        ]
        attempt = make_attempt(timestamp=datetime(2025, 1, 8, 4, 0, 0, tzinfo=timezone.utc))
        assert detect_suspicious_timing(_snapshot(history), attempt, config) == []

        shifted = make_attempt(timestamp=datetime(2025, 1, 11, 5, 0, 0, tzinfo=plus_two))
        alerts = detect_suspicious_timing(_snapshot(self._history()), shifted, config)
        assert alerts[0].details["unusual_hour"] == 3

    def test_requires_baseline(self, config):
        """Test that fewer than five successes skip the check."""
        history = [make_attempt(timestamp=datetime(2025, 1, day, 14, 0, 0)) for day in range(1, 5)]
        history += [
            make_attempt(timestamp=datetime(2025, 1, 6, 14, 0, 0), success=False)
            for _ in range(5)
        ]
        attempt = make_attempt(timestamp=datetime(2025, 1, 8, 3, 0, 0))
        assert detect_suspicious_timing(_snapshot(history), attempt, config) == []


class TestRegistry:
    """Tests for the detector registry."""

    def test_detector_order(self):
        """Test that detectors run in a fixed order."""
        assert [d.__name__ for d in DETECTORS] == [
            "detect_new_device",
            "detect_new_location",
            "detect_impossible_travel",
            "detect_automated_attack",
            "detect_suspicious_timing",
        ]

    def test_custom_detectors(self, config):
        """Test that extra detectors can be plugged in."""
        calls = []

        def detect_nothing(snapshot, attempt, cfg):
            calls.append(attempt)
            return []

        alerts = run_all_detectors(_snapshot(), make_attempt(), config, detectors=(detect_nothing,))
        assert alerts == []
        assert len(calls) == 1
