"""Pytest fixtures for Login Watch tests."""

import json
import pytest
from datetime import datetime, timezone

from login_watch.config import EngineConfig
from login_watch.engine import AnomalyEngine
from login_watch.schema import EnvironmentFingerprint, GeoLocation, LoginAttempt

CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
SAFARI_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)

ABIDJAN = GeoLocation(
    country="CI", city="Abidjan", latitude=5.34, longitude=-4.03,
    timezone="Africa/Abidjan", accuracy=10,
)
PARIS = GeoLocation(
    country="FR", city="Paris", latitude=48.85, longitude=2.35,
    timezone="Europe/Paris", accuracy=10,
)


def make_fingerprint(**overrides) -> EnvironmentFingerprint:
    """Create a desktop fingerprint with overrides."""
    data = {
        "user_agent": CHROME_UA,
        "language": "fr-FR",
        "timezone": "Africa/Abidjan",
        "screen_resolution": "1920x1080",
        "color_depth": 24,
        "platform": "Win32",
        "hardware_concurrency": 8,
        "cookies_enabled": True,
        "do_not_track": "unknown",
        "canvas": "data:image/png;base64,AAAA",
        "webgl": "Google Inc.|ANGLE (Intel UHD Graphics)",
    }
    data.update(overrides)
    return EnvironmentFingerprint(**data)


def make_attempt(**overrides) -> LoginAttempt:
    """Create a LoginAttempt with defaults."""
    data = {
        "user_id": "user-001",
        "email": "awa@corp.com",
        "timestamp": datetime(2025, 1, 1, 10, 0, 0),
        "source_ip": "196.47.1.10",
        "user_agent": CHROME_UA,
        "success": True,
        "geo_location": None,
        "fingerprint": make_fingerprint(),
    }
    data.update(overrides)
    return LoginAttempt(**data)


class FixedClock:
    """Settable clock for cleanup tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def config():
    """Default engine thresholds."""
    return EngineConfig()


@pytest.fixture
def clock():
    """Clock fixed at 2025-03-01 UTC."""
    return FixedClock(datetime(2025, 3, 1, 0, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def engine(clock):
    """Fresh engine with default thresholds."""
    return AnomalyEngine(clock=clock)


@pytest.fixture
def sample_attempt_data():
    """Return a sample attempt dict as found in JSONL input."""
    return {
        "user_id": "user-001",
        "email": "awa@corp.com",
        "timestamp": "2025-01-01T08:00:00Z",
        "source_ip": "196.47.1.10",
        "user_agent": CHROME_UA,
        "success": True,
        "geo_location": {
            "country": "CI",
            "city": "Abidjan",
            "latitude": 5.34,
            "longitude": -4.03,
            "timezone": "Africa/Abidjan",
            "accuracy": 10,
        },
        "fingerprint": {"user_agent": CHROME_UA, "screen_resolution": "1920x1080"},
    }


@pytest.fixture
def tmp_jsonl(tmp_path, sample_attempt_data):
    """Create a temporary JSONL file."""
    file_path = tmp_path / "attempts.jsonl"
    with open(file_path, "w") as f:
        f.write(json.dumps(sample_attempt_data) + "\n")
    return file_path
