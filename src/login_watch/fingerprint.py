"""Device and location keys.

Collapses an environment probe into a stable opaque device key, and a
geolocation into a coarse zone key. Both functions are total: input that
cannot be canonicalised maps to a fixed sentinel instead of raising.
"""

import hashlib
import json
import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import BaseModel
from user_agents import parse as parse_ua

from login_watch.schema import EnvironmentFingerprint, GeoLocation

logger = logging.getLogger(__name__)

FINGERPRINT_SENTINEL = "fp-unavailable"


def hash_fingerprint(
    fingerprint: Union[EnvironmentFingerprint, Mapping[str, Any], None],
) -> str:
    """Generate a stable device key from an environment probe.

    Same content always yields the same key regardless of field order.
    The hash is not meant to be cryptographically secure.

    Args:
        fingerprint: Probe values as a model or a plain mapping.

    Returns:
        Key of the form ``fp-<16 hex chars>``, or FINGERPRINT_SENTINEL.
    """
    if fingerprint is None:
        return FINGERPRINT_SENTINEL

    if isinstance(fingerprint, BaseModel):
        data = fingerprint.model_dump(exclude_none=True)
    elif isinstance(fingerprint, Mapping):
        data = {k: v for k, v in fingerprint.items() if v is not None}
    else:
        logger.debug(f"Unsupported fingerprint type: {type(fingerprint).__name__}")
        return FINGERPRINT_SENTINEL

    try:
        canonical = json.dumps(
            data, sort_keys=True, separators=(",", ":"), default=_encode_probe
        )
    except (TypeError, ValueError) as e:
        logger.debug(f"Fingerprint could not be canonicalised: {e}")
        return FINGERPRINT_SENTINEL

    return f"fp-{_digest(canonical)}"


def location_key(geo: GeoLocation, precision: int = 1) -> str:
    """Generate a zone key for a location.

    Latitude and longitude are rounded (one decimal is roughly an 11 km
    cell) so nearby logins fall into the same known zone.

    Args:
        geo: Resolved location.
        precision: Decimal places kept from the coordinates.

    Returns:
        Key of the form ``loc-<16 hex chars>``.
    """
    lat = round(geo.latitude, precision)
    lon = round(geo.longitude, precision)
    # -0.0 and 0.0 are the same cell
    lat = lat + 0.0
    lon = lon + 0.0
    return f"loc-{_digest(f'{geo.country}|{geo.city}|{lat}|{lon}')}"


def device_label(user_agent: Optional[str]) -> str:
    """Extract a browser/OS label from a user agent string.

    Args:
        user_agent: User agent string.

    Returns:
        Label such as "Chrome on Windows".
    """
    if not user_agent:
        return "Unknown"

    ua = parse_ua(user_agent)
    browser = ua.browser.family or "Unknown"
    os = ua.os.family or "Unknown"
    return f"{browser} on {os}"


def _encode_probe(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    raise TypeError(f"Unsupported probe value of type {type(value).__name__}")


def _digest(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()[:16]
