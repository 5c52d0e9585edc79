"""Saved-location (de)serialization for browser localStorage."""

import json
import logging

from solarsymmetry.models import LocationPoint

logger = logging.getLogger(__name__)

# role -> localStorage key
STORAGE_KEYS: dict[str, str] = {
    "location": "solarSymmetry_location",
    "city1": "solarSymmetry_city1",
    "city2": "solarSymmetry_city2",
}


def storage_key(role: str) -> str:
    try:
        return STORAGE_KEYS[role]
    except KeyError:
        raise ValueError(f"unknown location role: {role!r}") from None


def dump_location(location: LocationPoint) -> str:
    return json.dumps({"lat": location.lat, "lng": location.lng, "name": location.name})


def load_location(raw: str | None) -> LocationPoint | None:
    """Parse a stored location. Missing or unreadable values yield None."""
    if not raw:
        return None
    try:
        data = json.loads(raw)
        return LocationPoint(lat=float(data["lat"]), lng=float(data["lng"]), name=str(data["name"]))
    except (ValueError, KeyError, TypeError) as e:
        logger.warning("Ignoring unreadable saved location %r: %s", raw, e)
        return None
