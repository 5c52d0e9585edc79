"""Location search via Nominatim (OpenStreetMap)."""

import logging
from functools import lru_cache

import httpx

from solarsymmetry.config import USER_AGENT
from solarsymmetry.models import LocationPoint

logger = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org"
MAX_RESULTS = 5
MAX_CACHED_QUERIES = 256


class GeocodingError(Exception):
    """Geocoder call failure."""


def format_location_name(item: dict) -> str:
    """Build "City, State, Country" from a Nominatim result with addressdetails.

    Falls back to the first three parts of ``display_name`` when the address
    block has none of the expected fields.
    """
    address = item.get("address") or {}
    parts: list[str] = []

    for field in ("city", "town", "village", "municipality"):
        if address.get(field):
            parts.append(address[field])
            break
    for field in ("state", "region"):
        if address.get(field):
            parts.append(address[field])
            break
    if address.get("country"):
        parts.append(address["country"])

    if not parts:
        display = item.get("display_name", "")
        return ", ".join(p.strip() for p in display.split(",")[:3])
    return ", ".join(parts)


def search_locations(
    query: str,
    base_url: str = NOMINATIM_URL,
    user_agent: str = USER_AGENT,
    timeout: float = 10.0,
    transport: httpx.BaseTransport | None = None,
) -> list[LocationPoint]:
    """Search places by free text. Returns at most five, most important first.

    Repeated queries (case and surrounding whitespace ignored) are answered from
    a bounded in-process cache. Failures are never cached.

    Args:
        query: City name, address, or landmark.
        base_url: Nominatim root URL.
        user_agent: Sent as User-Agent, which Nominatim's usage policy requires.
        timeout: Seconds before the request is abandoned.
        transport: Optional httpx transport (tests inject a mock).

    Returns:
        LocationPoint list; empty for queries shorter than two characters.

    Raises:
        GeocodingError: On transport errors, HTTP errors, or malformed payloads.
    """
    if not query or len(query.strip()) < 2:
        return []
    return list(_search(query.strip().lower(), base_url, user_agent, timeout, transport))


@lru_cache(maxsize=MAX_CACHED_QUERIES)
def _search(
    query: str,
    base_url: str,
    user_agent: str,
    timeout: float,
    transport: httpx.BaseTransport | None,
) -> tuple[LocationPoint, ...]:
    params = {
        "q": query,
        "format": "json",
        "limit": str(MAX_RESULTS),
        "addressdetails": "1",
        "extratags": "1",
    }
    try:
        with httpx.Client(
            headers={"User-Agent": user_agent}, timeout=timeout, transport=transport
        ) as client:
            resp = client.get(f"{base_url}/search", params=params)
        resp.raise_for_status()
        results = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Geocoding search failed for %r: %s", query, e)
        raise GeocodingError(str(e)) from e
    if not isinstance(results, list):
        raise GeocodingError("Unexpected geocoder response")

    try:
        ranked = sorted(results, key=lambda r: float(r.get("importance") or 0), reverse=True)
        return tuple(
            LocationPoint(lat=float(r["lat"]), lng=float(r["lon"]), name=format_location_name(r))
            for r in ranked[:MAX_RESULTS]
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise GeocodingError(f"Unexpected geocoder response: {e}") from e


def reverse_geocode(
    lat: float,
    lng: float,
    base_url: str = NOMINATIM_URL,
    user_agent: str = USER_AGENT,
    timeout: float = 10.0,
    transport: httpx.BaseTransport | None = None,
) -> str:
    """Display name for a coordinate; "lat, lng" when the lookup fails."""
    params = {
        "lat": str(lat),
        "lon": str(lng),
        "format": "json",
        "addressdetails": "1",
    }
    try:
        with httpx.Client(
            headers={"User-Agent": user_agent}, timeout=timeout, transport=transport
        ) as client:
            resp = client.get(f"{base_url}/reverse", params=params)
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict) or "error" in data:
            raise ValueError(data.get("error") if isinstance(data, dict) else "bad payload")
        return format_location_name(data)
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Reverse geocoding failed for %.4f, %.4f: %s", lat, lng, e)
        return f"{lat:.4f}, {lng:.4f}"


def clear_cache() -> None:
    _search.cache_clear()
