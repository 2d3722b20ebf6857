import logging
from typing import Optional

import httpx

from headache_tracker.config import get_settings

logger = logging.getLogger(__name__)

USER_AGENT = "headache-tracker/1.0"


async def _reverse_bigdatacloud(lat: float, lon: float, *, transport=None):
    # Primary reverse geocoder: BigDataCloud client endpoint (no key needed).
    settings = get_settings()
    params = {"latitude": lat, "longitude": lon, "localityLanguage": "en"}
    try:
        async with httpx.AsyncClient(timeout=settings.GEOCODER_TIMEOUT, transport=transport) as client:
            r = await client.get(settings.REVERSE_GEOCODE_URL, params=params)
            r.raise_for_status()
            data = r.json()
    except Exception as e:
        logger.warning("BigDataCloud reverse geocoding error: %s", e)
        return None

    if not isinstance(data, dict):
        return None

    result = {
        "city": data.get("city") or data.get("locality") or None,
        "state": data.get("principalSubdivision") or None,
        "country": data.get("countryName") or None,
    }
    if not any(result.values()):
        return None
    result["source"] = "bigdatacloud"
    return result


async def _reverse_nominatim(lat: float, lon: float, *, transport=None):
    # Fallback reverse geocoder: Nominatim (OpenStreetMap). Requires a User-Agent.
    settings = get_settings()
    params = {"lat": lat, "lon": lon, "format": "jsonv2", "zoom": 10}
    headers = {"User-Agent": USER_AGENT}
    try:
        async with httpx.AsyncClient(timeout=settings.GEOCODER_TIMEOUT, headers=headers, transport=transport) as client:
            r = await client.get(settings.NOMINATIM_REVERSE_URL, params=params)
            r.raise_for_status()
            data = r.json()
    except Exception as e:
        logger.warning("Nominatim reverse geocoding error: %s", e)
        return None

    address = (data or {}).get("address") or {}
    result = {
        "city": address.get("city") or address.get("town") or address.get("village") or None,
        "state": address.get("state") or None,
        "country": address.get("country") or None,
    }
    if not any(result.values()):
        return None
    result["source"] = "nominatim"
    return result


async def reverse_geocode(lat: float, lon: float, *, transport=None) -> Optional[dict]:
    """
    Resolve coordinates to {city, state, country, source}; any of the
    locality values may be None. Returns None when no provider answers.
    Strategy: BigDataCloud first, then fall back to Nominatim.
    """
    result = await _reverse_bigdatacloud(lat, lon, transport=transport)
    if result:
        return result

    result = await _reverse_nominatim(lat, lon, transport=transport)
    if result:
        return result

    logger.info("Reverse geocoding failed for %s,%s", lat, lon)
    return None
