"""
Travel-Time Estimator — Google Distance Matrix adapter.

    estimate_travel_time(origin_address, destination_address) -> minutes

Lookup order:
  1. Redis drive-time cache (if connected)
  2. DEMO_MODE / no API key → deterministic mock (10–40 min)
  3. Google Distance Matrix API (driving), seconds rounded up to minutes

API errors, non-OK statuses and timeouts raise TravelTimeError; the
engine leaves the stop list unchanged in that case.
"""

import os
import math
import hashlib
import logging
from typing import Optional

import httpx

from engine.errors import TravelTimeError

logger = logging.getLogger("travel_time")

# ─── Environment ──────────────────────────────────────────────────────────────
GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY", "")
GOOGLE_MAPS_DISTANCE_URL = os.getenv(
    "GOOGLE_MAPS_DISTANCE_URL",
    "https://maps.googleapis.com/maps/api/distancematrix/json",
)
DEMO_MODE = os.getenv("DEMO_MODE", "true").lower() == "true"
API_TIMEOUT = float(os.getenv("TRAVEL_API_TIMEOUT", "3.0"))  # seconds

FALLBACK_DRIVE_MINUTES = 15


def _get_cache():
    """Lazy import so the estimator works without Redis."""
    try:
        from store.drive_cache import drive_cache
        if drive_cache.connected:
            return drive_cache
    except Exception:
        pass
    return None


def mock_drive_minutes(origin: str, destination: str) -> int:
    """Deterministic stand-in when the live API is not configured."""
    raw = f"{origin.strip().lower()}|{destination.strip().lower()}"
    digest = int(hashlib.md5(raw.encode()).hexdigest()[:8], 16)
    return 10 + digest % 31


async def fetch_google_seconds(
    client: httpx.AsyncClient, origin: str, destination: str
) -> int:
    """Call the Distance Matrix API and return the driving duration in seconds."""
    try:
        resp = await client.get(
            GOOGLE_MAPS_DISTANCE_URL,
            params={
                "origins": origin,
                "destinations": destination,
                "mode": "driving",
                "units": "imperial",
                "key": GOOGLE_MAPS_API_KEY,
            },
            timeout=API_TIMEOUT,
        )
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        raise TravelTimeError(f"Distance Matrix request failed: {e}") from e

    if data.get("status") != "OK" or not data.get("rows"):
        raise TravelTimeError(f"Distance Matrix status {data.get('status')}")

    element = data["rows"][0]["elements"][0]
    if element.get("status") != "OK":
        raise TravelTimeError(f"No route: {element.get('status')}")
    return int(element["duration"]["value"])


async def estimate_travel_time(
    origin: str, destination: str, client: Optional[httpx.AsyncClient] = None
) -> int:
    """Estimated driving minutes from origin to destination."""
    cache = _get_cache()
    if cache:
        try:
            cached = await cache.get_minutes(origin, destination)
            if cached is not None:
                return cached
        except Exception as e:
            logger.warning(f"[TRAVEL] Cache read failed: {e}")

    if DEMO_MODE or not GOOGLE_MAPS_API_KEY:
        minutes = mock_drive_minutes(origin, destination)
    else:
        if client is None:
            async with httpx.AsyncClient() as own_client:
                seconds = await fetch_google_seconds(own_client, origin, destination)
        else:
            seconds = await fetch_google_seconds(client, origin, destination)
        minutes = math.ceil(seconds / 60)

    logger.info(f"[TRAVEL] {origin} → {destination}: {minutes} min")

    if cache:
        try:
            await cache.save_minutes(origin, destination, minutes)
        except Exception as e:
            logger.warning(f"[TRAVEL] Cache write failed: {e}")

    return minutes
