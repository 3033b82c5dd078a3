"""
Wine Tour Itinerary Builder — REST API Routes
Distance lookups for the builder page and schedule summaries.
"""

import time
import logging

from fastapi import APIRouter, HTTPException, Query

from engine.errors import TravelTimeError
from engine.models import Itinerary
from engine.reducer import summarize
from engine.travel_time import estimate_travel_time

logger = logging.getLogger("api.routes")
router = APIRouter()


# ─── GET /api/distance ───────────────────────────────────────────────────────

@router.get("/distance")
async def get_distance(
    origin: str = Query(..., min_length=1),
    destination: str = Query(..., min_length=1),
):
    """Driving duration between two addresses (seconds, and whole minutes)."""
    t0 = time.perf_counter()
    try:
        minutes = await estimate_travel_time(origin, destination)
    except TravelTimeError as e:
        logger.warning(f"[API] Distance lookup failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    elapsed = (time.perf_counter() - t0) * 1000
    logger.info(f"[API] Distance {origin} → {destination} in {elapsed:.0f}ms")
    return {"duration": minutes * 60, "minutes": minutes}


# ─── POST /api/itinerary/summary ─────────────────────────────────────────────

@router.post("/itinerary/summary")
async def itinerary_summary(itinerary: Itinerary):
    """Total drive time, visit time and estimated dropoff for the page footer."""
    return summarize(itinerary).model_dump()
