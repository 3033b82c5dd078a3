"""
Backend Engine: itinerary time-cascade endpoints.

Stateless: the builder page sends its current itinerary with every call
and stores whatever comes back (last write wins).

  POST /recompute   — full recompute from pickup time
  POST /edit        — apply one typed edit command (cascade policy per stop)
  POST /drive-time  — fetch a real drive time for one leg
"""

import time
import logging
from typing import Literal, Union

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from engine.cascade import refresh_drive_time
from engine.errors import ItineraryError, TravelTimeError
from engine.models import EditCommand, Itinerary
from engine.reducer import (
    apply_command,
    refresh_dropoff_drive_time,
    refresh_pickup_drive_time,
    summarize,
)
from engine.schedule import recompute_schedule
from engine.travel_time import FALLBACK_DRIVE_MINUTES, estimate_travel_time

logger = logging.getLogger("itinerary_engine")
router = APIRouter()


# ─── Request Models ───────────────────────────────────────────────────────────

class RecomputeRequest(BaseModel):
    itinerary: Itinerary


class EditRequest(BaseModel):
    itinerary: Itinerary
    command: EditCommand


class DriveTimeRequest(BaseModel):
    itinerary: Itinerary
    leg: Union[Literal["pickup", "dropoff"], int]


def _response(itin: Itinerary, t0: float, **extra) -> dict:
    return {
        "itinerary": itin.model_dump(),
        "summary": summarize(itin).model_dump(),
        "meta": {"elapsedMs": round((time.perf_counter() - t0) * 1000, 2)},
        **extra,
    }


# ─── Endpoints ────────────────────────────────────────────────────────────────

@router.post("/recompute")
async def recompute_itinerary(req: RecomputeRequest):
    """Recompute every stop from the pickup time, ignoring cascade flags."""
    t0 = time.perf_counter()
    itin = req.itinerary
    new_itin = itin.model_copy(update={"stops": recompute_schedule(itin.stops, itin.pickupTime)})
    logger.info(f"[ENGINE] Recomputed {len(new_itin.stops)} stops from {itin.pickupTime}")
    return _response(new_itin, t0)


@router.post("/edit")
async def edit_itinerary(req: EditRequest):
    """Apply one edit command and return the new itinerary."""
    t0 = time.perf_counter()
    try:
        new_itin = apply_command(req.itinerary, req.command)
    except ItineraryError as e:
        logger.warning(f"[ENGINE] Rejected {req.command.type}: {e}")
        raise HTTPException(status_code=422, detail=str(e))

    logger.info(f"[ENGINE] {req.command.type} applied ({len(new_itin.stops)} stops)")
    return _response(new_itin, t0)


@router.post("/drive-time")
async def refresh_leg_drive_time(req: DriveTimeRequest):
    """
    Fetch a drive time for one leg. An estimator failure is not an error
    for the page: the unchanged itinerary comes back with a warning and
    the fallback minute value to display.
    """
    t0 = time.perf_counter()
    itin = req.itinerary

    try:
        if req.leg == "pickup":
            new_itin = await refresh_pickup_drive_time(itin, estimate_travel_time)
        elif req.leg == "dropoff":
            new_itin = await refresh_dropoff_drive_time(itin, estimate_travel_time)
        else:
            new_stops = await refresh_drive_time(
                itin.stops, req.leg, estimate_travel_time, itin.dropoffLocation or None
            )
            new_itin = itin.model_copy(update={"stops": new_stops})
    except TravelTimeError as e:
        logger.warning(f"[ENGINE] Drive time for leg {req.leg} unavailable: {e}")
        return _response(itin, t0, warning=str(e), fallbackMinutes=FALLBACK_DRIVE_MINUTES)
    except ItineraryError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return _response(new_itin, t0)


# ─── Standalone edit function (for Socket.IO wiring) ──────────────────────────

async def edit_from_payload(data: dict) -> dict:
    """
    Convenience wrapper that accepts a raw dict (from Socket.IO)
    and runs the edit pipeline.
    """
    req = EditRequest(**data)
    return await edit_itinerary(req)
