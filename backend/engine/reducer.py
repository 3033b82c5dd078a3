"""
Itinerary-level reducer: one typed edit command in, a new Itinerary out.

Also hosts the itinerary-wide helpers that need more than the stop list
(pickup/dropoff drive times and the schedule summary).
"""

import logging

from engine import cascade
from engine.models import (
    AddStop,
    EditCommand,
    Itinerary,
    ItinerarySummary,
    NudgeDriveTime,
    NudgeDuration,
    Recompute,
    RemoveStop,
    ReorderStop,
    SetArrival,
    SetDeparture,
    SetDriveTime,
    SetDuration,
    SetPickupTime,
    ToggleCascade,
    ToggleLunch,
)
from engine.schedule import recompute_schedule
from engine.time_math import add_minutes

logger = logging.getLogger("itinerary_engine")


def apply_command(itinerary: Itinerary, command: EditCommand) -> Itinerary:
    """Dispatch an edit command to its stop-list operator."""
    stops = itinerary.stops
    pickup = itinerary.pickupTime

    if isinstance(command, SetPickupTime):
        return itinerary.model_copy(update={
            "pickupTime": command.pickupTime,
            "stops": recompute_schedule(stops, command.pickupTime),
        })

    if isinstance(command, Recompute):
        new_stops = recompute_schedule(stops, pickup)
    elif isinstance(command, SetArrival):
        new_stops = cascade.set_arrival_time(stops, command.index, command.arrivalTime)
    elif isinstance(command, SetDeparture):
        new_stops = cascade.set_departure_time(stops, command.index, command.departureTime)
    elif isinstance(command, SetDuration):
        new_stops = cascade.set_duration(stops, command.index, command.minutes)
    elif isinstance(command, NudgeDuration):
        new_stops = cascade.nudge_duration(stops, command.index, command.delta)
    elif isinstance(command, SetDriveTime):
        new_stops = cascade.set_drive_time(stops, command.index, command.minutes)
    elif isinstance(command, NudgeDriveTime):
        new_stops = cascade.nudge_drive_time(stops, command.index, command.delta)
    elif isinstance(command, ToggleLunch):
        new_stops = cascade.toggle_lunch_stop(stops, command.index)
    elif isinstance(command, ToggleCascade):
        new_stops = cascade.toggle_cascade(stops, command.index)
    elif isinstance(command, AddStop):
        new_stops = cascade.add_stop(stops, command.winery, pickup)
    elif isinstance(command, RemoveStop):
        new_stops = cascade.remove_stop(stops, command.index, pickup)
    elif isinstance(command, ReorderStop):
        new_stops = cascade.reorder_stop(stops, command.fromIndex, command.toIndex, pickup)
    else:
        raise TypeError(f"Unknown edit command: {command!r}")

    logger.debug(f"[ENGINE] Applied {command.type} → {len(new_stops)} stops")
    return itinerary.model_copy(update={"stops": new_stops})


# ─── Pickup / Dropoff Legs ────────────────────────────────────────────────────

async def refresh_pickup_drive_time(
    itinerary: Itinerary, estimate_travel_time: cascade.TravelTimeEstimator
) -> Itinerary:
    """Pickup location → first stop. Raises TravelTimeError on estimator failure."""
    if not itinerary.stops or not itinerary.pickupLocation or not itinerary.stops[0].address:
        logger.warning("[ENGINE] Missing address information for pickup leg")
        return itinerary.model_copy()

    minutes = await cascade.estimate_minutes(
        estimate_travel_time, itinerary.pickupLocation, itinerary.stops[0].address
    )
    return itinerary.model_copy(update={"pickupDriveTimeMinutes": minutes})


async def refresh_dropoff_drive_time(
    itinerary: Itinerary, estimate_travel_time: cascade.TravelTimeEstimator
) -> Itinerary:
    """Last stop → dropoff location. Raises TravelTimeError on estimator failure."""
    if not itinerary.stops or not itinerary.dropoffLocation or not itinerary.stops[-1].address:
        logger.warning("[ENGINE] Missing address information for dropoff leg")
        return itinerary.model_copy()

    minutes = await cascade.estimate_minutes(
        estimate_travel_time, itinerary.stops[-1].address, itinerary.dropoffLocation
    )
    return itinerary.model_copy(update={"dropoffDriveTimeMinutes": minutes})


# ─── Summary ──────────────────────────────────────────────────────────────────

def summarize(itinerary: Itinerary) -> ItinerarySummary:
    stops = itinerary.stops
    between_stops = sum(s.driveTimeToNextMinutes for s in stops[:-1])
    total_drive = itinerary.pickupDriveTimeMinutes + between_stops + itinerary.dropoffDriveTimeMinutes

    if stops:
        dropoff = add_minutes(stops[-1].departureTime, itinerary.dropoffDriveTimeMinutes)
    else:
        dropoff = itinerary.pickupTime

    lunch_index = next((i for i, s in enumerate(stops) if s.isLunchStop), None)

    return ItinerarySummary(
        stopCount=len(stops),
        totalDriveTimeMinutes=total_drive,
        totalVisitMinutes=sum(s.durationMinutes for s in stops),
        estimatedDropoffTime=dropoff,
        lunchStopIndex=lunch_index,
    )
