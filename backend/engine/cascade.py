"""
Stop-list mutation operators with the selective cascade policy.

Every per-stop edit applies its local change, refreshes the edited stop's
own departure, then consults `Stop.cascade`:

  cascade=True   → downstream stops are re-walked from the edited stop
  cascade=False  → only the edited stop changes; neighbours keep their
                   (possibly stale) times

Structural edits (add / remove / reorder) always run a full recompute.
"""

import logging
from typing import Awaitable, Callable, List, Optional

from engine.errors import StopIndexError, TravelTimeError
from engine.models import (
    DEFAULT_DRIVE_TIME_MINUTES,
    DEFAULT_DURATION_MINUTES,
    LUNCH_DURATION_MINUTES,
    MIN_DURATION_MINUTES,
    Stop,
    Winery,
)
from engine.schedule import cascade_from, recompute_schedule
from engine.time_math import add_minutes, is_lunch_window, minutes_between, normalize_time

logger = logging.getLogger("itinerary_engine")

TravelTimeEstimator = Callable[[str, str], Awaitable[int]]


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _check_index(stops: List[Stop], index: int) -> None:
    if not 0 <= index < len(stops):
        raise StopIndexError(f"Stop index {index} out of range for {len(stops)} stops")


def _patch(stops: List[Stop], index: int, **fields) -> List[Stop]:
    patched = list(stops)
    patched[index] = stops[index].model_copy(update=fields)
    return patched


def _renumber(stops: List[Stop]) -> List[Stop]:
    return [s.model_copy(update={"order": i + 1}) for i, s in enumerate(stops)]


def apply_cascade_policy(stops: List[Stop], index: int) -> List[Stop]:
    """Propagate an edit at `index` downstream, or keep it local if the stop opted out."""
    stop = stops[index]
    if stop.cascade:
        logger.debug(f"[ENGINE] Cascading from stop {index + 1}")
        return cascade_from(stops, index)

    logger.debug(f"[ENGINE] Stop {index + 1} not cascading — local update only")
    departure = add_minutes(stop.arrivalTime, stop.durationMinutes)
    return _patch(stops, index, departureTime=departure)


# ─── Per-Stop Field Setters ───────────────────────────────────────────────────

def set_arrival_time(stops: List[Stop], index: int, arrival_time: str) -> List[Stop]:
    """Direct arrival edit; duration is re-derived against the existing departure."""
    _check_index(stops, index)
    arrival = normalize_time(arrival_time)
    duration = minutes_between(arrival, stops[index].departureTime)
    patched = _patch(stops, index, arrivalTime=arrival, durationMinutes=duration)
    return apply_cascade_policy(patched, index)


def set_departure_time(stops: List[Stop], index: int, departure_time: str) -> List[Stop]:
    """Direct departure edit; a departure before arrival collapses to a zero-length visit."""
    _check_index(stops, index)
    duration = minutes_between(stops[index].arrivalTime, normalize_time(departure_time))
    patched = _patch(stops, index, durationMinutes=duration)
    return apply_cascade_policy(patched, index)


def set_duration(stops: List[Stop], index: int, minutes: int) -> List[Stop]:
    _check_index(stops, index)
    patched = _patch(stops, index, durationMinutes=max(0, minutes))
    return apply_cascade_policy(patched, index)


def nudge_duration(stops: List[Stop], index: int, delta: int) -> List[Stop]:
    """+/- buttons on the visit length; never goes below MIN_DURATION_MINUTES."""
    _check_index(stops, index)
    minutes = max(MIN_DURATION_MINUTES, stops[index].durationMinutes + delta)
    patched = _patch(stops, index, durationMinutes=minutes)
    return apply_cascade_policy(patched, index)


def set_drive_time(stops: List[Stop], index: int, minutes: int) -> List[Stop]:
    _check_index(stops, index)
    patched = _patch(stops, index, driveTimeToNextMinutes=max(0, minutes))
    return apply_cascade_policy(patched, index)


def nudge_drive_time(stops: List[Stop], index: int, delta: int) -> List[Stop]:
    _check_index(stops, index)
    minutes = max(0, stops[index].driveTimeToNextMinutes + delta)
    patched = _patch(stops, index, driveTimeToNextMinutes=minutes)
    return apply_cascade_policy(patched, index)


# ─── Cascade Flags ────────────────────────────────────────────────────────────

def cascade_flags(stops: List[Stop]) -> List[bool]:
    return [s.cascade for s in stops]


def set_cascade(stops: List[Stop], index: int, enabled: bool) -> List[Stop]:
    """Change a stop's cascade flag. Times are not touched."""
    _check_index(stops, index)
    return _patch(stops, index, cascade=enabled)


def toggle_cascade(stops: List[Stop], index: int) -> List[Stop]:
    _check_index(stops, index)
    return set_cascade(stops, index, not stops[index].cascade)


# ─── Lunch ────────────────────────────────────────────────────────────────────

def toggle_lunch_stop(stops: List[Stop], index: int) -> List[Stop]:
    """Make `index` the single lunch stop, or clear it if it already is."""
    _check_index(stops, index)
    target = stops[index]

    if target.isLunchStop:
        patched = _patch(stops, index, isLunchStop=False, durationMinutes=DEFAULT_DURATION_MINUTES)
    else:
        patched = [
            s.model_copy(update={"isLunchStop": False}) if s.isLunchStop else s
            for s in stops
        ]
        patched = _patch(
            patched,
            index,
            isLunchStop=True,
            durationMinutes=max(target.durationMinutes, LUNCH_DURATION_MINUTES),
        )
    return apply_cascade_policy(patched, index)


def pad_lunch_stops(stops: List[Stop], pickup_time: str) -> List[Stop]:
    """Raise any short visit that lands in the lunch window to the lunch length."""
    padded = False
    result = []
    for stop in stops:
        if is_lunch_window(stop.arrivalTime) and stop.durationMinutes < LUNCH_DURATION_MINUTES:
            stop = stop.model_copy(update={"durationMinutes": LUNCH_DURATION_MINUTES})
            padded = True
        result.append(stop)

    if not padded:
        return result
    return recompute_schedule(result, pickup_time)


# ─── Structural Edits ─────────────────────────────────────────────────────────

def add_stop(stops: List[Stop], winery: Winery, pickup_time: str) -> List[Stop]:
    """Append a winery visit, recompute, then apply the one-time lunch padding."""
    duration = winery.averageVisitDuration or DEFAULT_DURATION_MINUTES
    new_stop = Stop(
        wineryId=winery.id,
        wineryName=winery.name,
        address=winery.address,
        order=len(stops) + 1,
        arrivalTime=pickup_time,
        departureTime=pickup_time,
        durationMinutes=duration,
        driveTimeToNextMinutes=DEFAULT_DRIVE_TIME_MINUTES,
    )
    scheduled = recompute_schedule(list(stops) + [new_stop], pickup_time)
    return pad_lunch_stops(scheduled, pickup_time)


def remove_stop(stops: List[Stop], index: int, pickup_time: str) -> List[Stop]:
    _check_index(stops, index)
    remaining = [s for i, s in enumerate(stops) if i != index]
    return recompute_schedule(_renumber(remaining), pickup_time)


def reorder_stop(stops: List[Stop], from_index: int, to_index: int, pickup_time: str) -> List[Stop]:
    """Drag-and-drop move; always a full recompute."""
    _check_index(stops, from_index)
    _check_index(stops, to_index)
    moved = list(stops)
    stop = moved.pop(from_index)
    moved.insert(to_index, stop)
    return recompute_schedule(_renumber(moved), pickup_time)


# ─── External Drive Times ─────────────────────────────────────────────────────

async def estimate_minutes(
    estimate_travel_time: TravelTimeEstimator, origin: str, destination: str
) -> int:
    """Call the injected estimator; any failure surfaces as TravelTimeError."""
    try:
        minutes = await estimate_travel_time(origin, destination)
    except TravelTimeError:
        raise
    except Exception as e:
        raise TravelTimeError(f"Travel time lookup failed: {e}") from e
    return max(0, int(minutes))


async def refresh_drive_time(
    stops: List[Stop],
    index: int,
    estimate_travel_time: TravelTimeEstimator,
    dropoff_location: Optional[str] = None,
) -> List[Stop]:
    """
    Fetch a real drive time from stop `index` to the next stop (or to the
    dropoff for the last stop) and apply it like a drive-time edit.

    Raises TravelTimeError if the estimator fails; the caller's list is
    never modified, so keeping it is always safe.
    """
    _check_index(stops, index)
    origin = stops[index].address
    if index < len(stops) - 1:
        destination = stops[index + 1].address
    else:
        destination = dropoff_location

    if not origin or not destination:
        logger.warning(f"[ENGINE] Missing address information for stop {index + 1}")
        return [s.model_copy() for s in stops]

    minutes = await estimate_minutes(estimate_travel_time, origin, destination)
    logger.info(f"[ENGINE] Stop {index + 1} drive time → {minutes} min")
    return set_drive_time(stops, index, minutes)
