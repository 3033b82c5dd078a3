"""
Schedule walk: derive arrival/departure times along the stop chain.

    arrival[0]   = pickup
    departure[i] = arrival[i] + duration[i]
    arrival[i+1] = departure[i] + driveTimeToNext[i]

Both functions return new Stop objects and never mutate their input.
"""

from typing import List

from engine.models import Stop
from engine.time_math import add_minutes, normalize_time


def _walk(stops: List[Stop], clock: str) -> List[Stop]:
    walked = []
    for stop in stops:
        departure = add_minutes(clock, stop.durationMinutes)
        walked.append(
            stop.model_copy(update={"arrivalTime": clock, "departureTime": departure})
        )
        clock = add_minutes(departure, stop.driveTimeToNextMinutes)
    return walked


def recompute_schedule(stops: List[Stop], pickup_time: str) -> List[Stop]:
    """Recompute every stop's times from scratch, starting the clock at pickup.

    Ignores cascade flags: this is the "everything cascades" view of the chain.
    """
    return _walk(stops, normalize_time(pickup_time))


def cascade_from(stops: List[Stop], index: int) -> List[Stop]:
    """Re-derive times from stop `index` onward, anchored at its own arrival.

    Stops before `index` are copied untouched; the edited stop keeps its
    arrival and gets a fresh departure, everything after it is re-walked.
    """
    head = [s.model_copy() for s in stops[:index]]
    return head + _walk(stops[index:], stops[index].arrivalTime)
