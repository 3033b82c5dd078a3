"""
Test: structural edits — add (with lunch padding), remove, reorder.
Order fields must always be the contiguous sequence 1..n, and the
cascade flag travels with its stop.
"""

import pytest

from engine import cascade
from engine.errors import StopIndexError
from engine.models import Stop, Winery
from engine.schedule import recompute_schedule


TOUR = [(75, 15), (90, 20), (60, 15)]


def _make_tour(legs=TOUR, pickup="10:00"):
    stops = [
        Stop(
            wineryId=i + 1,
            order=i + 1,
            arrivalTime="00:00",
            departureTime="00:00",
            durationMinutes=duration,
            driveTimeToNextMinutes=drive,
        )
        for i, (duration, drive) in enumerate(legs)
    ]
    return recompute_schedule(stops, pickup)


def _times(stops):
    return [(s.arrivalTime, s.departureTime) for s in stops]


def _orders(stops):
    return [s.order for s in stops]


def _winery(winery_id=99, **kwargs):
    return Winery(id=winery_id, name="L'Ecole No 41", address="41 Lowden School Rd, Lowden, WA", **kwargs)


# ─── Add ──────────────────────────────────────────────────────────────────────

def test_add_first_stop_uses_defaults():
    stops = cascade.add_stop([], _winery(), "10:00")
    assert len(stops) == 1
    stop = stops[0]
    assert stop.order == 1
    assert stop.wineryId == 99
    assert stop.address == "41 Lowden School Rd, Lowden, WA"
    assert stop.durationMinutes == 75
    assert stop.driveTimeToNextMinutes == 15
    assert stop.cascade is True
    assert stop.isLunchStop is False
    assert _times(stops) == [("10:00", "11:15")]


def test_add_uses_winery_average_visit_duration():
    stops = cascade.add_stop([], _winery(averageVisitDuration=45), "10:00")
    assert stops[0].durationMinutes == 45


def test_add_pads_new_stop_arriving_at_lunch():
    # A 10:00–11:15, B 11:30–12:00 → new stop arrives 12:15
    stops = _make_tour([(75, 15), (30, 15)])
    stops = cascade.add_stop(stops, _winery(), "10:00")

    assert _orders(stops) == [1, 2, 3]
    assert stops[2].arrivalTime == "12:15"
    assert stops[2].durationMinutes == 90
    assert stops[2].departureTime == "13:45"


def test_add_pads_every_stop_in_window_and_recomputes_downstream():
    # Pickup 10:45: A 10:45–12:00, B 12:15–13:15, new C arrives 13:30 (inclusive)
    stops = _make_tour([(75, 15), (60, 15)], pickup="10:45")
    stops = cascade.add_stop(stops, _winery(), "10:45")

    assert [s.durationMinutes for s in stops] == [75, 90, 90]
    assert _times(stops) == [
        ("10:45", "12:00"),
        ("12:15", "13:45"),
        ("14:00", "15:30"),
    ]


def test_add_leaves_long_visits_alone():
    stops = _make_tour([(75, 15), (30, 15)])
    stops = cascade.add_stop(stops, _winery(averageVisitDuration=120), "10:00")
    assert stops[2].durationMinutes == 120


def test_lunch_padding_runs_only_at_insertion():
    stops = _make_tour([(75, 15), (30, 15)])
    stops = cascade.add_stop(stops, _winery(), "10:00")
    stops = cascade.nudge_duration(stops, 2, -15)
    assert stops[2].durationMinutes == 75
    assert stops[2].departureTime == "13:30"


def test_add_full_recompute_repairs_stale_times():
    stops = cascade.set_cascade(_make_tour(), 0, False)
    stops = cascade.nudge_duration(stops, 0, 15)  # B now stale
    stops = cascade.add_stop(stops, _winery(), "10:00")
    assert _times(stops)[:2] == [("10:00", "11:30"), ("11:45", "13:15")]


# ─── Remove ───────────────────────────────────────────────────────────────────

def test_remove_middle_stop_renumbers_and_recomputes():
    stops = cascade.remove_stop(_make_tour(), 1, "10:00")
    assert _orders(stops) == [1, 2]
    assert [s.wineryId for s in stops] == [1, 3]
    assert _times(stops) == [("10:00", "11:15"), ("11:30", "12:30")]


def test_remove_carries_cascade_flag_with_stop():
    stops = cascade.set_cascade(_make_tour(), 2, False)
    stops = cascade.remove_stop(stops, 1, "10:00")
    assert cascade.cascade_flags(stops) == [True, False]
    assert stops[1].wineryId == 3


def test_remove_last_remaining_stop():
    stops = cascade.remove_stop(_make_tour([(60, 0)]), 0, "10:00")
    assert stops == []


def test_remove_out_of_range():
    with pytest.raises(StopIndexError):
        cascade.remove_stop(_make_tour(), 3, "10:00")


# ─── Reorder ──────────────────────────────────────────────────────────────────

def test_reorder_first_to_last():
    stops = cascade.reorder_stop(_make_tour(), 0, 2, "10:00")
    assert [s.wineryId for s in stops] == [2, 3, 1]
    assert _orders(stops) == [1, 2, 3]
    assert _times(stops) == [
        ("10:00", "11:30"),
        ("11:50", "12:50"),
        ("13:05", "14:20"),
    ]


def test_reorder_cascades_even_when_flags_are_off():
    stops = _make_tour()
    for i in range(len(stops)):
        stops = cascade.set_cascade(stops, i, False)
    stops = cascade.reorder_stop(stops, 2, 0, "10:00")
    assert [s.wineryId for s in stops] == [3, 1, 2]
    assert _times(stops)[0] == ("10:00", "11:00")
    assert cascade.cascade_flags(stops) == [False, False, False]


def test_reorder_keeps_flag_with_moved_stop():
    stops = cascade.set_cascade(_make_tour(), 0, False)
    stops = cascade.reorder_stop(stops, 0, 2, "10:00")
    assert cascade.cascade_flags(stops) == [True, True, False]


def test_reorder_out_of_range():
    with pytest.raises(StopIndexError):
        cascade.reorder_stop(_make_tour(), 0, 5, "10:00")


OPERATIONS = [
    ("remove_first", lambda s: cascade.remove_stop(s, 0, "10:00")),
    ("remove_last", lambda s: cascade.remove_stop(s, len(s) - 1, "10:00")),
    ("move_down", lambda s: cascade.reorder_stop(s, 1, 3, "10:00")),
    ("move_up", lambda s: cascade.reorder_stop(s, 4, 0, "10:00")),
    ("same_place", lambda s: cascade.reorder_stop(s, 2, 2, "10:00")),
    ("add", lambda s: cascade.add_stop(s, _winery(), "10:00")),
]


@pytest.mark.parametrize("op_id,operation", OPERATIONS, ids=[o[0] for o in OPERATIONS])
def test_orders_stay_contiguous(op_id, operation):
    stops = operation(_make_tour([(60, 10)] * 5))
    assert _orders(stops) == list(range(1, len(stops) + 1))
