"""Tests for trip composition and ranking."""

import itertools
import random
import threading

import pytest

from app.core.arrivals import ArrivalEstimator
from app.core.crowding import CrowdingLevel
from app.core.errors import NotFound
from app.core.geo import haversine_km
from app.core.network import NetworkModel
from app.core.proximity import ProximityIndex
from app.core.simulator import PositionSimulator
from app.core.trip_planner import Endpoint, Preferences, TripComposer


@pytest.fixture
def composer():
    return TripComposer(ArrivalEstimator(2.0), timeout_ms=None)


def _plan(composer, network, simulator, origin, destination, **prefs):
    return composer.plan(
        network, ProximityIndex(network), simulator.snapshot(),
        origin, destination, Preferences(**prefs),
    )


def test_direct_trip_segments(composer, network, simulator):
    result = _plan(composer, network, simulator, Endpoint(stop_id="merkato"), Endpoint(stop_id="bole-airport"))

    assert [o.id for o in result.options] == ["route-01:merkato>bole-airport"]
    option = result.options[0]
    assert [s.kind for s in option.segments] == ["walk", "wait", "ride", "walk"]
    ride = option.rides[0]
    assert ride.stops == 6
    assert ride.fare == 12.5
    assert ride.duration_minutes == 45
    assert option.transfers == 0
    assert option.walking_distance_m == 0
    assert option.total_fare == 12.5
    assert option.carbon_saving_kg > 0
    assert 0 < option.score <= 100


def test_direction_matters(composer, network, simulator):
    """Route 01 runs Merkato to the airport, so the reverse trip needs the night route."""
    result = _plan(composer, network, simulator, Endpoint(stop_id="bole-airport"), Endpoint(stop_id="merkato"))

    assert result.options
    assert all(r.route_id != "route-01" for o in result.options for r in o.rides)
    assert "route-n1:bole-airport>merkato" in {o.id for o in result.options}


def test_stop_beyond_walking_budget_excluded(composer, network, simulator):
    merkato = network.get_stop("merkato")
    origin = Endpoint(lat=merkato.lat + 0.9 / 111.195, lng=merkato.lng)
    assert 0.89 < haversine_km(origin.lat, origin.lng, merkato.lat, merkato.lng) < 0.91

    result = _plan(composer, network, simulator, origin, Endpoint(stop_id="bole-airport"), max_walk_meters=800)
    assert result.no_route_found

    result = _plan(composer, network, simulator, origin, Endpoint(stop_id="bole-airport"), max_walk_meters=1000)
    assert not result.no_route_found
    assert result.options[0].segments[0].to_stop_id == "merkato"


def test_avoid_crowded(composer, network, simulator):
    for i in (1, 2, 3):
        simulator.place(f"route-01-bus-{i}", next_stop_index=0, delay_minutes=0, passenger_count=60)
    origin, destination = Endpoint(stop_id="merkato"), Endpoint(stop_id="bole-airport")

    result = _plan(composer, network, simulator, origin, destination)
    assert result.options[0].rides[0].crowding == CrowdingLevel.FULL

    result = _plan(composer, network, simulator, origin, destination, avoid_crowded=True)
    assert result.no_route_found


def _stop(stop_id, lat, lng):
    return {"id": stop_id, "name": {"en": stop_id.upper()}, "location": {"lat": lat, "lng": lng}, "zone": "Test"}


def _route(route_id, stops):
    return {
        "id": route_id, "routeNumber": route_id.upper(), "name": {"en": route_id}, "operator": "Test",
        "stops": stops, "schedule": {"firstBus": "05:00", "lastBus": "22:00", "frequency": 10},
        "price": 5, "distance": 3, "duration": 10,
    }


def test_full_direct_bus_falls_back_to_transfer(composer):
    """r1 runs a-c-d directly; r2 (a-b) and r3 (b-d) make an uncrowded one-change alternative."""
    network = NetworkModel().load({
        "stops": [_stop("a", 9.00, 38.70), _stop("b", 9.00, 38.73), _stop("c", 9.03, 38.70), _stop("d", 9.03, 38.73)],
        "routes": [_route("r1", ["a", "c", "d"]), _route("r2", ["a", "b"]), _route("r3", ["b", "d"])],
    })
    simulator = PositionSimulator(random.Random(5), vehicles_per_route=1, capacity=60)
    simulator.sync_network(network)
    simulator.place("r1-bus-1", passenger_count=60)
    simulator.place("r2-bus-1", passenger_count=5)
    simulator.place("r3-bus-1", passenger_count=5)
    origin, destination = Endpoint(stop_id="a"), Endpoint(stop_id="d")

    result = _plan(composer, network, simulator, origin, destination, avoid_crowded=True)
    assert [o.id for o in result.options] == ["r2:a>b|r3:b>d"]
    assert all(r.crowding == CrowdingLevel.COMFORTABLE for r in result.options[0].rides)

    # With the direct ride acceptable, the transfer is dropped for the same stop pair
    result = _plan(composer, network, simulator, origin, destination)
    assert [o.id for o in result.options] == ["r1:a>d"]
    assert result.candidates_considered == 2


def test_wait_uses_first_usable_vehicle(composer, network, simulator):
    for i, delay in ((1, 3), (2, 7), (3, 9)):
        simulator.place(f"route-01-bus-{i}", next_stop_index=0, delay_minutes=delay)
    result = _plan(composer, network, simulator, Endpoint(stop_id="merkato"), Endpoint(stop_id="bole-airport"))

    wait = result.options[0].segments[1]
    assert wait.vehicle_id == "route-01-bus-1"
    assert wait.duration_minutes == 3


def test_sort_by_cost_and_time(composer, network, simulator):
    origin, destination = Endpoint(stop_id="meskel-square"), Endpoint(stop_id="piazza")

    by_cost = _plan(composer, network, simulator, origin, destination, optimize="cost").options
    assert {o.id for o in by_cost} >= {"route-c1:meskel-square>piazza", "route-21:meskel-square>piazza"}
    fares = [o.total_fare for o in by_cost]
    assert fares == sorted(fares)
    assert by_cost[0].id == "route-c1:meskel-square>piazza"

    by_time = _plan(composer, network, simulator, origin, destination, optimize="time").options
    durations = [o.total_duration_minutes for o in by_time]
    assert durations == sorted(durations)

    by_comfort = _plan(composer, network, simulator, origin, destination, optimize="comfort").options
    comforts = [o.comfort for o in by_comfort]
    assert comforts == sorted(comforts, reverse=True)

    balanced = _plan(composer, network, simulator, origin, destination).options
    scores = [o.score for o in balanced]
    assert scores == sorted(scores, reverse=True)


def test_max_results(composer, network, simulator):
    result = _plan(composer, network, simulator, Endpoint(stop_id="meskel-square"), Endpoint(stop_id="piazza"),
                   max_results=1)
    assert len(result.options) == 1


def test_one_transfer_trip(composer, network, simulator):
    """No route runs from Merkato to Kirkos, so every option changes buses once."""
    result = _plan(composer, network, simulator, Endpoint(stop_id="merkato"), Endpoint(stop_id="kirkos"))

    assert result.options
    for option in result.options:
        assert option.transfers == 1
        first, second = option.rides
        assert first.to_stop_id == second.from_stop_id
        assert second.to_stop_id == "kirkos"
        assert first.route_id != second.route_id

    result = _plan(composer, network, simulator, Endpoint(stop_id="merkato"), Endpoint(stop_id="kirkos"),
                   max_transfers=0)
    assert result.no_route_found


def test_accessibility_rating(composer, network, simulator):
    result = _plan(composer, network, simulator, Endpoint(stop_id="arat-kilo"), Endpoint(stop_id="meskel-square"),
                   accessibility_required=True)
    assert result.options
    assert all(o.accessibility == "high" for o in result.options if o.transfers == 0)


def test_timeout_returns_partial_result(network, simulator):
    clock = itertools.count()
    composer = TripComposer(ArrivalEstimator(), timeout_ms=500, clock=lambda: next(clock))

    result = composer.plan(
        network, ProximityIndex(network), simulator.snapshot(),
        Endpoint(stop_id="merkato"), Endpoint(stop_id="bole-airport"),
    )
    assert result.timed_out
    assert result.no_route_found


def test_cancelled_plan(composer, network, simulator):
    cancel = threading.Event()
    cancel.set()
    result = composer.plan(
        network, ProximityIndex(network), simulator.snapshot(),
        Endpoint(stop_id="merkato"), Endpoint(stop_id="bole-airport"), cancel=cancel,
    )
    assert result.timed_out


def test_unknown_stop_endpoint(composer, network, simulator):
    with pytest.raises(NotFound):
        _plan(composer, network, simulator, Endpoint(stop_id="atlantis"), Endpoint(stop_id="merkato"))


def test_invalid_preferences():
    with pytest.raises(ValueError):
        Preferences(optimize="fastest")
    with pytest.raises(ValueError):
        Preferences(max_walk_meters=-1)
