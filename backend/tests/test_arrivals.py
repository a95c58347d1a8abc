"""Tests for the arrival estimator."""

import pytest

from app.core.arrivals import ArrivalEstimator, hops_between
from app.core.errors import NotFound
from app.core.simulator import OUT_OF_SERVICE


def test_hops_between():
    assert hops_between(0, (2,), 7) == 2
    assert hops_between(2, (2,), 7) == 0
    assert hops_between(5, (2,), 7) == 4
    # Repeated stop: the closest occurrence wins
    assert hops_between(5, (0, 6), 7) == 1


def test_eta_from_hops_and_delay(simulator, network):
    """Two hops at two minutes each plus one minute of delay."""
    simulator.place("route-01-bus-1", next_stop_index=0, delay_minutes=1)
    vehicle = simulator.snapshot().get("route-01-bus-1")

    prediction = ArrivalEstimator(2.0).predict(network, vehicle, "meskel-square")
    assert prediction.hops == 2
    assert prediction.minutes == 5


def test_vehicle_at_target_has_zero_hops(simulator, network):
    simulator.place("route-01-bus-1", next_stop_index=2, delay_minutes=0)
    vehicle = simulator.snapshot().get("route-01-bus-1")
    assert ArrivalEstimator().predict(network, vehicle, "meskel-square").minutes == 0


def test_route_not_visiting_stop(simulator, network):
    vehicle = simulator.snapshot().get("route-01-bus-1")
    assert ArrivalEstimator().predict(network, vehicle, "gulele") is None


def test_arrivals_sorted_soonest_first(simulator, network):
    arrivals = ArrivalEstimator().arrivals_for(network, simulator.snapshot(), "meskel-square")
    assert arrivals
    keys = [(a.minutes, a.vehicle_id) for a in arrivals]
    assert keys == sorted(keys)
    assert {a.route_id for a in arrivals} <= {r.id for r in network.routes_serving("meskel-square")}


def test_negative_eta_is_kept(simulator, network):
    simulator.place("route-01-bus-1", next_stop_index=2, delay_minutes=-5)
    arrivals = ArrivalEstimator().arrivals_for(network, simulator.snapshot(), "meskel-square")
    assert arrivals[0].vehicle_id == "route-01-bus-1"
    assert arrivals[0].minutes == -5


def test_out_of_service_excluded(simulator, network):
    simulator.set_status("route-01-bus-1", OUT_OF_SERVICE)
    arrivals = ArrivalEstimator().arrivals_for(network, simulator.snapshot(), "merkato")
    assert "route-01-bus-1" not in {a.vehicle_id for a in arrivals}


def test_route_filter(simulator, network):
    arrivals = ArrivalEstimator().arrivals_for(network, simulator.snapshot(), "meskel-square", route_id="route-02")
    assert len(arrivals) == 3
    assert {a.route_id for a in arrivals} == {"route-02"}


def test_unknown_stop_or_route(simulator, network):
    estimator = ArrivalEstimator()
    with pytest.raises(NotFound):
        estimator.arrivals_for(network, simulator.snapshot(), "atlantis")
    with pytest.raises(NotFound):
        estimator.arrivals_for(network, simulator.snapshot(), "merkato", route_id="route-99")


def test_first_usable_skips_departed(simulator, network):
    for i in (1, 2, 3):
        simulator.place(f"route-01-bus-{i}", next_stop_index=0, delay_minutes=-2 + i)
    fleet = simulator.snapshot()
    estimator = ArrivalEstimator(2.0)

    # ETAs at merkato are -1, 0 and 1 minutes
    assert estimator.first_usable(network, fleet, "merkato", "route-01").vehicle_id == "route-01-bus-2"
    assert estimator.first_usable(network, fleet, "merkato", "route-01", 0.5).vehicle_id == "route-01-bus-3"


def test_first_usable_waits_for_next_lap(simulator, network):
    """A bus that passes before the rider arrives is caught on its next lap (7 stops x 2 minutes)."""
    for i in (1, 2, 3):
        simulator.place(f"route-01-bus-{i}", next_stop_index=0, delay_minutes=-2 + i)
    fleet = simulator.snapshot()

    arrival = ArrivalEstimator(2.0).first_usable(network, fleet, "merkato", "route-01", 5)
    assert arrival.vehicle_id == "route-01-bus-1"
    assert arrival.minutes == 13
    assert arrival.hops == 7


def test_first_usable_without_vehicles(simulator, network):
    for i in (1, 2, 3):
        simulator.set_status(f"route-01-bus-{i}", OUT_OF_SERVICE)
    assert ArrivalEstimator().first_usable(network, simulator.snapshot(), "merkato", "route-01") is None


def test_invalid_minutes_per_hop():
    with pytest.raises(ValueError):
        ArrivalEstimator(0)
