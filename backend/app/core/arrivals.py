"""Estimate arrival times at a stop from the fleet snapshot."""

import logging
import math
from dataclasses import dataclass, replace

from app.core.crowding import CrowdingLevel
from app.core.network import NetworkSnapshot
from app.core.simulator import FleetSnapshot, VehicleSnapshot

logger = logging.getLogger(__name__)

# Reference stop-to-stop travel time
DEFAULT_MINUTES_PER_HOP = 2.0


@dataclass(frozen=True)
class ArrivalPrediction:
    stop_id: str
    vehicle_id: str
    route_id: str
    route_number: str
    hops: int
    minutes: float
    load_percent: int
    crowding: CrowdingLevel


def hops_between(next_stop_index: int, target_indices: tuple[int, ...], sequence_length: int) -> int:
    """Stop-to-stop hops from a vehicle's next stop to the closest occurrence of a target.

    Routes are treated as cyclic: a target behind the vehicle is reached after
    wrapping past the final stop.
    """
    return min((t - next_stop_index) % sequence_length for t in target_indices)


class ArrivalEstimator:
    """Hop-count ETA: hops x minutes-per-hop + the vehicle's current delay."""

    def __init__(self, minutes_per_hop: float = DEFAULT_MINUTES_PER_HOP) -> None:
        if minutes_per_hop <= 0:
            raise ValueError("minutes_per_hop must be positive")
        self.minutes_per_hop = minutes_per_hop

    def predict(
        self, network: NetworkSnapshot, vehicle: VehicleSnapshot, stop_id: str,
    ) -> ArrivalPrediction | None:
        """ETA of one vehicle at a stop, or None if its route never visits the stop."""
        route = network.routes_by_id.get(vehicle.route_id)
        if route is None:
            return None
        indices = network.stop_indices(route.id, stop_id)
        if not indices:
            return None
        hops = hops_between(vehicle.next_stop_index, indices, len(route.stop_ids))
        return ArrivalPrediction(
            stop_id=stop_id,
            vehicle_id=vehicle.id,
            route_id=route.id,
            route_number=route.number,
            hops=hops,
            minutes=hops * self.minutes_per_hop + vehicle.delay_minutes,
            load_percent=vehicle.load_percent,
            crowding=vehicle.crowding,
        )

    def arrivals_for(
        self,
        network: NetworkSnapshot,
        fleet: FleetSnapshot,
        stop_id: str,
        route_id: str | None = None,
    ) -> list[ArrivalPrediction]:
        """Every in-service vehicle that will pass a stop, soonest first.

        Vehicles whose ETA is already negative (they have just left) are kept
        so callers can tell "just departed" apart from "not coming".
        """
        serving = {r.id for r in network.routes_serving(stop_id)}
        if route_id is not None:
            network.get_route(route_id)
            serving &= {route_id}

        arrivals = []
        for vehicle in fleet.in_service():
            if vehicle.route_id not in serving:
                continue
            prediction = self.predict(network, vehicle, stop_id)
            if prediction is not None:
                arrivals.append(prediction)

        arrivals.sort(key=lambda a: (a.minutes, a.vehicle_id))
        return arrivals

    def first_usable(
        self,
        network: NetworkSnapshot,
        fleet: FleetSnapshot,
        stop_id: str,
        route_id: str,
        not_before_minutes: float = 0.0,
    ) -> ArrivalPrediction | None:
        """Soonest vehicle of a route reaching the stop at or after an offset from now.

        A vehicle that reaches the stop too early is counted on its next lap
        of the cyclic route. None only when the route has no vehicle in service.
        """
        length = len(network.get_route(route_id).stop_ids)
        lap_minutes = length * self.minutes_per_hop
        best = None
        for arrival in self.arrivals_for(network, fleet, stop_id, route_id=route_id):
            if arrival.minutes < not_before_minutes:
                laps = math.ceil((not_before_minutes - arrival.minutes) / lap_minutes)
                arrival = replace(
                    arrival, hops=arrival.hops + laps * length, minutes=arrival.minutes + laps * lap_minutes,
                )
            if best is None or (arrival.minutes, arrival.vehicle_id) < (best.minutes, best.vehicle_id):
                best = arrival
        return best
