"""Long-lived bus position simulator.

The simulator is the only writer of vehicle state. Each tick advances every
in-service vehicle toward its next stop, applies bounded random walks to
load, speed and delay, and then publishes a new immutable ``FleetSnapshot``
by reference swap. Readers only ever see complete snapshots.
"""

import datetime
import logging
import random
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from app.core.crowding import CrowdingLevel, classify, load_percent
from app.core.errors import NotFound
from app.core.geo import bearing_deg, haversine_km, interpolate
from app.core.network import NetworkSnapshot, Route

logger = logging.getLogger(__name__)

IN_SERVICE = "in_service"
OUT_OF_SERVICE = "out_of_service"
MAINTENANCE = "maintenance"
VEHICLE_STATUSES = (IN_SERVICE, OUT_OF_SERVICE, MAINTENANCE)

MIN_PASSENGERS = 5
MIN_SPEED_KMH = 10.0
MAX_SPEED_KMH = 50.0
SPEED_STEP_KMH = 2.0
MIN_DELAY_MINUTES = -5
MAX_DELAY_MINUTES = 10


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _clamp(value, lo, hi):
    return max(lo, min(hi, value))


@dataclass(frozen=True)
class VehicleSnapshot:
    id: str
    route_id: str
    plate_number: str
    lat: float
    lng: float
    next_stop_index: int
    passenger_count: int
    capacity: int
    speed_kmh: float
    heading: float
    delay_minutes: int
    updated_at: datetime.datetime
    status: str

    @property
    def in_service(self) -> bool:
        return self.status == IN_SERVICE

    @property
    def crowding(self) -> CrowdingLevel:
        return classify(self.passenger_count, self.capacity)

    @property
    def load_percent(self) -> int:
        return load_percent(self.passenger_count, self.capacity)


@dataclass
class _Vehicle:
    id: str
    route_id: str
    plate_number: str
    lat: float
    lng: float
    next_stop_index: int
    passenger_count: int
    capacity: int
    speed_kmh: float
    heading: float
    delay_minutes: int
    updated_at: datetime.datetime
    status: str = IN_SERVICE

    def freeze(self) -> VehicleSnapshot:
        return VehicleSnapshot(**self.__dict__)


@dataclass(frozen=True)
class FleetSnapshot:
    tick: int
    taken_at: datetime.datetime
    network_version: int
    vehicles: Mapping[str, VehicleSnapshot]

    def get(self, vehicle_id: str) -> VehicleSnapshot:
        try:
            return self.vehicles[vehicle_id]
        except KeyError:
            raise NotFound("vehicle", vehicle_id) from None

    def all(self) -> list[VehicleSnapshot]:
        return [self.vehicles[vid] for vid in sorted(self.vehicles)]

    def in_service(self) -> list[VehicleSnapshot]:
        return [v for v in self.all() if v.in_service]

    def for_route(self, route_id: str) -> list[VehicleSnapshot]:
        return [v for v in self.all() if v.route_id == route_id]

    def status_counts(self) -> dict[str, int]:
        counts = {s: 0 for s in VEHICLE_STATUSES}
        for v in self.vehicles.values():
            counts[v.status] = counts.get(v.status, 0) + 1
        return counts


EMPTY_FLEET = FleetSnapshot(
    tick=0, taken_at=datetime.datetime.min.replace(tzinfo=datetime.timezone.utc),
    network_version=0, vehicles=MappingProxyType({}),
)


class PositionSimulator:
    """Advances a fleet of simulated buses along their routes."""

    def __init__(
        self,
        rng: random.Random | None = None,
        *,
        tick_seconds: float = 5.0,
        vehicles_per_route: int = 3,
        capacity: int = 60,
        passenger_step: int = 5,
        clock: Callable[[], datetime.datetime] = _utcnow,
    ) -> None:
        if tick_seconds <= 0:
            raise ValueError("tick_seconds must be positive")
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.rng = rng if rng is not None else random.Random()
        self.tick_seconds = tick_seconds
        self.vehicles_per_route = vehicles_per_route
        self.capacity = capacity
        self.passenger_step = passenger_step
        self._clock = clock

        self._lock = threading.Lock()
        self._network: NetworkSnapshot | None = None
        self._vehicles: dict[str, _Vehicle] = {}
        # Vehicles retired because their route stopped running (restored on reactivation)
        self._parked_by_route: set[str] = set()
        self._tick = 0
        self._snapshot: FleetSnapshot = EMPTY_FLEET

    # ------------------------------------------------------------------
    # Read side

    def snapshot(self) -> FleetSnapshot:
        return self._snapshot

    @property
    def tick_count(self) -> int:
        return self._tick

    # ------------------------------------------------------------------
    # Fleet lifecycle

    def sync_network(self, network: NetworkSnapshot) -> FleetSnapshot:
        """Reconcile the fleet with a (new) network version."""
        with self._lock:
            self._network = network
            created = retired = restored = 0

            for v in self._vehicles.values():
                route = network.routes_by_id.get(v.route_id)
                if route is None or not route.is_active:
                    if v.status == IN_SERVICE:
                        self._retire(v)
                        retired += 1
                    continue
                if v.id in self._parked_by_route:
                    self._parked_by_route.discard(v.id)
                    v.status = IN_SERVICE
                    restored += 1
                # Sequence may have changed under the vehicle
                v.next_stop_index %= len(route.stop_ids)

            fleets = {v.route_id for v in self._vehicles.values()}
            for route_index, route in enumerate(network.routes()):
                if route.is_active and route.id not in fleets:
                    created += self._create_fleet(route, route_index)

            self._publish()
        logger.info(
            "Fleet synced to network v%d: %d created, %d retired, %d restored (%d total)",
            network.version, created, retired, restored, len(self._vehicles),
        )
        return self._snapshot

    def reset(self, network: NetworkSnapshot | None = None) -> FleetSnapshot:
        """Retire every vehicle and rebuild the fleet from scratch."""
        network = network or self._network
        with self._lock:
            self._vehicles.clear()
            self._parked_by_route.clear()
            self._tick = 0
            self._snapshot = EMPTY_FLEET
        if network is None:
            return self._snapshot
        return self.sync_network(network)

    def set_status(self, vehicle_id: str, status: str) -> VehicleSnapshot:
        if status not in VEHICLE_STATUSES:
            raise ValueError(f"unknown vehicle status {status!r}")
        with self._lock:
            v = self._vehicles.get(vehicle_id)
            if v is None:
                raise NotFound("vehicle", vehicle_id)
            if status == IN_SERVICE:
                route = self._network.routes_by_id.get(v.route_id) if self._network else None
                if route is None or not route.is_active:
                    raise ValueError(f"route {v.route_id!r} is not running")
            self._parked_by_route.discard(vehicle_id)
            v.status = status
            v.updated_at = self._clock()
            self._publish()
            return self._snapshot.vehicles[vehicle_id]

    def _create_fleet(self, route: Route, route_index: int) -> int:
        stops = route.stop_ids
        count = max(0, self.vehicles_per_route)
        now = self._clock()
        for i in range(count):
            at = (i * len(stops)) // count
            here = self._network.stops_by_id[stops[at]]
            next_index = (at + 1) % len(stops)
            nxt = self._network.stops_by_id[stops[next_index]]
            vehicle = _Vehicle(
                id=f"{route.id}-bus-{i + 1}",
                route_id=route.id,
                plate_number=f"{(route.operator or 'BUS')[:3].upper()}-{1000 + route_index * 10 + i}",
                lat=here.lat,
                lng=here.lng,
                next_stop_index=next_index,
                passenger_count=self.rng.randint(min(MIN_PASSENGERS, self.capacity), self.capacity),
                capacity=self.capacity,
                speed_kmh=round(self.rng.uniform(MIN_SPEED_KMH, MAX_SPEED_KMH), 1),
                heading=bearing_deg(here.lat, here.lng, nxt.lat, nxt.lng),
                delay_minutes=self.rng.randint(MIN_DELAY_MINUTES, 5),
                updated_at=now,
            )
            self._vehicles[vehicle.id] = vehicle
        return count

    def _retire(self, v: _Vehicle) -> None:
        v.status = OUT_OF_SERVICE
        v.updated_at = self._clock()
        self._parked_by_route.add(v.id)
        logger.info("Vehicle %s retired: route %s is no longer running", v.id, v.route_id)

    # ------------------------------------------------------------------
    # Tick

    def tick(self) -> FleetSnapshot:
        """Advance every in-service vehicle by one time step."""
        with self._lock:
            network = self._network
            if network is None:
                return self._snapshot
            now = self._clock()
            for vid in sorted(self._vehicles):
                v = self._vehicles[vid]
                if v.status != IN_SERVICE:
                    continue
                route = network.routes_by_id.get(v.route_id)
                if route is None or not route.is_active:
                    self._retire(v)
                    continue
                self._advance(v, route, network, now)
            self._tick += 1
            self._publish()
        return self._snapshot

    def _advance(self, v: _Vehicle, route: Route, network: NetworkSnapshot, now: datetime.datetime) -> None:
        target = network.stops_by_id[route.stop_ids[v.next_stop_index]]
        old_lat, old_lng = v.lat, v.lng

        step_km = v.speed_kmh * self.tick_seconds / 3600.0
        remaining_km = haversine_km(v.lat, v.lng, target.lat, target.lng)
        if remaining_km <= step_km:
            v.lat, v.lng = target.lat, target.lng
            v.next_stop_index = (v.next_stop_index + 1) % len(route.stop_ids)
        else:
            v.lat, v.lng = interpolate(v.lat, v.lng, target.lat, target.lng, step_km / remaining_km)

        if (v.lat, v.lng) != (old_lat, old_lng):
            v.heading = bearing_deg(old_lat, old_lng, v.lat, v.lng)

        low = min(MIN_PASSENGERS, v.capacity)
        v.passenger_count = _clamp(
            v.passenger_count + self.rng.randint(-self.passenger_step, self.passenger_step), low, v.capacity,
        )
        v.speed_kmh = round(_clamp(
            v.speed_kmh + self.rng.uniform(-SPEED_STEP_KMH, SPEED_STEP_KMH), MIN_SPEED_KMH, MAX_SPEED_KMH,
        ), 1)
        v.delay_minutes = _clamp(v.delay_minutes + self.rng.randint(-1, 1), MIN_DELAY_MINUTES, MAX_DELAY_MINUTES)
        v.updated_at = now

    def _publish(self) -> None:
        self._snapshot = FleetSnapshot(
            tick=self._tick,
            taken_at=self._clock(),
            network_version=self._network.version if self._network else 0,
            vehicles=MappingProxyType({vid: v.freeze() for vid, v in self._vehicles.items()}),
        )

    def place(self, vehicle_id: str, **changes) -> VehicleSnapshot:
        """Overwrite fields of one vehicle to stage a scenario.

        Values are checked against the vehicle's route and capacity before any
        field changes, so a rejected call leaves the vehicle untouched.
        """
        with self._lock:
            v = self._vehicles.get(vehicle_id)
            if v is None:
                raise NotFound("vehicle", vehicle_id)
            for key in changes:
                if key in ("id", "route_id") or not hasattr(v, key):
                    raise AttributeError(key)
            if changes.get("status", v.status) not in VEHICLE_STATUSES:
                raise ValueError(f"unknown vehicle status {changes['status']!r}")
            if "next_stop_index" in changes:
                length = len(self._network.routes_by_id[v.route_id].stop_ids) if self._network else 0
                if not 0 <= changes["next_stop_index"] < length:
                    raise ValueError(f"next_stop_index {changes['next_stop_index']} outside route of {length} stops")
            if not 0 <= changes.get("passenger_count", v.passenger_count) <= changes.get("capacity", v.capacity):
                raise ValueError("passenger_count must be within [0, capacity]")
            for key, value in changes.items():
                setattr(v, key, value)
            self._publish()
            return self._snapshot.vehicles[vehicle_id]
