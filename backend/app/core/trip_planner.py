"""Multi-leg trip composition and ranking.

A trip is walk -> wait -> ride [-> wait -> ride] -> walk. Boarding and
alighting stops come from the proximity index (bounded by the walking
budget); a route is usable between two stops only if it visits the boarding
stop strictly before the alighting stop. One-transfer trips chain two such
legs through a shared stop on different routes.

Waits come from the arrival estimator: the first vehicle of the route that
reaches the boarding stop after the rider does. When no vehicle of the
route is in service, the scheduled headway is used instead and the ride has
no known crowding level.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from app.core.arrivals import ArrivalEstimator
from app.core.crowding import CrowdingLevel
from app.core.errors import PlanTimeout
from app.core.geo import haversine_km
from app.core.network import NetworkSnapshot, Route, Stop
from app.core.proximity import ProximityIndex
from app.core.simulator import FleetSnapshot

logger = logging.getLogger(__name__)

OPTIMIZE_MODES = ("balanced", "time", "cost", "comfort", "environment")

# kg CO2 per passenger-km
CAR_KG_PER_KM = 0.25
BUS_KG_PER_KM = 0.08

COMFORT_BY_LEVEL = {
    CrowdingLevel.COMFORTABLE: 1.0,
    CrowdingLevel.MODERATE: 0.75,
    CrowdingLevel.CROWDED: 0.4,
    CrowdingLevel.FULL: 0.1,
}
UNKNOWN_COMFORT = 0.6
TRANSFER_COMFORT_PENALTY = 0.1

SCORE_WEIGHTS = {"time": 0.45, "fare": 0.30, "comfort": 0.25}

ACCESSIBLE_FACILITIES = frozenset({"step_free", "large_station"})
SHORT_WALK_M = 400.0


@dataclass(frozen=True)
class Endpoint:
    """A trip origin or destination: a coordinate, or a stop id."""

    lat: float | None = None
    lng: float | None = None
    stop_id: str | None = None

    def resolve(self, network: NetworkSnapshot) -> tuple[float, float]:
        if self.stop_id is not None:
            stop = network.get_stop(self.stop_id)
            return stop.lat, stop.lng
        if self.lat is None or self.lng is None:
            raise ValueError("endpoint needs either a stop id or lat/lng")
        return self.lat, self.lng


@dataclass(frozen=True)
class Preferences:
    optimize: str = "balanced"
    max_walk_meters: float = 800.0
    avoid_crowded: bool = False
    accessibility_required: bool = False
    max_transfers: int = 1
    max_results: int = 5

    def __post_init__(self) -> None:
        if self.optimize not in OPTIMIZE_MODES:
            raise ValueError(f"optimize must be one of {OPTIMIZE_MODES}, got {self.optimize!r}")
        if self.max_walk_meters < 0:
            raise ValueError("max_walk_meters must not be negative")


@dataclass(frozen=True)
class Segment:
    kind: str  # walk | wait | ride
    duration_minutes: float
    from_stop_id: str | None = None
    to_stop_id: str | None = None
    distance_m: float | None = None
    route_id: str | None = None
    route_number: str | None = None
    vehicle_id: str | None = None
    crowding: CrowdingLevel | None = None
    fare: float | None = None
    distance_km: float | None = None
    stops: int | None = None


@dataclass
class TripOption:
    id: str
    segments: tuple[Segment, ...]
    total_duration_minutes: float
    total_fare: float
    walking_distance_m: float
    transfers: int
    comfort: float
    carbon_saving_kg: float
    accessibility: str
    score: float = 0.0

    @property
    def rides(self) -> list[Segment]:
        return [s for s in self.segments if s.kind == "ride"]


@dataclass
class PlanResult:
    options: list[TripOption] = field(default_factory=list)
    timed_out: bool = False
    candidates_considered: int = 0

    @property
    def no_route_found(self) -> bool:
        return not self.options


@dataclass(frozen=True)
class _Leg:
    route: Route
    board: Stop
    board_index: int
    alight: Stop
    alight_index: int

    @property
    def hops(self) -> int:
        return self.alight_index - self.board_index


class _Budget:
    def __init__(self, timeout_ms: float | None, cancel: threading.Event | None,
                 clock: Callable[[], float]) -> None:
        self._clock = clock
        self._deadline = None if timeout_ms is None else clock() + timeout_ms / 1000.0
        self._cancel = cancel

    def check(self) -> None:
        if self._cancel is not None and self._cancel.is_set():
            raise PlanTimeout("trip planning cancelled")
        if self._deadline is not None and self._clock() >= self._deadline:
            raise PlanTimeout("trip planning exceeded its time budget")


def _best_span(network: NetworkSnapshot, route: Route, board_id: str, alight_id: str) -> tuple[int, int] | None:
    """Shortest (board_index, alight_index) with board strictly before alight."""
    best = None
    for i in network.stop_indices(route.id, board_id):
        for j in network.stop_indices(route.id, alight_id):
            if i < j and (best is None or j - i < best[1] - best[0]):
                best = (i, j)
    return best


def _stop_pair(option: TripOption) -> tuple[str, str]:
    rides = option.rides
    return rides[0].from_stop_id, rides[-1].to_stop_id


class TripComposer:
    """Enumerates, filters, scores and ranks walk/wait/ride trip options."""

    def __init__(
        self,
        estimator: ArrivalEstimator,
        walking_speed_m_per_min: float = 80.0,
        timeout_ms: float | None = 2000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if walking_speed_m_per_min <= 0:
            raise ValueError("walking speed must be positive")
        self.estimator = estimator
        self.walking_speed_m_per_min = walking_speed_m_per_min
        self.timeout_ms = timeout_ms
        self._clock = clock

    def plan(
        self,
        network: NetworkSnapshot,
        proximity: ProximityIndex,
        fleet: FleetSnapshot,
        origin: Endpoint,
        destination: Endpoint,
        preferences: Preferences | None = None,
        *,
        cancel: threading.Event | None = None,
        timeout_ms: float | None = None,
    ) -> PlanResult:
        prefs = preferences or Preferences()
        budget = _Budget(self.timeout_ms if timeout_ms is None else timeout_ms, cancel, self._clock)
        o_lat, o_lng = origin.resolve(network)
        d_lat, d_lng = destination.resolve(network)
        radius_km = prefs.max_walk_meters / 1000.0

        boarding = proximity.nearby(o_lat, o_lng, radius_km)
        alighting = proximity.nearby(d_lat, d_lng, radius_km)

        result = PlanResult()
        candidates: dict[str, TripOption] = {}
        try:
            for legs in self._enumerate(network, boarding, alighting, prefs, budget):
                result.candidates_considered += 1
                option = self._assemble(network, fleet, legs, (o_lat, o_lng), (d_lat, d_lng))
                kept = candidates.get(option.id)
                if kept is None or option.total_duration_minutes < kept.total_duration_minutes:
                    candidates[option.id] = option
        except PlanTimeout as e:
            result.timed_out = True
            logger.warning("%s; ranking %d candidates built so far", e, len(candidates))

        options = self._drop_dominated_transfers(
            [opt for opt in candidates.values() if self._acceptable(opt, prefs)]
        )
        self._score(options)
        options.sort(key=self._sort_key(prefs.optimize))
        result.options = options[:max(0, prefs.max_results)]
        if result.no_route_found:
            logger.info(
                "No route found from (%.5f, %.5f) to (%.5f, %.5f) within %.0f m walking",
                o_lat, o_lng, d_lat, d_lng, prefs.max_walk_meters,
            )
        return result

    # ------------------------------------------------------------------
    # Candidate generation

    def _enumerate(self, network, boarding, alighting, prefs, budget):
        alight_ids = {stop.id: stop for stop, _ in alighting}

        for board, _ in boarding:
            for route in sorted(network.routes_serving(board.id), key=lambda r: r.id):
                if not route.is_active:
                    continue
                for alight, _ in alighting:
                    budget.check()
                    if alight.id == board.id:
                        continue
                    span = _best_span(network, route, board.id, alight.id)
                    if span is None:
                        continue
                    yield (_Leg(route, board, span[0], alight, span[1]),)

        if prefs.max_transfers < 1:
            return

        for board, _ in boarding:
            for first in sorted(network.routes_serving(board.id), key=lambda r: r.id):
                if not first.is_active:
                    continue
                start = min(network.stop_indices(first.id, board.id))
                for i in range(start + 1, len(first.stop_ids)):
                    via = network.stops_by_id[first.stop_ids[i]]
                    if via.id == board.id or via.id in alight_ids:
                        continue
                    for second in sorted(network.routes_serving(via.id), key=lambda r: r.id):
                        if second.id == first.id or not second.is_active:
                            continue
                        for alight in alight_ids.values():
                            budget.check()
                            if alight.id == board.id:
                                continue
                            span = _best_span(network, second, via.id, alight.id)
                            if span is None:
                                continue
                            yield (
                                _Leg(first, board, start, via, i),
                                _Leg(second, via, span[0], alight, span[1]),
                            )

    # ------------------------------------------------------------------
    # Segment assembly

    def _walk(self, from_point, to_point, from_stop=None, to_stop=None) -> Segment:
        meters = haversine_km(from_point[0], from_point[1], to_point[0], to_point[1]) * 1000.0
        return Segment(
            kind="walk",
            duration_minutes=round(meters / self.walking_speed_m_per_min, 1),
            from_stop_id=from_stop,
            to_stop_id=to_stop,
            distance_m=round(meters, 1),
        )

    def _assemble(self, network, fleet, legs, origin, destination) -> TripOption:
        first, last = legs[0], legs[-1]
        segments = [self._walk(origin, (first.board.lat, first.board.lng), to_stop=first.board.id)]
        elapsed = segments[0].duration_minutes
        ride_km = 0.0

        for leg in legs:
            arrival = self.estimator.first_usable(network, fleet, leg.board.id, leg.route.id, elapsed)
            if arrival is not None:
                wait = max(0.0, arrival.minutes - elapsed)
                vehicle_id, crowding = arrival.vehicle_id, arrival.crowding
            else:
                wait = leg.route.headway_minutes
                vehicle_id, crowding = None, None
            segments.append(Segment(
                kind="wait", duration_minutes=round(wait, 1),
                from_stop_id=leg.board.id, to_stop_id=leg.board.id,
                route_id=leg.route.id, route_number=leg.route.number, vehicle_id=vehicle_id,
            ))

            distance = 0.0
            for a, b in zip(leg.route.stop_ids[leg.board_index:leg.alight_index],
                            leg.route.stop_ids[leg.board_index + 1:leg.alight_index + 1]):
                sa, sb = network.stops_by_id[a], network.stops_by_id[b]
                distance += haversine_km(sa.lat, sa.lng, sb.lat, sb.lng)
            ride_minutes = leg.route.duration_minutes * leg.hops / (len(leg.route.stop_ids) - 1)
            segments.append(Segment(
                kind="ride", duration_minutes=round(ride_minutes, 1),
                from_stop_id=leg.board.id, to_stop_id=leg.alight.id,
                route_id=leg.route.id, route_number=leg.route.number, vehicle_id=vehicle_id,
                crowding=crowding, fare=leg.route.fare, distance_km=round(distance, 3), stops=leg.hops,
            ))
            elapsed += wait + ride_minutes
            ride_km += distance

        segments.append(self._walk((last.alight.lat, last.alight.lng), destination, from_stop=last.alight.id))

        walking_m = sum(s.distance_m for s in segments if s.kind == "walk")
        transfers = len(legs) - 1
        rides = [s for s in segments if s.kind == "ride"]
        comfort = sum(
            COMFORT_BY_LEVEL.get(s.crowding, UNKNOWN_COMFORT) for s in rides
        ) / len(rides) - TRANSFER_COMFORT_PENALTY * transfers
        used_stops = [legs[0].board] + [leg.alight for leg in legs]

        return TripOption(
            id="|".join(f"{leg.route.id}:{leg.board.id}>{leg.alight.id}" for leg in legs),
            segments=tuple(segments),
            total_duration_minutes=round(sum(s.duration_minutes for s in segments), 1),
            total_fare=round(sum(s.fare for s in rides), 2),
            walking_distance_m=round(walking_m, 1),
            transfers=transfers,
            comfort=round(max(0.0, comfort), 3),
            carbon_saving_kg=round(
                ride_km * (CAR_KG_PER_KM - BUS_KG_PER_KM) + walking_m / 1000.0 * CAR_KG_PER_KM, 2,
            ),
            accessibility=self._accessibility(used_stops, transfers, walking_m),
        )

    @staticmethod
    def _accessibility(stops: list[Stop], transfers: int, walking_m: float) -> str:
        step_free = all(s.facilities & ACCESSIBLE_FACILITIES for s in stops)
        short_walk = walking_m <= SHORT_WALK_M
        if step_free and transfers == 0 and short_walk:
            return "high"
        if step_free or (transfers == 0 and short_walk):
            return "medium"
        return "low"

    # ------------------------------------------------------------------
    # Filtering and ranking

    @staticmethod
    def _acceptable(option: TripOption, prefs: Preferences) -> bool:
        if option.walking_distance_m > prefs.max_walk_meters:
            return False
        if prefs.avoid_crowded and any(s.crowding == CrowdingLevel.FULL for s in option.rides):
            return False
        if prefs.accessibility_required and option.accessibility == "low":
            return False
        return True

    @staticmethod
    def _drop_dominated_transfers(options: list[TripOption]) -> list[TripOption]:
        """Transfer options only survive for stop pairs no acceptable direct ride serves."""
        direct = {_stop_pair(o) for o in options if o.transfers == 0}
        return [o for o in options if o.transfers == 0 or _stop_pair(o) not in direct]

    @staticmethod
    def _score(options: list[TripOption]) -> None:
        """Composite 0-100 score relative to the best option in the set."""
        if not options:
            return
        best_time = min(o.total_duration_minutes for o in options)
        best_fare = min(o.total_fare for o in options)
        for o in options:
            time_norm = best_time / o.total_duration_minutes if o.total_duration_minutes > 0 else 1.0
            fare_norm = best_fare / o.total_fare if o.total_fare > 0 else 1.0
            o.score = round(100 * (
                SCORE_WEIGHTS["time"] * time_norm +
                SCORE_WEIGHTS["fare"] * fare_norm +
                SCORE_WEIGHTS["comfort"] * o.comfort
            ), 1)

    @staticmethod
    def _sort_key(optimize: str):
        if optimize == "time":
            return lambda o: (o.total_duration_minutes, o.total_fare, o.id)
        if optimize == "cost":
            return lambda o: (o.total_fare, o.total_duration_minutes, o.id)
        if optimize == "environment":
            return lambda o: (-o.carbon_saving_kg, o.total_duration_minutes, o.id)
        if optimize == "comfort":
            return lambda o: (-o.comfort, o.total_duration_minutes, o.id)
        return lambda o: (-o.score, o.total_duration_minutes, o.id)
