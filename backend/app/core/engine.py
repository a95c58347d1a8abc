"""Main orchestrator: owns the network, the simulated fleet and the query services."""

import logging
import random
import threading
from dataclasses import dataclass

from app.config import settings
from app.core.arrivals import ArrivalEstimator, ArrivalPrediction
from app.core.broadcaster import Broadcaster
from app.core.errors import ConfigInvalid, NotFound
from app.core.network import NetworkModel, NetworkSnapshot
from app.core.network_source import NetworkSourceClient
from app.core.proximity import ProximityIndex
from app.core.route_geometry import RouteGeometry
from app.core.simulator import FleetSnapshot, PositionSimulator
from app.core.trip_planner import Endpoint, PlanResult, Preferences, TripComposer
from app.schemas.vehicle import BusState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _NetworkBundle:
    network: NetworkSnapshot
    proximity: ProximityIndex
    geometry: RouteGeometry


@dataclass(frozen=True)
class EngineView:
    """A consistent read view: one network version plus the latest fleet."""

    network: NetworkSnapshot
    proximity: ProximityIndex
    geometry: RouteGeometry
    fleet: FleetSnapshot


class TransitEngine:
    """Orchestrates network loading, the simulation tick and read-side queries."""

    def __init__(
        self,
        source: NetworkSourceClient | None = None,
        broadcaster: Broadcaster | None = None,
        simulator: PositionSimulator | None = None,
        estimator: ArrivalEstimator | None = None,
        composer: TripComposer | None = None,
    ) -> None:
        self.source = source
        self.broadcaster = broadcaster
        self.model = NetworkModel()
        self.simulator = simulator or PositionSimulator(
            random.Random(settings.simulation_seed),
            tick_seconds=settings.tick_interval_seconds,
            vehicles_per_route=settings.vehicles_per_route,
            capacity=settings.vehicle_capacity,
        )
        self.estimator = estimator or ArrivalEstimator(settings.minutes_per_hop)
        self.composer = composer or TripComposer(
            self.estimator,
            walking_speed_m_per_min=settings.walking_speed_m_per_min,
            timeout_ms=settings.trip_plan_timeout_ms,
        )
        self._apply_lock = threading.Lock()
        self._bundle: _NetworkBundle | None = None
        self._failed_ticks = 0

    @property
    def ready(self) -> bool:
        return self._bundle is not None

    def view(self) -> EngineView:
        bundle, fleet = self._bundle, self.simulator.snapshot()
        if bundle is not None and fleet.network_version != bundle.network.version:
            # An apply is between syncing the fleet and swapping the bundle
            with self._apply_lock:
                bundle, fleet = self._bundle, self.simulator.snapshot()
        if bundle is None:
            raise NotFound("network", "no network loaded")
        return EngineView(bundle.network, bundle.proximity, bundle.geometry, fleet)

    # ------------------------------------------------------------------
    # Network lifecycle

    def apply_document(self, document: dict) -> NetworkSnapshot:
        """Validate and publish a network document; the previous version survives a rejection."""
        with self._apply_lock:
            network = self.model.load(document)
            bundle = _NetworkBundle(network, ProximityIndex(network), RouteGeometry.from_network(network))
            self.simulator.sync_network(network)
            self._bundle = bundle
        return network

    async def load_network(self) -> NetworkSnapshot | None:
        """Fetch the network document from the configured source and publish it."""
        if self.source is None:
            logger.warning("No network source configured")
            return None
        document = await self.source.fetch()
        if document is None:
            logger.error("Network source returned nothing; keeping current version")
            return None
        try:
            return self.apply_document(document)
        except ConfigInvalid:
            # Already logged and recorded by the model
            return None

    async def refresh_network(self) -> None:
        """Scheduler job: reload the network from its source."""
        try:
            await self.load_network()
        except Exception:
            logger.exception("Error refreshing network")

    # ------------------------------------------------------------------
    # Simulation

    async def tick(self) -> None:
        """Single simulation step: advance the fleet and publish it."""
        try:
            fleet = self.simulator.tick()
            if self.broadcaster is None or self._bundle is None:
                return
            await self.broadcaster.publish(self.bus_states(fleet), fleet.tick)
        except Exception:
            self._failed_ticks += 1
            logger.exception("Error in simulation tick")

    def bus_states(self, fleet: FleetSnapshot | None = None, route_id: str | None = None) -> list[dict]:
        view = self.view()
        fleet = fleet or view.fleet
        vehicles = fleet.all() if route_id is None else fleet.for_route(route_id)
        return [
            BusState.from_snapshot(v, view.network, view.geometry).model_dump(mode="json")
            for v in vehicles
        ]

    # ------------------------------------------------------------------
    # Queries

    def arrivals_for(self, stop_id: str, route_id: str | None = None) -> list[ArrivalPrediction]:
        view = self.view()
        return self.estimator.arrivals_for(view.network, view.fleet, stop_id, route_id=route_id)

    def plan_trip(
        self,
        origin: Endpoint,
        destination: Endpoint,
        preferences: Preferences | None = None,
        cancel: threading.Event | None = None,
    ) -> PlanResult:
        view = self.view()
        return self.composer.plan(
            view.network, view.proximity, view.fleet, origin, destination, preferences, cancel=cancel,
        )

    def get_diagnostics(self) -> dict:
        """Network and fleet health for debugging."""
        bundle = self._bundle
        fleet = self.simulator.snapshot()
        network = None
        if bundle is not None:
            n = bundle.network
            network = {
                "version": n.version,
                "loaded_at": n.loaded_at.isoformat(),
                "stops": len(n.stops_by_id),
                "routes": len(n.routes_by_id),
                "zones": n.zones(),
                "operators": n.operators(),
                "indexed_stops": len(bundle.proximity),
                "routes_by_status": _count_by(r.status for r in n.routes()),
            }
        return {
            "network": network,
            "rejections": list(self.model.rejections),
            "source": (self.source.source or "built-in") if self.source else None,
            "fleet": {
                "tick": fleet.tick,
                "taken_at": fleet.taken_at.isoformat(),
                "network_version": fleet.network_version,
                "vehicles": len(fleet.vehicles),
                "by_status": fleet.status_counts(),
            },
            "failed_ticks": self._failed_ticks,
            "subscribers": self.broadcaster.subscriber_count if self.broadcaster else 0,
        }


def _count_by(values) -> dict[str, int]:
    counts: dict[str, int] = {}
    for v in values:
        counts[v] = counts.get(v, 0) + 1
    return counts
