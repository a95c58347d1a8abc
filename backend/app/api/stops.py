"""Stop REST API endpoints."""

from fastapi import APIRouter, Depends, Query

from app.api.arrivals import build_arrivals
from app.api.deps import get_engine
from app.core.engine import TransitEngine
from app.schemas.route import NearbyStop, StopInfo
from app.schemas.vehicle import StopArrivals

router = APIRouter(prefix="/api/stops", tags=["stops"])


def _serving(network, stop_id: str) -> list[str]:
    return sorted(r.id for r in network.routes_serving(stop_id))


@router.get("", response_model=list[StopInfo])
def list_stops(zone: str | None = None, engine: TransitEngine = Depends(get_engine)):
    """Get all stops, optionally limited to one zone."""
    network = engine.view().network
    stops = network.stops_by_zone(zone) if zone else network.stops()
    return [StopInfo.from_stop(s, _serving(network, s.id)) for s in stops]


@router.get("/nearby", response_model=list[NearbyStop])
def nearby_stops(
    lat: float = Query(ge=-90, le=90),
    lng: float = Query(ge=-180, le=180),
    radius_km: float = Query(default=1.0, ge=0, le=50, alias="radiusKm"),
    engine: TransitEngine = Depends(get_engine),
):
    """Stops within a great-circle radius, nearest first."""
    view = engine.view()
    return [
        NearbyStop(
            **StopInfo.from_stop(stop, _serving(view.network, stop.id)).model_dump(),
            distance_km=round(distance, 3),
        )
        for stop, distance in view.proximity.nearby(lat, lng, radius_km)
    ]


@router.get("/{stop_id}", response_model=StopInfo)
def get_stop(stop_id: str, engine: TransitEngine = Depends(get_engine)):
    network = engine.view().network
    stop = network.get_stop(stop_id)
    return StopInfo.from_stop(stop, _serving(network, stop.id))


@router.get("/{stop_id}/arrivals", response_model=StopArrivals)
def get_stop_arrivals(
    stop_id: str,
    route: str | None = None,
    engine: TransitEngine = Depends(get_engine),
):
    """Get upcoming bus arrivals at a stop."""
    return build_arrivals(engine, stop_id, route)
