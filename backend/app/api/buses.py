"""Live bus REST API endpoints."""

from fastapi import APIRouter, Depends

from app.api.deps import get_engine
from app.core.engine import TransitEngine
from app.schemas.vehicle import BusState, FleetState

router = APIRouter(prefix="/api/buses", tags=["buses"])


@router.get("/live", response_model=FleetState)
def live_buses(route: str | None = None, engine: TransitEngine = Depends(get_engine)):
    """Get the latest position of every simulated bus."""
    view = engine.view()
    if route:
        view.network.get_route(route)
    return FleetState(
        tick=view.fleet.tick,
        taken_at=view.fleet.taken_at.isoformat(),
        network_version=view.network.version,
        vehicles=engine.bus_states(view.fleet, route_id=route),
    )


@router.get("/{vehicle_id}", response_model=BusState)
def get_bus(vehicle_id: str, engine: TransitEngine = Depends(get_engine)):
    view = engine.view()
    return BusState.from_snapshot(view.fleet.get(vehicle_id), view.network, view.geometry)
