"""Route REST API endpoints."""

from fastapi import APIRouter, Depends

from app.api.deps import get_engine
from app.core.engine import TransitEngine
from app.schemas.route import RouteDetail, RouteInfo, RouteStopInfo

router = APIRouter(prefix="/api/routes", tags=["routes"])


@router.get("", response_model=list[RouteInfo])
def list_routes(operator: str | None = None, engine: TransitEngine = Depends(get_engine)):
    """Get all routes, optionally for one operator."""
    network = engine.view().network
    if operator:
        routes = sorted(network.routes_by_operator(operator), key=lambda r: (r.number, r.id))
    else:
        routes = network.routes()
    return [RouteInfo.from_route(r) for r in routes]


@router.get("/{route_id}", response_model=RouteDetail)
def get_route(route_id: str, engine: TransitEngine = Depends(get_engine)):
    """Get route detail with stops and geometry."""
    view = engine.view()
    route = view.network.get_route(route_id)

    stops = []
    for order, sid in enumerate(route.stop_ids):
        stop = view.network.stops_by_id[sid]
        stops.append(RouteStopInfo(id=stop.id, name=stop.display_name(), lat=stop.lat, lng=stop.lng, order=order))

    return RouteDetail(
        **RouteInfo.from_route(route).model_dump(),
        stops=stops,
        geometry=view.geometry.geometry(route.id),
        length_km=round(view.geometry.total_length_km(route.id), 3),
    )
