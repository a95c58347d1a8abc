"""Arrival prediction endpoint."""

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_engine
from app.core.engine import TransitEngine
from app.schemas.vehicle import StopArrival, StopArrivals

router = APIRouter(prefix="/api/arrivals", tags=["arrivals"])


def build_arrivals(engine: TransitEngine, stop_id: str, route_id: str | None = None) -> StopArrivals:
    stop = engine.view().network.get_stop(stop_id)
    predictions = engine.arrivals_for(stop_id, route_id)
    return StopArrivals(
        stop_id=stop.id,
        stop_name=stop.display_name(),
        arrivals=[StopArrival.from_prediction(p) for p in predictions],
    )


@router.get("", response_model=StopArrivals)
def get_arrivals(
    stop_id: str = Query(alias="stopId"),
    route_id: str | None = Query(default=None, alias="routeId"),
    engine: TransitEngine = Depends(get_engine),
):
    """Upcoming in-service buses at a stop, soonest first."""
    return build_arrivals(engine, stop_id, route_id)
