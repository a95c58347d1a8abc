"""Trip planning endpoint."""

import logging

from fastapi import APIRouter, Depends

from app.api.deps import get_engine
from app.config import settings
from app.core.engine import TransitEngine
from app.schemas.trip import TripOptionOut, TripPlanRequest, TripPlanResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trip-plan", tags=["trip-plan"])


@router.post("", response_model=TripPlanResponse)
def plan_trip(request: TripPlanRequest, engine: TransitEngine = Depends(get_engine)):
    """Rank walk/wait/ride options between two points or stops."""
    prefs = request.preferences.to_preferences(
        settings.default_max_walk_meters, settings.trip_plan_max_results,
    )
    result = engine.plan_trip(request.origin.to_endpoint(), request.destination.to_endpoint(), prefs)
    return TripPlanResponse(
        options=[TripOptionOut.from_option(o) for o in result.options],
        no_route_found=result.no_route_found,
        timed_out=result.timed_out,
        candidates_considered=result.candidates_considered,
    )
