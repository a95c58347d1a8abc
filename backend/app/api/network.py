"""Network configuration endpoints."""

from fastapi import APIRouter, Body, Depends, HTTPException

from app.api import deps
from app.core.engine import TransitEngine
from app.schemas.route import NetworkVersion

router = APIRouter(prefix="/api/network", tags=["network"])


def _any_engine() -> TransitEngine:
    # Loading a network is how an empty engine becomes ready
    if deps.engine is None:
        raise HTTPException(status_code=503, detail="Transit engine not initialized")
    return deps.engine


def _version(engine: TransitEngine) -> NetworkVersion:
    n = engine.view().network
    return NetworkVersion(
        version=n.version, loaded_at=n.loaded_at.isoformat(),
        stops=len(n.stops_by_id), routes=len(n.routes_by_id),
    )


@router.get("", response_model=NetworkVersion)
def get_network(engine: TransitEngine = Depends(deps.get_engine)):
    return _version(engine)


@router.put("", response_model=NetworkVersion)
def replace_network(document: dict = Body(...), engine: TransitEngine = Depends(_any_engine)):
    """Publish a new network document. Invalid documents leave the current version in place."""
    engine.apply_document(document)
    return _version(engine)


@router.post("/reload", response_model=NetworkVersion)
async def reload_network(engine: TransitEngine = Depends(_any_engine)):
    """Re-read the network from its configured source."""
    if await engine.load_network() is None:
        raise HTTPException(status_code=502, detail="Network source could not be loaded; current version kept")
    return _version(engine)
