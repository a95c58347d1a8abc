"""Diagnostics API for the network and simulation pipeline."""

from fastapi import APIRouter, HTTPException

from app.api import deps

router = APIRouter(prefix="/api/diagnostics", tags=["diagnostics"])


@router.get("")
def get_diagnostics():
    """Network version, rejected reloads and fleet status counts."""
    if deps.engine is None:
        raise HTTPException(status_code=503, detail="Transit engine not initialized")
    return deps.engine.get_diagnostics()
